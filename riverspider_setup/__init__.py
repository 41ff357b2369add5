"""riverSpider setup — host bootstrap installer."""

__version__ = "2.3.0"
