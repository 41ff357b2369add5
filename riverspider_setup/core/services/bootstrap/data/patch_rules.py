"""
L0 Data — Path declarations patched inside the downstream script.

The script ships with relative declarations like::

    secretPath=secretString.txt

and only works from its own directory.  Each rule rewrites one of them
to an absolute, quoted path rooted at the target directory.
"""

from __future__ import annotations

from pathlib import Path

from riverspider_setup.core.models.config import TargetSettings
from riverspider_setup.core.models.facts import PatchRule

# (variable name, TargetSettings attribute holding the filename, description)
_PATH_DECLARATIONS: tuple[tuple[str, str, str], ...] = (
    ("secretPath", "secret_file", "Secret File"),
    ("webappUrlPath", "webapp_url_file", "WebApp URL File"),
    ("logisimPath", "logisim_jar", "Logisim"),
    ("processorCircPath", "processor_circ", "Processor Circuit"),
    ("urlencodeSedPath", "urlencode_sed", "URLEncode Sed Script"),
)


def build_patch_rules(target_dir: Path, settings: TargetSettings) -> list[PatchRule]:
    """The five relative → absolute rules for one target directory."""
    rules: list[PatchRule] = []
    for variable, attr, description in _PATH_DECLARATIONS:
        filename = getattr(settings, attr)
        rules.append(PatchRule(
            old_line=f"{variable}={filename}",
            new_line=f'{variable}="{target_dir / filename}"',
            description=description,
        ))
    return rules
