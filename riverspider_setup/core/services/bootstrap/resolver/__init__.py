"""L2 Resolver — locate or fetch the target directory."""
