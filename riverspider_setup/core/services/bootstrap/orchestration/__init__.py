"""L5 Orchestration — the sequential setup run."""
