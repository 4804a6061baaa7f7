"""Application layer: the hub client services and sync pipelines."""
