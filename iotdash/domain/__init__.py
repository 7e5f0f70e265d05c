"""Domain model and numeric utilities shared by the pipeline."""
