"""Core services — the rewrite pipeline, warning pass and persistence policy."""
