"""Path and filesystem helpers."""
