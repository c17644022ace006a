"""Fixed-point helpers."""
