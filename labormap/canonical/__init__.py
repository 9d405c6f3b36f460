"""Text normalization helpers."""
