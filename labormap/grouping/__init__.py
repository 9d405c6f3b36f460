"""Batch grouping of unresolved order items."""
