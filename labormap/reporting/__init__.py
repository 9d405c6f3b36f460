"""Catalog health metrics and data-quality audit."""
