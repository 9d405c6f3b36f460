"""LaborMap - reconciliation of dealership operation codes with factory labor catalogs."""

__version__ = "0.1.0"
