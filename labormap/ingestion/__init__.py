"""Factory catalog import: column detection, row narrowing and AI clean-up."""
