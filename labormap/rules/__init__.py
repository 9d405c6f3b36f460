"""Admission, classification and order-type rules."""
