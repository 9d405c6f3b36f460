"""Candidate listing and keyword scoring."""
