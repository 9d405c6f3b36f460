"""Collaborator protocols with DMS, OpenAI and in-memory implementations."""
