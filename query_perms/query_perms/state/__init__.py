"""Metadata store backing the default catalog and saved-query collaborators."""
