"""Persistence collaborators: document store and object store."""
