"""Indexing, linking and ranking services."""
