"""Bundled question batches."""
