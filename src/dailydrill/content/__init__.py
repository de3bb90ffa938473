"""Bundled drill content."""
