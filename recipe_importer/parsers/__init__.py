"""Parsers package."""
