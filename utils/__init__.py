"""Shared utilities: calculations, specimen models and reporting."""
