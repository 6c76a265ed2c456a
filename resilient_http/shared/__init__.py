"""Shared error taxonomy, types and contract helpers."""
