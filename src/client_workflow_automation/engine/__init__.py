"""Workflow engine domain code (independent of any transport)."""
