"""Patch-only edits: output contract validation and merging."""
