"""Shared utilities for editguard."""
