"""Bundled resources for cata."""
