"""Bundled prompt resources."""
