"""State/store layer.

This package is the single source of truth for selection areas, their
per-layer caches and the commands that drive fetching for them.
"""
