# src/commentum/api/__init__.py
"""HTTP API for Commentum Stage."""
