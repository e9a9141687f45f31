# src/commentum/scripts/__init__.py
"""Command-line tooling."""
