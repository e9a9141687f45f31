# src/commentum/services/__init__.py
"""Domain services for Commentum Stage."""
