"""Commentum Stage: comment and moderation backend."""

__version__ = "0.1.0"
