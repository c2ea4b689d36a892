"""Database models for the translation service."""

from .translation import Translation

__all__ = ['Translation']
