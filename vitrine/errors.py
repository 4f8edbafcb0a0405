"""Exceptions raised across Vitrine."""


class VitrineError(Exception):
    """Base exception for Vitrine."""


class TransientFetchError(VitrineError):
    """An external store call failed; the feature is temporarily unavailable."""


class NotFoundError(VitrineError):
    """A tenant or listing does not exist (outer surfaces only)."""
