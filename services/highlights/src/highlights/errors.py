"""
Exception types for the CorporaViewer highlights service.
"""

from __future__ import annotations


class HighlightError(Exception):
    """Base class for highlight engine errors."""


class InvalidHighlightRequest(HighlightError):
    """The request is missing required parameters; no backend call is made."""


class CursorOpenError(HighlightError):
    """No point-in-time cursor could be opened for the request."""
