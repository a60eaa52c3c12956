"""Exceptions raised by unused-js."""

from __future__ import annotations


class UnusedJsError(Exception):
    """Base class for unused-js errors."""


class ArtifactError(UnusedJsError):
    """An artifact file is unreadable, malformed, or missing required data."""
