"""
Exception Hierarchy - Store Publisher

PURPOSE:
    Every failure raised by the publishing stages derives from
    StorePublisherError so callers can catch the whole family in one place.
    Each error carries a call-site label (e.g. "create_extension_binary")
    so a failed step can be identified from the message alone.

ERROR KINDS:
    - Input errors: unreadable artifact/image files, undecodable image bytes
    - Transport errors: request failures, HTTP error statuses, bad JSON
    - Contract violations: the store answered with an unexpected shape
    - Constraint errors: a version constraint expression could not be parsed
    - Polling errors: the caller-side poller ran out of attempts or was cancelled

    Malformed or non-selectable software versions are NOT errors. Stage 1
    silently skips them.
"""

from __future__ import annotations

from typing import Optional


class StorePublisherError(Exception):
    """Base for all store publisher errors."""


class StoreRequestError(StorePublisherError):
    """A request to the store API failed or returned an error status."""

    def __init__(self, label: str, message: str, status_code: Optional[int] = None):
        self.label = label
        self.status_code = status_code
        super().__init__(f"{label}: {message}")


class ArtifactReadError(StorePublisherError):
    """A local file (artifact, icon, gallery image) could not be read."""

    def __init__(self, label: str, path: str, reason: str):
        self.label = label
        self.path = path
        super().__init__(f"{label}: cannot read {path}: {reason}")


class IconDecodeError(StorePublisherError):
    """The icon file was readable but is not a decodable image."""

    def __init__(self, label: str, path: str, reason: str):
        self.label = label
        self.path = path
        super().__init__(f"{label}: cannot decode image {path}: {reason}")


class UnexpectedResponseError(StorePublisherError):
    """The store answered with a payload that breaks the expected shape."""

    def __init__(self, label: str, message: str):
        self.label = label
        super().__init__(f"{label}: {message}")


class VersionConstraintError(StorePublisherError):
    """A software version constraint expression is malformed."""

    def __init__(self, constraint: str, message: str):
        self.constraint = constraint
        super().__init__(f"Invalid version constraint {constraint!r}: {message}")


class ReviewPollingError(StorePublisherError):
    """Base for failures of the review poller."""


class ReviewTimeoutError(ReviewPollingError):
    """The review was still pending after the last allowed attempt."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Code review still pending after {attempts} attempts")


class ReviewCancelledError(ReviewPollingError):
    """Polling was cancelled by the caller."""
