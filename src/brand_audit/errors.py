"""Exceptions raised by the audit pipeline."""

from typing import Optional


class BrandAuditError(Exception):
    """Base class for all brand-audit errors."""


class InvalidURLError(BrandAuditError, ValueError):
    """The URL cannot be audited. Raised before any I/O."""


class AcquisitionError(BrandAuditError):
    """Page content could not be fetched."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class BlockedError(AcquisitionError):
    """The site answered with an anti-automation response."""


class InsufficientContentError(AcquisitionError):
    """The response body is too short to be a real page."""


class ScorerError(BrandAuditError):
    """Base class for external scorer failures."""


class ScorerUnavailableError(ScorerError):
    """No credential is configured for the external scorer."""


class ScorerRequestError(ScorerError):
    """The external scorer call failed (transport error or non-2xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None, retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class NormalizationError(BrandAuditError):
    """No overall score could be parsed from the scorer output."""


class ComparisonContractError(BrandAuditError):
    """Audits passed to the comparison engine cannot be compared."""


class StoreError(BrandAuditError):
    """An audit could not be persisted or loaded."""
