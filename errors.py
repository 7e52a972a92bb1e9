"""
Error taxonomy for the lead lookup service.

Relay failures are reported straight back to the submitter. Not-found is
the normal state while the enrichment workflow is still running and is
retried by the poller; store failures are transient and kept distinct from
not-found so callers can choose to stop early.
"""

from typing import Optional


class LeadLookupError(Exception):
    """Base class for every error raised by this service."""


class RelayError(LeadLookupError):
    """The webhook call failed (network error or non-2xx response)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RelayTimeoutError(RelayError):
    """The webhook did not acknowledge within the configured timeout."""


class CompanyNotFoundError(LeadLookupError):
    def __init__(self, name: str):
        super().__init__("Company not found")
        self.name = name


class StoreError(LeadLookupError):
    """The document store was unreachable or the query failed."""


class InvalidQueryError(LeadLookupError):
    """The lookup query can never match (e.g. blank name)."""


class PollTimeoutError(LeadLookupError):
    def __init__(self, name: str, attempts: int, waited_seconds: float):
        super().__init__(
            f"Company data for '{name}' not found after {waited_seconds:g}s "
            f"({attempts} attempts). Check that the workflow is active and writing data."
        )
        self.name = name
        self.attempts = attempts
        self.waited_seconds = waited_seconds


class PollCancelledError(LeadLookupError):
    pass


class PollFailedError(LeadLookupError):
    pass
