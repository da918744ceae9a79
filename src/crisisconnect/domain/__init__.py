"""Domain models for CrisisConnect rate limiting."""

from .rate_limits import AttemptRecord, RequestWindow

__all__ = ["AttemptRecord", "RequestWindow"]
