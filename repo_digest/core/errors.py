"""Exception hierarchy for repo-digest.

Every error raised by the pipeline derives from ``DigestError`` and can carry
the repository key and the pipeline stage it was raised from, so callers can
log and retry without parsing messages.
"""

from __future__ import annotations


class DigestError(Exception):
    """Base class for all repo-digest errors."""

    def __init__(self, message: str, repo_key: str | None = None, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.repo_key = repo_key
        self.stage = stage

    def __str__(self) -> str:
        context = []
        if self.repo_key:
            context.append(f"repo={self.repo_key}")
        if self.stage:
            context.append(f"stage={self.stage}")
        if not context:
            return self.message
        return f"{self.message} [{', '.join(context)}]"


class ValidationError(DigestError):
    """Bad repository reference or other input rejected before any I/O."""


class ConfigError(ValidationError):
    """Required configuration (credentials, publish target) is missing or malformed."""


class AuthError(DigestError):
    """A remote API rejected the supplied credentials (HTTP 401/403)."""

    def __init__(self, message: str, status_code: int | None = None, **context):
        super().__init__(message, **context)
        self.status_code = status_code


class TransportError(DigestError):
    """Network failure or a non-auth HTTP error response.

    ``retryable`` is False when a non-idempotent request may already have
    reached the server, so repeating it could duplicate its effect.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retryable: bool = True,
        **context,
    ):
        super().__init__(message, **context)
        self.status_code = status_code
        self.retryable = retryable


class PublishError(DigestError):
    """The publish target rejected the article."""

    def __init__(self, message: str, status_code: int | None = None, **context):
        super().__init__(message, **context)
        self.status_code = status_code
