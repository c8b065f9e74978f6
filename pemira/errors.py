"""Domain error hierarchy shared across the application."""

from __future__ import annotations


class PemiraError(Exception):
    """Base class for application errors."""

    default_message = "error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class NotFoundError(PemiraError):
    default_message = "resource not found"


class UnauthorizedError(PemiraError):
    default_message = "unauthorized"


class ForbiddenError(PemiraError):
    default_message = "forbidden"


class BadRequestError(PemiraError):
    default_message = "bad request"


class ConflictError(PemiraError):
    default_message = "conflict"


class InternalServerError(PemiraError):
    default_message = "internal server error"


class AlreadyVotedError(PemiraError):
    default_message = "already voted"


class InvalidPhaseError(PemiraError):
    default_message = "invalid election phase"


class InvalidVotingModeError(PemiraError):
    default_message = "invalid voting mode"


class VoterNotEligibleError(PemiraError):
    default_message = "voter not eligible"


class InvalidTokenError(PemiraError):
    default_message = "invalid token"


class DuplicateEntryError(PemiraError):
    default_message = "duplicate entry"