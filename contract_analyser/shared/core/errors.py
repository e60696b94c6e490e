"""
Error taxonomy shared by every pipeline stage.

Collaborator failures are converted into one of these classes at the adapter
boundary, so callers never see raw SDK exceptions.
"""

from typing import Optional


class ContractAnalyserError(Exception):
    """Base class; carries the HTTP status the API layer responds with."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ContractAnalyserError):
    """Missing or malformed input."""

    status_code = 400


class AuthError(ContractAnalyserError):
    """Missing, invalid or expired credential."""

    status_code = 401


class ForbiddenError(AuthError):
    """Authenticated caller lacks permission for the operation."""

    status_code = 403


class NotFoundError(ContractAnalyserError):
    """Referenced record or blob does not exist."""

    status_code = 404


class AnalysisError(ContractAnalyserError):
    """
    LLM call or model-output failure.

    Attributes:
        kind: one of the ``AnalysisError.*`` kind constants
    """

    status_code = 500

    TRANSIENT_PROVIDER = "transient_provider"
    PROVIDER_ERROR = "provider_error"
    EMPTY_MODEL_OUTPUT = "empty_model_output"
    INVALID_MODEL_OUTPUT = "invalid_model_output"
    TIMEOUT = "timeout"

    def __init__(self, message: str, kind: str = PROVIDER_ERROR):
        super().__init__(message)
        self.kind = kind

    @property
    def is_transient(self) -> bool:
        return self.kind == self.TRANSIENT_PROVIDER

    def __repr__(self) -> str:
        return f"AnalysisError({self.kind}: {self.message})"


class DeliveryError(ContractAnalyserError):
    """Outbound email or blob storage provider failure."""

    status_code = 502
