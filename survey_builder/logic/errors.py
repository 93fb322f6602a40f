"""Domain error kinds for the survey builder service.

Each error carries a stable ``code`` and the HTTP ``status`` it maps to so
the exception handlers in ``survey_builder.http.problem`` stay free of
hardcoded numbers.
"""

from __future__ import annotations


class SurveyBuilderError(Exception):
    code = "INTERNAL_ERROR"
    status = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AlreadyExists(SurveyBuilderError):
    code = "ALREADY_EXISTS"
    status = 409
    default_message = "Username already exists"


class InvalidCredentials(SurveyBuilderError):
    code = "INVALID_CREDENTIALS"
    status = 401
    default_message = "Invalid username or password"


class NotFound(SurveyBuilderError):
    code = "NOT_FOUND"
    status = 404
    default_message = "Not found"


class OwnerNotFound(SurveyBuilderError):
    # Surfaced as 500: a response submitted for an owner without a record
    # means the directory/data coupling was broken.
    code = "OWNER_NOT_FOUND"
    status = 500
    default_message = "Survey owner not found."


class ValidationError(SurveyBuilderError):
    code = "VALIDATION_ERROR"
    status = 400
    default_message = "Invalid request"


class GatewayFailure(SurveyBuilderError):
    code = "GATEWAY_FAILURE"
    status = 500
    default_message = "Survey conversion failed"


class MethodNotAllowed(SurveyBuilderError):
    code = "METHOD_NOT_ALLOWED"
    status = 405
    default_message = "Method Not Allowed"


class InternalError(SurveyBuilderError):
    pass


ERROR_STATUS_MAP = {
    cls.code: cls.status
    for cls in (
        AlreadyExists,
        InvalidCredentials,
        NotFound,
        OwnerNotFound,
        ValidationError,
        GatewayFailure,
        MethodNotAllowed,
        InternalError,
    )
}

__all__ = [
    "SurveyBuilderError",
    "AlreadyExists",
    "InvalidCredentials",
    "NotFound",
    "OwnerNotFound",
    "ValidationError",
    "GatewayFailure",
    "MethodNotAllowed",
    "InternalError",
    "ERROR_STATUS_MAP",
]
