"""Error taxonomy shared by services and routers.

Each error carries the HTTP status it maps to; routers turn them into the
standard ``{message, code, data}`` envelope.
"""


class StudyKitError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StudyKitError):
    """Bad upload: wrong type, unreadable file, empty text."""

    status_code = 400


class FileTooLargeError(ValidationError):
    status_code = 413


class NotFoundError(StudyKitError):
    status_code = 404


class ExpiredSessionError(StudyKitError):
    status_code = 401


class AIResponseError(StudyKitError):
    """The model answered, but not with the JSON shape that was asked for."""

    status_code = 500


class AIServiceError(StudyKitError):
    """The model call itself failed (network, auth, quota)."""

    status_code = 500
