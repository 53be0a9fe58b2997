"""Exceptions raised by the KYC verification service."""


class KycError(Exception):
    """Base exception for KYC verification errors."""

    status_code: int = 500

    def __init__(self, message: str, application_id: str | None = None, cause: Exception | None = None):
        self.message = message
        self.application_id = application_id
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.status_code,
            "error": self.__class__.__name__,
            "message": self.message,
            "application_id": self.application_id,
        }


class KycInputError(KycError):
    """Personal information is missing a field the checks need."""

    status_code = 400

    def __init__(self, message: str, field_names: list[str] | None = None, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.field_names = field_names or []

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["fields"] = self.field_names
        return result


class ApplicationNotFoundError(KycError):
    status_code = 404

    def __init__(self, application_id: str):
        super().__init__("Application not found", application_id)


class KycAlreadyInitiatedError(KycError):
    """KYC was already run for the application, or it has no personal info yet."""

    status_code = 400

    def __init__(self, application_id: str):
        super().__init__("KYC already initiated or application not ready", application_id)


class KycNotFoundError(KycError):
    status_code = 404

    def __init__(self, application_id: str):
        super().__init__("Application or KYC verification not found", application_id)


class KycVerificationFailedError(KycError):
    """The provider call itself broke (not a negative verification outcome)."""

    status_code = 500

    def __init__(self, application_id: str, cause: Exception | None = None):
        super().__init__("KYC verification failed", application_id, cause)
