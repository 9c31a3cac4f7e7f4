# A base class for all custom service-related exceptions.
# Views catch these and turn them into JSON error responses.
class ServiceError(Exception):
    """Base class for service-related errors."""
    pass


class FileProcessingError(Exception):
    """Raised when there is an error processing a file."""
    pass


# --- Onboarding ---

class InvalidTransition(ServiceError):
    """Raised when an onboarding operation is not allowed in the current state."""
    status_code = 409


class AccountWriteError(ServiceError):
    """Raised when the completed onboarding profile could not be written."""
    pass


# --- Material submission ---

class MaterialSubmissionError(ServiceError):
    """Base class for errors raised by the material submission pipeline."""
    kind = "submission_error"
    status_code = 400


class FileTooLarge(MaterialSubmissionError):
    kind = "file_too_large"
    status_code = 413


class UnsupportedType(MaterialSubmissionError):
    kind = "unsupported_type"


class MetadataInvalid(MaterialSubmissionError):
    """Carries a field -> message mapping, like the onboarding validation errors."""
    kind = "metadata_invalid"

    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{field}: {message}" for field, message in self.errors.items()))


class StorageUnavailable(MaterialSubmissionError):
    """The blob could not be stored. No record was created."""
    kind = "storage_unavailable"
    status_code = 503


class RecordPersistFailed(MaterialSubmissionError):
    """The blob was stored but the record could not be written."""
    kind = "record_persist_failed"
    status_code = 500

    def __init__(self, message, locator=None):
        self.locator = locator
        super().__init__(message)


# --- Moderation ---

class ModerationError(ServiceError):
    status_code = 400


class NotFound(ModerationError):
    status_code = 404


class AlreadyResolved(ModerationError):
    """Another moderator resolved the record first. Refresh and re-display."""
    status_code = 409
