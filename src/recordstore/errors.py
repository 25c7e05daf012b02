"""Exception hierarchy for the record store."""


class RecordStoreError(Exception):
    """Base exception for all record store errors."""


class NotConfiguredError(RecordStoreError):
    """Lidarr URL or API key has not been saved."""

    def __init__(self, message: str = "Lidarr is not configured") -> None:
        super().__init__(message)


class UpstreamError(RecordStoreError):
    """An external API answered with a non-2xx status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ConfigurationIncompleteError(RecordStoreError):
    """Root folder, quality profile or metadata profile could not be resolved."""


class NotFoundUpstreamError(RecordStoreError):
    """Lidarr lookup returned nothing for either identifier form."""


class DuplicateRequestError(RecordStoreError):
    """The user already requested this catalog item."""


class RequestNotFoundError(RecordStoreError):
    """No request with the given id."""


class AuthenticationRequiredError(RecordStoreError):
    """Operation needs a session and none was given."""


class PermissionDeniedError(RecordStoreError):
    """Session role is not allowed to perform the operation."""


class ValidationError(RecordStoreError):
    """Invalid input to a service operation."""
