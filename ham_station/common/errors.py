"""Domain errors and failure typing."""


class GeocodeError(Exception):
    """Base class for geocoding tool failures."""

    error_code = "GEOCODE_ERROR"


class ConfigError(GeocodeError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class StageError(GeocodeError):
    """Raised when a command cannot complete with the inputs it was given."""

    error_code = "STAGE_ERROR"


class UpstreamSystemicError(GeocodeError):
    """The geocoding provider rejected the run as a whole (quota, auth, bad request shape)."""

    error_code = "UPSTREAM_SYSTEMIC"

    def __init__(self, message: str, *, status: str, counts_as_error: bool = True) -> None:
        super().__init__(message)
        self.status = status
        self.counts_as_error = counts_as_error


class UpstreamRecordError(GeocodeError):
    """The provider could not answer for one record; the record stays pending."""

    error_code = "UPSTREAM_RECORD"

    def __init__(self, message: str, *, status: str | None = None) -> None:
        super().__init__(message)
        self.status = status
