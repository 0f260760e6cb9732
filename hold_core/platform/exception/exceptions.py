class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class MissingConfigurationError(CustomBaseError):
    """A collaborator cannot be built because required settings are absent."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f'Missing required configuration: {", ".join(missing)}', 500)


class ReservationReadError(CustomBaseError):
    """The reservation store could not be read (distinct from an empty result)."""

    def __init__(self, message: str, *, site_id: str | None = None) -> None:
        self.site_id = site_id
        super().__init__(message, 503)


class UpstreamRequestError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 502)


class UpstreamTimeoutError(CustomBaseError):
    def __init__(self, message: str, *, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(message, 504)
