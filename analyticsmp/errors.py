# analyticsmp/errors.py


class AnalyticsError(Exception):
    """Base class for errors raised while building or sending a hit."""


class ConfigurationError(AnalyticsError):
    """No tracking ID could be resolved for a hit."""


class TransportError(AnalyticsError):
    """The collect request could not be delivered."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status
