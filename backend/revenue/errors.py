"""Error taxonomy for the yield engine."""


class YieldError(Exception):
    """Base class for every error raised by the yield engine."""


class ValidationError(YieldError):
    """Malformed strategy definition or metrics snapshot."""


class NotFoundError(YieldError):
    """Operation on a strategy id that is not in the registry."""

    def __init__(self, strategy_id: str):
        super().__init__(f"Strategy not found: {strategy_id}")
        self.strategy_id = strategy_id


class UpstreamFetchError(YieldError):
    """Metrics / historical-data provider unavailable or returned garbage."""

    def __init__(self, message: str, *, endpoint: str | None = None):
        super().__init__(message)
        self.endpoint = endpoint
