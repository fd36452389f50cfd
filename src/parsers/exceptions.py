class EngineError(Exception):
    pass


class TokenNotFoundError(EngineError):
    """Token metadata could not be fetched, so nothing downstream can run."""

    def __init__(self, address: str) -> None:
        super().__init__(f"token not found: {address}")
        self.address = address


class AnalysisTimeoutError(EngineError):
    pass


class GatewayError(EngineError):
    """Upstream returned data that failed validation after retries."""
