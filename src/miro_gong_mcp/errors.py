"""Errors raised when an upstream platform call fails."""


class UpstreamError(Exception):
    """A Miro or Gong request failed.

    Carries the operation that was attempted, the HTTP status code when the
    server answered, and a readable message.
    """

    def __init__(self, operation: str, message: str, status_code: int | None = None):
        self.operation = operation
        self.status_code = status_code
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.operation} failed (HTTP {self.status_code}): {self.message}"
        return f"{self.operation} failed: {self.message}"
