from .enums import WebSocketError


class WebSocketException(Exception):
    """A transport fault tagged with the wrapper's error code."""

    def __init__(self, error_code: WebSocketError, message: str = ""):
        super().__init__(message or error_code.name)
        self.error_code = error_code
        self.message = message or error_code.name

    def __repr__(self) -> str:
        return f"WebSocketException(error_code={self.error_code.name}, message={self.message!r})"
