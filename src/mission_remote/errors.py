"""Error types raised inside the RPC core.

The client maps every one of these to an RpcOutcome before returning;
only ConfigurationError reaches callers, and only at construction time.
"""


class TransmissionError(Exception):
    """Base class for all mission_remote errors."""

    pass


class ConfigurationError(TransmissionError):
    """Raised when a host or its credentials are incomplete."""

    pass


class TransportError(TransmissionError):
    """No response was received (DNS, refused connection, TLS, timeout)."""

    pass


class ProtocolError(TransmissionError):
    """A 200 response whose body does not have the expected shape."""

    def __init__(self, message: str, body: str = "") -> None:
        self.body = body
        super().__init__(message)


class RejectedError(TransmissionError):
    """The server answered 200 but reported `result` other than success."""

    def __init__(self, result: str, body: str = "") -> None:
        self.result = result
        self.body = body
        super().__init__(f"Server rejected the request: {result}")


class StaleSessionError(TransmissionError):
    """The session token could not be refreshed within the retry bound."""

    def __init__(self, attempts: int, body: str = "") -> None:
        self.attempts = attempts
        self.body = body
        super().__init__(
            f"Session token still rejected after {attempts} refresh attempt(s)"
        )
