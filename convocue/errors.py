"""Error taxonomy for the external service boundary."""


class ConvoCueError(Exception):
    """Base class for all ConvoCue errors."""


class ServiceLoadError(ConvoCueError):
    """An STT or LLM service failed to initialize (missing key, unreachable)."""


class RequestTimeoutError(ConvoCueError):
    """A request exceeded the soft timeout. Cosmetic only: the request stays live."""


class RequestFailureError(ConvoCueError):
    """A service returned an explicit error for a request."""


class MalformedResponseError(ConvoCueError):
    """A suggestion response could not be parsed as structured output."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw
