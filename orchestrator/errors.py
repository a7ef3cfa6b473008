class ValidationError(ValueError):
    """Caller supplied invalid input; raised before any pipeline work starts."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class SynthesisError(RuntimeError):
    """The language model call failed (transport error, timeout, empty reply)."""

    def __init__(self, message: str, code: str = "unknown"):
        super().__init__(message)
        self.code = code
