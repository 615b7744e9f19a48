class CacheInvariantError(RuntimeError):
    """The cache bookkeeping reached a state that correct replay can never produce.

    Raised by the cache core when the recency order, the line grid and the
    statistics disagree. The run's statistics are meaningless afterwards, so
    nothing in the package catches it.
    """


class TraceFormatError(ValueError):
    """A trace line could not be turned into an access record."""

    def __init__(self, message: str, line_no: int = 0, line: str = ""):
        self.line_no = line_no
        self.line = line
        if line_no:
            message = f"line {line_no}: {message}"
        super().__init__(message)
