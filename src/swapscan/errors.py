"""Error types raised by the scanner and the block walker."""


class ScanError(Exception):
    """Coded failure surfaced by swapscan.

    The code follows HTTP conventions: 400 for missing or invalid input,
    500 for unexpected data coming back from a collaborator.
    """

    def __init__(self, code: int, message: str):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message

    def as_pair(self) -> tuple[int, str]:
        """Return the error as a (code, message) pair."""
        return (self.code, self.message)

    def __repr__(self) -> str:
        return f"ScanError(code={self.code}, message={self.message!r})"
