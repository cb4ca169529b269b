from __future__ import annotations


class DumpError(ValueError):
    """Fatal format error. Carries the stream position and, when known, the cell."""

    def __init__(self, message: str, position: int, cell: str | None = None):
        self.message = message
        self.position = position
        self.cell = cell
        super().__init__(message)

    def __str__(self) -> str:
        if self.cell is not None:
            return f"{self.message} (position={self.position}, cell={self.cell})"
        return f"{self.message} (position={self.position})"


class UnexpectedEndOfInput(DumpError):
    pass
