from __future__ import annotations
from pydantic import BaseModel, ConfigDict

class Point(BaseModel):
    """Integer 2D point/vector used to accumulate decoded coordinates."""
    model_config = ConfigDict(frozen=True)

    x: int = 0
    y: int = 0

    def __add__(self, other: "Point") -> "Point":
        return Point(x=self.x + other.x, y=self.y + other.y)

    def __str__(self) -> str:
        return f"{self.x},{self.y}"
