from __future__ import annotations
from pydantic import BaseModel, Field

class DumpOptions(BaseModel):
    width: int = Field(8, ge=1, le=100000, description="bytes shown per hex dump line")
    short_mode: bool = Field(False, description="abbreviate dumps longer than one line with '...'")
