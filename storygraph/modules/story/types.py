from __future__ import annotations

import math
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

IDENTIFIER_PATTERN = r"^[a-z][a-z0-9_]*$"
CURRENT_FORMAT_VERSION = "1.0"

NodeId = Annotated[str, StringConstraints(pattern=IDENTIFIER_PATTERN, min_length=1, max_length=64)]
VariableName = Annotated[str, StringConstraints(pattern=IDENTIFIER_PATTERN, min_length=1, max_length=64)]
VariableValue = bool | int | float | str
FormatVersion = Literal["1.0"]
StoryRating = Literal["everyone", "teen", "mature"]


class Position(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    x: float
    y: float

    @field_validator("x", "y")
    @classmethod
    def validate_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("position coordinates must be finite")
        return value


class StoryMeta(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=256)
    author: str | None = Field(default=None, min_length=1, max_length=256)
    version: str | None = Field(default=None, max_length=32)
    description: str | None = Field(default=None, max_length=1024)
    created: str | None = None
    modified: str | None = None
    rating: StoryRating | None = None
    language: Annotated[str, StringConstraints(pattern=r"^[a-z]{2}(-[A-Z]{2})?$")] | None = None
    tags: list[Annotated[str, StringConstraints(max_length=64)]] | None = Field(default=None, max_length=20)
