from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ExportTier = Literal[0, 1, 2]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ExportFile(_WireModel):
    name: str
    contents: str


class ExportWarning(_WireModel):
    code: str
    message: str
    node_id: str | None = None
    details: dict[str, Any] | None = None


class ExportResult(_WireModel):
    files: list[ExportFile] = Field(default_factory=list)
    warnings: list[ExportWarning] = Field(default_factory=list)

    def file(self, name: str) -> ExportFile | None:
        return next((item for item in self.files if item.name == name), None)
