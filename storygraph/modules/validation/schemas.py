from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["error", "warning", "info"]
IssueCategory = Literal["structure", "reference", "content", "accessibility", "best-practice"]

SEVERITY_RANK: dict[str, int] = {"error": 0, "warning": 1, "info": 2}


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Issue(_WireModel):
    code: str
    severity: Severity
    category: IssueCategory
    message: str
    node_id: str | None = None
    details: dict[str, Any] | None = None


class IssueCounts(_WireModel):
    error: int = 0
    warning: int = 0
    info: int = 0


class ValidationResult(_WireModel):
    valid: bool
    issues: list[Issue] = Field(default_factory=list)
    counts: IssueCounts = Field(default_factory=IssueCounts)
    duration_ms: float = 0.0


def issue_sort_key(issue: Issue) -> tuple[int, str, str, str]:
    return (SEVERITY_RANK[issue.severity], issue.code, issue.node_id or "", issue.message)
