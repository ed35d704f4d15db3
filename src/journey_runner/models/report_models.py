"""Run report data models.

The run report is the structured record of one journey execution: a
timeline of visited pages, the values collected along the way and the
errors raised. It is serialized as JSON with errors stored as message
strings, never as exception objects.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LifecycleState(str, Enum):
    """States of the journey lifecycle engine."""

    START = "start"
    PROCESSING_PAGE = "processing_page"
    FINISHED = "finished"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (LifecycleState.FINISHED, LifecycleState.ERRORED)


class OperationStatus(str, Enum):
    """Outcome of a best-effort page operation."""

    SET = "set"
    SKIPPED = "skipped"
    FAILED = "failed"


class FieldResult(BaseModel):
    """Outcome of filling one form field."""

    selector: str = Field(description="Resolved element selector")
    value: Any = Field(default=None, description="Value applied to the field")
    status: OperationStatus = Field(description="Fill outcome")
    reason: Optional[str] = Field(default=None, description="Skip or failure reason")


class CollectResult(BaseModel):
    """A named value that could not be collected from the page."""

    name: str = Field(description="Logical value name")
    selector: str = Field(description="Element selector")
    status: OperationStatus = Field(description="Collection outcome")
    reason: Optional[str] = Field(default=None, description="Failure reason")


class AccessibilityNode(BaseModel):
    """One offending DOM node of an accessibility violation."""

    target: str = Field(description="Comma-joined target selectors")
    html: str = Field(default="", description="Offending markup")
    summary: str = Field(default="", description="Node failure summary")


class AccessibilityFinding(BaseModel):
    """An accessibility rule violation that survived the ignore table."""

    id: str = Field(description="axe rule id")
    impact: Optional[str] = Field(default=None, description="Impact severity")
    summary: str = Field(default="", description="Human readable summary")
    nodes: List[AccessibilityNode] = Field(
        default_factory=list, description="Offending nodes"
    )

    def describe(self) -> str:
        targets = "; ".join(node.target for node in self.nodes)
        return f"[{self.impact or 'unknown'}] {self.id}: {self.summary} ({targets})"


class ReportEntry(BaseModel):
    """Report entry for one processed page."""

    time: int = Field(description="Elapsed ms since the previous page")
    url: str = Field(description="Page URL")
    collect: Optional[Dict[str, str]] = Field(
        default=None, description="Values collected on this page"
    )
    collect_failures: Optional[List[CollectResult]] = Field(
        default=None, alias="collectFailures", description="Keys that could not be collected"
    )
    field_results: Optional[List[FieldResult]] = Field(
        default=None, alias="fields", description="Per-field fill results"
    )
    axe: Optional[List[AccessibilityFinding]] = Field(
        default=None, description="Accessibility findings"
    )

    model_config = ConfigDict(populate_by_name=True)


class RunReport(BaseModel):
    """Structured record of one journey execution."""

    report: List[ReportEntry] = Field(default_factory=list, description="Page timeline")
    values: Dict[str, str] = Field(default_factory=dict, description="Collected values")
    errors: Optional[List[str]] = Field(default=None, description="Error messages")
    state: LifecycleState = Field(
        default=LifecycleState.START, description="Final lifecycle state"
    )

    @field_validator("errors", mode="before")
    @classmethod
    def _errors_as_messages(cls, value: Any) -> Any:
        if value is None:
            return None
        messages = [str(e) if isinstance(e, BaseException) else e for e in value]
        return messages or None

    @property
    def failed(self) -> bool:
        return self.state == LifecycleState.ERRORED

    @property
    def error(self) -> Optional[str]:
        """The last recorded error message, if any."""
        return self.errors[-1] if self.errors else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted report structure.

        Optional per-page keys are omitted when empty; ``errors`` is always
        present and null when the run produced no errors.
        """
        return {
            "report": [
                entry.model_dump(mode="json", by_alias=True, exclude_none=True)
                for entry in self.report
            ],
            "values": dict(self.values),
            "errors": list(self.errors) if self.errors else None,
            "state": self.state.value,
        }

    def to_json(self, pretty: bool = True) -> str:
        if pretty:
            return json.dumps(self.to_dict(), indent=2, default=str)
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_json(cls, data: str) -> "RunReport":
        return cls.model_validate(json.loads(data))
