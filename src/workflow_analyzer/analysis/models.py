"""Backlog models parsed from the LLM's workflow interpretation.

Model replies are loosely typed, so validation here normalizes rather than
rejects: scalars become one-item lists, unparseable numbers become 0 and
empty or missing text falls back to a placeholder.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

Level = Literal["high", "medium", "low"]


def _normalize_level(value: Any) -> str:
    text = str(value or "").strip().lower()
    return text if text in {"high", "medium", "low"} else "medium"


def _as_text_list(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and item != ""]
    return [str(value)]


def _as_hours(value: Any) -> float:
    if isinstance(value, bool):
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def _as_records(value: Any, key: str) -> List[Any]:
    # A bare string where an object is expected becomes {key: string}.
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    records: List[Any] = []
    for item in items:
        if isinstance(item, (dict, BaseModel)):
            records.append(item)
        elif isinstance(item, (str, int, float)) and not isinstance(item, bool):
            records.append({key: str(item)})
    return records


class _InsightModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class Task(_InsightModel):
    task_id: str = ""
    title: str = ""
    description: str = ""
    estimated_hours: float = 0

    @field_validator("estimated_hours", mode="before")
    @classmethod
    def lenient_hours(cls, value: Any) -> float:
        return _as_hours(value)


class UserStory(_InsightModel):
    story_id: str = ""
    title: str = ""
    as_a: str = ""
    i_want: str = ""
    so_that: str = ""
    acceptance_criteria: List[str] = Field(default_factory=list)
    tasks: List[Task] = Field(default_factory=list)

    @field_validator("acceptance_criteria", mode="before")
    @classmethod
    def lenient_criteria(cls, value: Any) -> List[str]:
        return _as_text_list(value)

    @field_validator("tasks", mode="before")
    @classmethod
    def lenient_tasks(cls, value: Any) -> List[Any]:
        return _as_records(value, "title")

    def narrative(self) -> str:
        return f"{self.as_a}, {self.i_want} {self.so_that}"


class Epic(_InsightModel):
    epic_id: str = ""
    title: str = ""
    description: str = ""
    business_value: str = ""
    acceptance_criteria: List[str] = Field(default_factory=list)
    estimated_effort: str = ""
    priority: Level = "medium"

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, value: Any) -> str:
        return _normalize_level(value)

    @field_validator("acceptance_criteria", mode="before")
    @classmethod
    def lenient_criteria(cls, value: Any) -> List[str]:
        return _as_text_list(value)


class Feature(_InsightModel):
    feature_id: str = ""
    epic_id: str = ""
    title: str = ""
    description: str = ""
    user_stories: List[UserStory] = Field(default_factory=list)

    @field_validator("user_stories", mode="before")
    @classmethod
    def lenient_stories(cls, value: Any) -> List[Any]:
        return _as_records(value, "title")


class TargetProcessImplementation(_InsightModel):
    process_name: str = "Unknown process"
    target_system: str = "Not specified"
    implementation_approach: str = "Not specified"
    key_stakeholders: List[str] = Field(default_factory=list)
    success_metrics: List[str] = Field(default_factory=list)

    @field_validator("key_stakeholders", "success_metrics", mode="before")
    @classmethod
    def lenient_lists(cls, value: Any) -> List[str]:
        return _as_text_list(value)


class RiskItem(_InsightModel):
    risk: str = "Unspecified risk"
    impact: Level = "medium"
    mitigation: str = ""

    @field_validator("impact", mode="before")
    @classmethod
    def normalize_impact(cls, value: Any) -> str:
        return _normalize_level(value)


class WorkflowInsights(_InsightModel):
    """Structured backlog interpretation of a board."""

    workflow_summary: str = "No summary provided"
    epics: List[Epic] = Field(default_factory=list)
    features: List[Feature] = Field(default_factory=list)
    target_process_implementation: TargetProcessImplementation = Field(
        default_factory=TargetProcessImplementation
    )
    business_value: str = "Business value not specified"
    estimated_time_to_market: Optional[str] = None
    risk_assessment: List[RiskItem] = Field(default_factory=list)
    # Set only on degraded results.
    raw_response_excerpt: Optional[str] = None

    @field_validator("workflow_summary", "business_value", mode="before")
    @classmethod
    def blank_to_placeholder(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("epics", "features", mode="before")
    @classmethod
    def lenient_backlog(cls, value: Any) -> List[Any]:
        return _as_records(value, "title")

    @field_validator("risk_assessment", mode="before")
    @classmethod
    def lenient_risks(cls, value: Any) -> List[Any]:
        return _as_records(value, "risk")

    @field_validator("target_process_implementation", mode="before")
    @classmethod
    def lenient_implementation(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, TargetProcessImplementation)) else {}

    @property
    def user_story_count(self) -> int:
        return sum(len(feature.user_stories) for feature in self.features)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
