"""Person entity and the result types shared by the integrity tools."""

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Gender = Literal["male", "female", "unknown"]
LivingStatus = Literal["living", "deceased", "unknown"]
Severity = Literal["error", "warning"]

_YEAR_PATTERN = re.compile(r"\d{4}")

_GENDER_ALIASES = {
    "male": "male",
    "m": "male",
    "female": "female",
    "f": "female",
}


def extract_year(date_str: str | None) -> int | None:
    """Extract the first 4-digit run from a free-text date ("12 JAN 1990" -> 1990)."""
    if not date_str:
        return None
    match = _YEAR_PATTERN.search(date_str)
    return int(match.group(0)) if match else None


class CamelModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Person(CamelModel):
    """A single person in one family tree.

    Records are read-only snapshots; relationship ids may dangle or
    disagree with each other, which is what the validator reports on.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)

    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    maiden_name: str | None = None
    nickname: str | None = None
    name_prefix: str | None = None
    name_suffix: str | None = None

    gender: Gender = "unknown"

    birth_date: str | None = None
    place_of_birth: str | None = None
    death_date: str | None = None
    place_of_death: str | None = None

    parent_id1: str | None = None
    parent_id2: str | None = None
    spouse_ids: list[str] = Field(default_factory=list)
    children_ids: list[str] = Field(default_factory=list)

    living_status: LivingStatus | None = None

    occupation: str | None = None
    education: str | None = None
    religion: str | None = None
    biography: str | None = None

    profile_picture_url: str | None = None

    x: float | None = Field(default=None, allow_inf_nan=False)
    y: float | None = Field(default=None, allow_inf_nan=False)

    @field_validator("gender", mode="before")
    @classmethod
    def _coerce_gender(cls, value: Any) -> str:
        # Upstream data also carries "other", "neutral" or nothing at all
        if isinstance(value, str):
            return _GENDER_ALIASES.get(value.strip().lower(), "unknown")
        return "unknown"

    @field_validator("spouse_ids", "children_ids", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("parent_id1", "parent_id2", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @property
    def display_name(self) -> str:
        return f"{self.first_name or 'Unknown'} {self.last_name or ''}".strip()

    @property
    def birth_year(self) -> int | None:
        return extract_year(self.birth_date)

    @property
    def death_year(self) -> int | None:
        return extract_year(self.death_date)

    @property
    def parent_ids(self) -> list[str]:
        """Non-empty parent ids in slot order."""
        return [pid for pid in (self.parent_id1, self.parent_id2) if pid]


# ============================================================================
# Duplicate detection results
# ============================================================================

class DuplicateMatch(CamelModel):
    """A candidate duplicate pair with the reasons behind its score."""
    person1: Person
    person2: Person
    confidence: int = Field(ge=0, le=100)
    reasons: list[str] = Field(default_factory=list)


class DuplicateDetectionResult(CamelModel):
    has_duplicates: bool
    matches: list[DuplicateMatch]


# ============================================================================
# Validation results
# ============================================================================

class ValidationIssue(CamelModel):
    """One problem found in the tree, tagged to the person that carries it."""
    person_id: str
    person_name: str
    field: str
    severity: Severity
    message: str
    how_to_fix: str


class ValidationResult(CamelModel):
    has_errors: bool
    has_warnings: bool
    issues: list[ValidationIssue]

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "warning"]


class OrphanedReferenceFix(CamelModel):
    """Link-removal edits for one person.

    `updates` maps Person field names to their new values: dangling parent
    slots become None, dangling ids are dropped from spouse/children lists.
    """
    person_id: str
    person_name: str
    updates: dict[str, Any]
    description: str


# ============================================================================
# GEDCOM import results
# ============================================================================

class GedcomImportResult(CamelModel):
    people: list[Person]
    family_count: int = 0
    header: dict[str, str] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
