"""
Row Records
===========

Typed row images for the mirrored relational tables.

Each record validates one row (from a change event or a bulk-load scan),
ignores columns the graph does not mirror, and maps relational
snake_case columns to graph camelCase attributes.

Timestamps are normalized so that a bulk-loaded row and the same row
replayed from the change stream produce identical graph attributes:
- datetime / date values (bulk load)
- ISO-8601 strings (Debezium ZonedTimestamp)
- epoch integers: days below 10^5 (DATE), microseconds above 10^14
  (MicroTimestamp), milliseconds otherwise (Timestamp)

All of them are written as UTC ISO-8601 strings.

Version: 0.1.0
"""

from datetime import UTC, date, datetime, timedelta
from typing import Annotated, Any, ClassVar

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from services.graph_sync.errors import RecordValidationError


_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_DAYS_THRESHOLD = 100_000
_MICROS_THRESHOLD = 100_000_000_000_000


# =============================================================================
# Value Normalization
# =============================================================================


def normalize_timestamp(value: Any) -> str | None:
    """Normalize any supported timestamp encoding to a UTC ISO-8601 string."""
    if value is None or value == "":
        return None

    if isinstance(value, bool):
        raise ValueError("boolean is not a timestamp")

    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=UTC)
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day, tzinfo=UTC)
    elif isinstance(value, int | float):
        magnitude = abs(value)
        if magnitude < _DAYS_THRESHOLD:
            dt = _EPOCH + timedelta(days=value)
        elif magnitude > _MICROS_THRESHOLD:
            dt = _EPOCH + timedelta(microseconds=value)
        else:
            dt = _EPOCH + timedelta(milliseconds=value)
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.strip())
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
    else:
        raise ValueError(f"unsupported timestamp type {type(value).__name__}")

    return dt.astimezone(UTC).isoformat()


Timestamp = Annotated[str | None, BeforeValidator(normalize_timestamp)]


# =============================================================================
# Base Record
# =============================================================================


class RowRecord(BaseModel):
    """Base class for a validated row image."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    # relational column -> graph attribute
    GRAPH_FIELDS: ClassVar[dict[str, str]] = {}

    def to_graph_properties(self) -> dict[str, Any]:
        """Mapped attributes, camelCase, with absent values as None."""
        return {attr: getattr(self, column) for column, attr in self.GRAPH_FIELDS.items()}

    def key(self) -> dict[str, Any]:
        """Identity fields, used in logs and errors."""
        return {"id": getattr(self, "id", None)}

    @classmethod
    def from_row(cls, table: str, row: dict[str, Any]) -> "RowRecord":
        """
        Validate a raw row image.

        Raises:
            RecordValidationError: If required columns are missing or invalid
        """
        try:
            return cls.model_validate(row)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise RecordValidationError(
                table,
                f"invalid row image ({', '.join(fields)})",
                key={k: row.get(k) for k in ("id",) if k in row},
            ) from e


class IdKey(RowRecord):
    """Key-only image for node tables."""

    id: int


# =============================================================================
# Node Tables
# =============================================================================


class UserRecord(RowRecord):
    """users -> (:User)"""

    GRAPH_FIELDS: ClassVar[dict[str, str]] = {
        "id": "id",
        "first_name": "firstName",
        "last_name": "lastName",
        "login_email": "email",
        "active": "active",
        "email_verified": "emailVerified",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    }

    id: int
    first_name: str | None = None
    last_name: str | None = None
    login_email: str | None = Field(
        default=None,
        validation_alias=AliasChoices("login_email", "email"),
    )
    active: bool | None = None
    email_verified: bool | None = None
    created_at: Timestamp = None
    updated_at: Timestamp = None


class SkillRecord(RowRecord):
    """skills -> (:Skill)"""

    GRAPH_FIELDS: ClassVar[dict[str, str]] = {
        "id": "id",
        "name": "name",
        "category": "category",
        "description": "description",
        "active": "active",
        "created_at": "createdAt",
    }

    id: int
    name: str | None = None
    category: str | None = None
    description: str | None = None
    active: bool | None = None
    created_at: Timestamp = None


class BusinessRecord(RowRecord):
    """businesses -> (:Business), (:User)-[:OPERATES]->(:Business)"""

    GRAPH_FIELDS: ClassVar[dict[str, str]] = {
        "id": "id",
        "name": "name",
        "tagline": "tagline",
        "business_type": "businessType",
        "business_category": "businessCategory",
        "business_phase": "businessPhase",
        "description": "description",
        "website": "website",
        "active": "active",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    }

    id: int
    operator_user_id: int
    name: str | None = None
    tagline: str | None = None
    business_type: str | None = None
    business_category: str | None = None
    business_phase: str | None = None
    description: str | None = None
    website: str | None = None
    active: bool | None = None
    created_at: Timestamp = None
    updated_at: Timestamp = None


class ProjectRecord(RowRecord):
    """projects -> (:Project), MANAGES and optional HAS_PROJECT edges"""

    GRAPH_FIELDS: ClassVar[dict[str, str]] = {
        "id": "id",
        "name": "name",
        "description": "description",
        "project_status": "projectStatus",
        "start_date": "startDate",
        "target_end_date": "targetEndDate",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    }

    id: int
    managed_by_user_id: int
    business_id: int | None = None
    name: str | None = None
    description: str | None = None
    project_status: str | None = None
    start_date: Timestamp = None
    target_end_date: Timestamp = None
    created_at: Timestamp = None
    updated_at: Timestamp = None


# =============================================================================
# Association Tables
# =============================================================================


class UserSkillKey(RowRecord):
    user_id: int
    skill_id: int

    def key(self) -> dict[str, Any]:
        return {"user_id": self.user_id, "skill_id": self.skill_id}


class UserSkillRecord(UserSkillKey):
    """user_skills -> (:User)-[:HAS_SKILL]->(:Skill)"""

    GRAPH_FIELDS: ClassVar[dict[str, str]] = {
        "proficiency_level": "proficiencyLevel",
        "created_at": "createdAt",
    }

    proficiency_level: str | None = None
    created_at: Timestamp = None


class ProjectSkillKey(RowRecord):
    project_id: int
    skill_id: int

    def key(self) -> dict[str, Any]:
        return {"project_id": self.project_id, "skill_id": self.skill_id}


class ProjectSkillRecord(ProjectSkillKey):
    """project_skills -> (:Project)-[:REQUIRES_SKILL]->(:Skill)"""

    GRAPH_FIELDS: ClassVar[dict[str, str]] = {
        "importance": "importance",
    }

    importance: str | None = None


class BusinessConnectionKey(RowRecord):
    initiating_business_id: int
    receiving_business_id: int
    connection_type: str

    def key(self) -> dict[str, Any]:
        return {
            "initiating_business_id": self.initiating_business_id,
            "receiving_business_id": self.receiving_business_id,
            "connection_type": self.connection_type,
        }


class BusinessConnectionRecord(BusinessConnectionKey):
    """business_connections -> (:Business)-[:CONNECTS_TO]->(:Business)"""

    GRAPH_FIELDS: ClassVar[dict[str, str]] = {
        "status": "status",
        "initiated_by_user_id": "initiatedByUserId",
        "notes": "notes",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    }

    status: str | None = None
    initiated_by_user_id: int | None = None
    notes: str | None = None
    created_at: Timestamp = None
    updated_at: Timestamp = None
