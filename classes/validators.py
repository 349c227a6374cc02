# Request and stored-JSON shapes, validated before they reach grading or rendering.
import math
import uuid
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from models.questions import QUESTION_TYPES
from utils.errors import ValidationFailed

MAX_SELECTED_OPTIONS = 20
MAX_BUILDER_QUESTIONS = 200


def _check_uuid(value):
    uuid.UUID(str(value))
    return value


class SubmitAnswersRequest(BaseModel):
    """Answers are kept exactly as submitted; ids only have to parse as UUIDs."""

    answers: Dict[str, List[str]]

    @field_validator("answers")
    @classmethod
    def check_answers(cls, value):
        for question_id, option_ids in value.items():
            if len(option_ids) > MAX_SELECTED_OPTIONS:
                raise ValueError(f"At most {MAX_SELECTED_OPTIONS} options may be selected per question.")
            try:
                _check_uuid(question_id)
                for option_id in option_ids:
                    _check_uuid(option_id)
            except ValueError:
                raise ValueError("Question and option ids must be UUIDs.")
        return value


class Placement(BaseModel):
    """Where the learner's name goes on the template. Coordinates are fractions of the page, y from the top."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    page: int = Field(ge=1)
    x_pct: float = Field(alias="xPct", ge=0, le=1)
    y_pct: float = Field(alias="yPct", ge=0, le=1)
    w_pct: Optional[float] = Field(default=None, alias="wPct", ge=0, le=1)
    h_pct: Optional[float] = Field(default=None, alias="hPct", ge=0, le=1)
    font_size: Optional[float] = Field(default=None, alias="fontSize", ge=6, le=200)
    color: Optional[str] = None
    align: Optional[Literal["left", "center", "right"]] = None

    def to_json(self):
        return self.model_dump(by_alias=True, exclude_none=True)


def _finite_or_none(value):
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


class StoredPlacement(BaseModel):
    """Placement as read back for rendering. Only a numeric page is required; the renderer clamps the rest."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    page: float
    x_pct: Optional[float] = Field(default=None, alias="xPct")
    y_pct: Optional[float] = Field(default=None, alias="yPct")
    font_size: Optional[float] = Field(default=None, alias="fontSize")
    color: Optional[str] = None
    align: Optional[str] = None

    @field_validator("page", mode="before")
    @classmethod
    def page_must_be_a_number(cls, value):
        if isinstance(value, bool) or _finite_or_none(value) is None:
            raise ValueError("page must be a number")
        return float(value)

    @field_validator("x_pct", "y_pct", "font_size", mode="before")
    @classmethod
    def numbers_or_none(cls, value):
        return None if isinstance(value, bool) else _finite_or_none(value)

    @field_validator("color", mode="before")
    @classmethod
    def color_or_none(cls, value):
        return value if isinstance(value, str) else None

    @field_validator("align", mode="before")
    @classmethod
    def known_align_or_none(cls, value):
        return value if value in ("left", "center", "right") else None


class CertificateSettingsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: Optional[bool] = Field(default=None, strict=True)
    certificate_title: Optional[str] = Field(default=None, max_length=2000)
    course_passing_grade_percent: Optional[int] = Field(default=None, ge=0, le=100, strict=True)
    name_placement_json: Optional[Placement] = None


class BuilderOption(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1, max_length=500)
    is_correct: bool = Field(default=False, strict=True)


class BuilderQuestion(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: str
    prompt: str = Field(min_length=2, max_length=5000)
    points: int = Field(default=1, ge=1, le=100, strict=True)
    options: List[BuilderOption] = Field(min_length=2, max_length=10)

    @field_validator("type")
    @classmethod
    def known_type(cls, value):
        if value not in QUESTION_TYPES:
            raise ValueError(f"type must be one of {', '.join(QUESTION_TYPES)}")
        return value


class BuilderTestSettings(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=2, max_length=200)
    max_attempts: Optional[int] = Field(default=None, ge=1, le=50, strict=True)
    pass_score: Optional[int] = Field(default=None, ge=0, le=100, strict=True)


class BuilderRequest(BaseModel):
    """Full replacement of a test's questions, with optional test settings."""

    test: Optional[BuilderTestSettings] = None
    questions: List[BuilderQuestion] = Field(max_length=MAX_BUILDER_QUESTIONS)


def validate_body(model, data):
    """Validate a request body, turning pydantic errors into a VALIDATION_ERROR response."""
    if data is None:
        raise ValidationFailed("Invalid request.")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        location = ".".join(str(p) for p in first.get("loc", ()))
        message = first.get("msg", "Invalid request.")
        raise ValidationFailed(f"{location}: {message}" if location else message)


def parse_placement(raw):
    """Stored placement for rendering, or None when it is missing or has no numeric page."""
    if not isinstance(raw, dict):
        return None
    try:
        return StoredPlacement.model_validate(raw)
    except ValidationError:
        return None
