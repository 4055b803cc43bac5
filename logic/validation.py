"""Pydantic schemas and helpers for validating API input and engine payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from models.decision import Direction, SubAction
from models.taxonomy import INTEREST_IDS, normalise_tag


class SessionRequest(BaseModel):
    """Opens (or resumes) a user session."""

    user_id: str = Field(min_length=1, max_length=128)


class InterestsRequest(BaseModel):
    """Replaces the interest set used to filter catalog pages."""

    interests: List[str] = Field(default_factory=list)

    @field_validator("interests")
    @classmethod
    def _known_interests(cls, values: List[str]) -> List[str]:
        cleaned: List[str] = []
        for value in values:
            tag = normalise_tag(value)
            if tag not in INTEREST_IDS:
                raise ValueError(f"Unknown interest '{value}'")
            if tag not in cleaned:
                cleaned.append(tag)
        return cleaned


class DecisionRequest(BaseModel):
    direction: Direction
    sub_action: Optional[SubAction] = None


class ResolveRequest(BaseModel):
    sub_action: SubAction

    @field_validator("sub_action")
    @classmethod
    def _not_none(cls, value: SubAction) -> SubAction:
        if value is SubAction.NONE:
            raise ValueError("sub_action must be 'save' or 'bag'")
        return value


class BlockedTagRequest(BaseModel):
    tag: str = Field(min_length=1, max_length=64)
    blocked: bool = True


class ScanRequest(BaseModel):
    """Room scan input: an optional base64 photo plus free text."""

    image_base64: Optional[str] = None
    text: str = Field(default="", max_length=1000)


PickAction = Literal["save", "bag", "dismiss"]


class ValidationResult(BaseModel):
    """Wrapper returned to callers when validation fails."""

    status: Literal["needs_review"] = "needs_review"
    message: str
    details: List[Dict[str, Any]]


def validation_failure(message: str, exc: ValidationError | Any) -> Dict[str, Any]:
    """Translate Pydantic (or FastAPI request) errors into a consistent review payload."""

    details = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    return ValidationResult(message=message, details=details).model_dump()


__all__ = [
    "SessionRequest",
    "InterestsRequest",
    "DecisionRequest",
    "ResolveRequest",
    "BlockedTagRequest",
    "ScanRequest",
    "PickAction",
    "ValidationResult",
    "validation_failure",
]
