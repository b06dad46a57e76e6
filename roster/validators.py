"""
Input validation for the registration entry points — Pydantic v2 models.

The transport layer builds these from raw request data; the services only
ever see validated values.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from roster.models.models import DivisionMode, RegistrationStatus, WeightClass

DivisionModeLiteral = Literal["division_only", "open_only", "both"]
StatusLiteral = Literal["pending", "approved", "rejected"]


def _check_weight_class(v: str) -> str:
    v = v.strip().upper()
    if v not in WeightClass.ALL:
        raise ValueError(f"Unknown weight class: {v}")
    return v


def _check_receipt_url(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    if len(v) > 1024:
        raise ValueError("Receipt reference must be at most 1024 characters")
    return v


class NominationData(BaseModel):
    """
    A team's intent for one athlete within one event.

    Attributes
    ----------
    athlete_id          : Athlete being nominated
    tournament_id       : Base (age-division) tournament instance
    weight_class        : One of WeightClass.ALL
    division_mode       : division_only | open_only | both
    payment_receipt_url : Opaque receipt reference, stored as-is
    """

    model_config = ConfigDict(frozen=True)

    athlete_id: int
    tournament_id: int
    weight_class: str
    division_mode: DivisionModeLiteral = DivisionMode.DIVISION_ONLY
    payment_receipt_url: Optional[str] = None

    @field_validator("weight_class")
    @classmethod
    def validate_weight_class(cls, v: str) -> str:
        return _check_weight_class(v)

    @field_validator("payment_receipt_url")
    @classmethod
    def validate_receipt_url(cls, v: Optional[str]) -> Optional[str]:
        return _check_receipt_url(v)


class NominationList(BaseModel):
    """Full desired nomination list of a team for one event."""

    event_id: int
    nominations: List[NominationData] = []

    @field_validator("nominations")
    @classmethod
    def validate_size(cls, v: List[NominationData]) -> List[NominationData]:
        if len(v) > 1000:
            raise ValueError("At most 1000 nominations per submission")
        return v


class RegistrationData(BaseModel):
    """Payload of the direct single-registration path."""

    athlete_id: int
    tournament_id: int
    weight_class: str
    payment_receipt_url: Optional[str] = None

    @field_validator("weight_class")
    @classmethod
    def validate_weight_class(cls, v: str) -> str:
        return _check_weight_class(v)

    @field_validator("payment_receipt_url")
    @classmethod
    def validate_receipt_url(cls, v: Optional[str]) -> Optional[str]:
        return _check_receipt_url(v)


class StatusChangeData(BaseModel):
    """Adjudication of one or more registrations."""

    registration_ids: List[int]
    status: StatusLiteral

    @field_validator("registration_ids")
    @classmethod
    def validate_ids(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("At least one registration is required")
        # keep order, drop repeats
        return list(dict.fromkeys(v))

    @property
    def locks(self) -> bool:
        return self.status in RegistrationStatus.LOCKED
