"""
Tournament matcher — pure functions over an event's tournament catalog.

Inputs are duck-typed: an athlete needs ``gender`` and ``birth_year``; a
tournament needs ``id``, ``division``, ``modality`` and ``equipment``. ORM
rows and plain test objects both fit.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Optional, Sequence

from roster.models.models import Division, DivisionMode, Equipment, Modality
from roster.services.division_service import (
    JUNIOR_MAX_AGE,
    MASTERS_MIN_AGE,
    OPEN_MIN_AGE,
    age_on,
    can_enter_open,
)
from roster.services.weight_class_service import eligible_weight_classes

# Order in which a first-time opt-in picks an instance.
BEST_INSTANCE_PRIORITY = (
    (Modality.FULL,  Equipment.CLASSIC),
    (Modality.FULL,  Equipment.EQUIPPED),
    (Modality.BENCH, Equipment.CLASSIC),
    (Modality.BENCH, Equipment.EQUIPPED),
)


def _is_eligible_for(division: str, age: int) -> bool:
    if division == Division.JUNIORS:
        return age <= JUNIOR_MAX_AGE
    if division == Division.MASTERS:
        return age >= MASTERS_MIN_AGE
    if division == Division.OPEN:
        return age >= OPEN_MIN_AGE
    return False


def eligible_instances(
    athlete: Any,
    instances: Sequence[Any],
    as_of: Optional[date] = None,
) -> List[Any]:
    """Instances the athlete may enter by age, catalog order preserved."""
    age = age_on(athlete.birth_year, as_of)
    return [t for t in instances if _is_eligible_for(t.division, age)]


def open_counterpart(instance: Any, instances: Sequence[Any]) -> Optional[Any]:
    """
    The open-division sibling sharing modality and equipment.
    None when ``instance`` is already open or no sibling exists. With a
    duplicated catalog tuple the first sibling in catalog order wins.
    """
    if instance.division == Division.OPEN:
        return None
    for t in instances:
        if (
            t.division == Division.OPEN
            and t.modality == instance.modality
            and t.equipment == instance.equipment
            and t.id != instance.id
        ):
            return t
    return None


def base_counterpart(open_instance: Any, instances: Sequence[Any]) -> Optional[Any]:
    """
    Inverse of open_counterpart: the first non-open sibling sharing modality
    and equipment with an open instance. None when there is none.
    """
    for t in instances:
        if (
            t.division != Division.OPEN
            and t.modality == open_instance.modality
            and t.equipment == open_instance.equipment
        ):
            return t
    return None


def division_mode_options(
    athlete: Any,
    base: Any,
    instances: Sequence[Any],
    as_of: Optional[date] = None,
) -> List[str]:
    """
    Division modes a nomination on ``base`` may use. open_only and both
    need an open counterpart and an athlete old enough for open.
    """
    if base.division == Division.OPEN:
        return [DivisionMode.DIVISION_ONLY]
    counterpart = open_counterpart(base, instances)
    if counterpart is not None and can_enter_open(athlete.birth_year, as_of):
        return [DivisionMode.DIVISION_ONLY, DivisionMode.OPEN_ONLY, DivisionMode.BOTH]
    return [DivisionMode.DIVISION_ONLY]


def available_modalities(
    athlete: Any,
    instances: Sequence[Any],
    as_of: Optional[date] = None,
) -> List[str]:
    """Modalities among the athlete's eligible instances, first seen first."""
    seen: List[str] = []
    for t in eligible_instances(athlete, instances, as_of):
        if t.modality not in seen:
            seen.append(t.modality)
    return seen


def available_equipment(
    athlete: Any,
    instances: Sequence[Any],
    modality: str,
    as_of: Optional[date] = None,
) -> List[str]:
    seen: List[str] = []
    for t in eligible_instances(athlete, instances, as_of):
        if t.modality == modality and t.equipment not in seen:
            seen.append(t.equipment)
    return seen


def target_division(age: int) -> str:
    if age <= JUNIOR_MAX_AGE:
        return Division.JUNIORS
    if age >= MASTERS_MIN_AGE:
        return Division.MASTERS
    return Division.OPEN


def _find(instances: Sequence[Any], division: str, modality: str, equipment: str) -> Optional[Any]:
    for t in instances:
        if t.division == division and t.modality == modality and t.equipment == equipment:
            return t
    return None


def match_exact(
    athlete: Any,
    modality: str,
    equipment: str,
    instances: Sequence[Any],
    as_of: Optional[date] = None,
) -> Optional[Any]:
    """
    Instance for the athlete's age division with the given modality and
    equipment. Falls back to open when the age division has no such
    instance and the athlete is old enough for open.
    """
    age = age_on(athlete.birth_year, as_of)
    division = target_division(age)
    match = _find(instances, division, modality, equipment)
    if match is None and division != Division.OPEN and age >= OPEN_MIN_AGE:
        match = _find(instances, Division.OPEN, modality, equipment)
    return match


def best_instance(
    athlete: Any,
    instances: Sequence[Any],
    as_of: Optional[date] = None,
) -> Optional[Any]:
    """Default instance when a team first opts an athlete into an event."""
    for modality, equipment in BEST_INSTANCE_PRIORITY:
        match = match_exact(athlete, modality, equipment, instances, as_of)
        if match is not None:
            return match
    eligible = eligible_instances(athlete, instances, as_of)
    return eligible[0] if eligible else None


@dataclass
class EligibleOptions:
    """Everything a nomination form needs to pre-fill one athlete row."""
    instances:      List[Any] = field(default_factory=list)
    weight_classes: List[str] = field(default_factory=list)
    suggested:      Optional[Any] = None
    division_modes: List[str] = field(default_factory=list)   # for ``suggested``
    modalities:     List[str] = field(default_factory=list)

    @property
    def has_options(self) -> bool:
        return bool(self.instances)


def eligible_options(
    athlete: Any,
    instances: Sequence[Any],
    as_of: Optional[date] = None,
) -> EligibleOptions:
    # Resolve "today" once so every part of the answer agrees on the age.
    as_of = as_of or date.today()
    suggested = best_instance(athlete, instances, as_of)
    return EligibleOptions(
        instances=eligible_instances(athlete, instances, as_of),
        weight_classes=eligible_weight_classes(athlete.gender, athlete.birth_year, as_of),
        suggested=suggested,
        division_modes=(
            division_mode_options(athlete, suggested, instances, as_of)
            if suggested is not None else []
        ),
        modalities=available_modalities(athlete, instances, as_of),
    )
