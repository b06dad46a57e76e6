"""
Weight class resolver.

The lightest class of each gender (M_CAT53 / F_CAT43) is reserved for
sub-juniors and juniors and disappears once the athlete is older than 23.
The rule depends on (gender, age) only, not on the tournament entered.
"""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from roster.models.models import Gender, WeightClass
from roster.services.division_service import JUNIOR_MAX_AGE, age_on


def weight_classes_for_gender(gender: str) -> List[str]:
    if gender == Gender.MALE:
        return list(WeightClass.MALE)
    if gender == Gender.FEMALE:
        return list(WeightClass.FEMALE)
    raise ValueError(f"Unknown gender: {gender!r}")


def eligible_weight_classes(
    gender: str,
    birth_year: int,
    as_of: Optional[date] = None,
) -> List[str]:
    """Ordered lightest → heavyweight. Raises ValueError for an unknown gender."""
    classes = weight_classes_for_gender(gender)
    if age_on(birth_year, as_of) > JUNIOR_MAX_AGE:
        return classes[1:]
    return classes


def is_eligible_weight_class(
    gender: str,
    birth_year: int,
    weight_class: str,
    as_of: Optional[date] = None,
) -> bool:
    return weight_class in eligible_weight_classes(gender, birth_year, as_of)
