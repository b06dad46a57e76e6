"""
Division classifier — pure age arithmetic.

Age bands (inclusive)
---------------------
14–18  subjunior
19–23  junior
40–49  master_1
50–59  master_2
60–69  master_3
70+    master_4
other  open   (24–39, and anything under 14)

Open eligibility uses two cutoffs in the existing rule set:
  OPEN_MIN_AGE       = 20  eligibility filter, nomination fan-out, match fallback
  OPEN_GATE_MIN_AGE  = 19  hard gate on the direct registration path
They disagree at exactly age 19. New code paths use OPEN_MIN_AGE.

Every function takes an ``as_of`` date; None means today. Ages are never
cached between calls.
"""
from __future__ import annotations

from datetime import date
from typing import Optional, Set

from roster.models.models import Division, DivisionLabel

SUBJUNIOR_MIN_AGE = 14
SUBJUNIOR_MAX_AGE = 18
JUNIOR_MIN_AGE    = 19
JUNIOR_MAX_AGE    = 23
MASTERS_MIN_AGE   = 40

OPEN_MIN_AGE      = 20
OPEN_GATE_MIN_AGE = 19

# (lower bound, label), checked top-down, first match wins
_MASTER_BANDS = (
    (70, DivisionLabel.MASTER_4),
    (60, DivisionLabel.MASTER_3),
    (50, DivisionLabel.MASTER_2),
    (MASTERS_MIN_AGE, DivisionLabel.MASTER_1),
)


def age_on(birth_year: int, as_of: Optional[date] = None) -> int:
    """Competition age: calendar year of ``as_of`` minus birth year."""
    return (as_of or date.today()).year - birth_year


def label_for_age(age: int) -> str:
    if SUBJUNIOR_MIN_AGE <= age <= SUBJUNIOR_MAX_AGE:
        return DivisionLabel.SUBJUNIOR
    if JUNIOR_MIN_AGE <= age <= JUNIOR_MAX_AGE:
        return DivisionLabel.JUNIOR
    for lower, label in _MASTER_BANDS:
        if age >= lower:
            return label
    return DivisionLabel.OPEN


def classify(birth_year: int, as_of: Optional[date] = None) -> str:
    """Single athlete-level label. Total: unclassified ages fall back to open."""
    return label_for_age(age_on(birth_year, as_of))


def eligible_division_labels(birth_year: int, as_of: Optional[date] = None) -> Set[str]:
    """
    All labels the athlete holds at once: the age-band label, plus open
    from OPEN_MIN_AGE. A 21-year-old is {junior, open}; a 19-year-old is
    only {junior}.
    """
    age = age_on(birth_year, as_of)
    labels = {label_for_age(age)}
    if age >= OPEN_MIN_AGE:
        labels.add(DivisionLabel.OPEN)
    return labels


def display_label(division: str, birth_year: int, as_of: Optional[date] = None) -> str:
    """
    Map a tournament-level division back to an athlete-level label.
    An open tournament always displays as open, whatever the true age band.
    """
    age = age_on(birth_year, as_of)
    if division == Division.JUNIORS:
        if SUBJUNIOR_MIN_AGE <= age <= SUBJUNIOR_MAX_AGE:
            return DivisionLabel.SUBJUNIOR
        return DivisionLabel.JUNIOR
    if division == Division.MASTERS:
        for lower, label in _MASTER_BANDS:
            if age >= lower:
                return label
        # Under-age masters entry; show the first masters band.
        return DivisionLabel.MASTER_1
    return DivisionLabel.OPEN


def can_enter_division(division: str, birth_year: int, as_of: Optional[date] = None) -> bool:
    """Hard gate used before accepting a single registration."""
    age = age_on(birth_year, as_of)
    if division == Division.JUNIORS:
        return SUBJUNIOR_MIN_AGE <= age <= JUNIOR_MAX_AGE
    if division == Division.MASTERS:
        return age >= MASTERS_MIN_AGE
    if division == Division.OPEN:
        return age >= OPEN_GATE_MIN_AGE
    return False


def can_enter_open(birth_year: int, as_of: Optional[date] = None) -> bool:
    """Open eligibility for nomination fan-out (OPEN_MIN_AGE, not the gate)."""
    return age_on(birth_year, as_of) >= OPEN_MIN_AGE
