"""
Registration service — everything around a registration row that is not
the bulk reconciliation: the direct single-entry path, adjudication,
listings and flat export rows.

All functions receive an AsyncSession and never commit.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roster.errors import (
    AthleteNotFound,
    LockedRegistration,
    NotEligible,
    RegistrationConflict,
    RegistrationNotFound,
    TeamNotFound,
    TournamentNotFound,
)
from roster.models.models import (
    DivisionLabel,
    Equipment,
    Modality,
    Registration,
    RegistrationStatus,
    Tournament,
    WeightClass,
)
from roster.services.catalog_service import (
    get_live_team,
    get_live_tournament,
    get_team_athlete,
)
from roster.services.division_service import can_enter_division, display_label
from roster.services.weight_class_service import is_eligible_weight_class
from roster.validators import RegistrationData

logger = logging.getLogger(__name__)


# ── Direct creation ───────────────────────────────────────────────────────────

async def register_athlete(
    session: AsyncSession,
    team_id: int,
    data: RegistrationData,
    as_of: Optional[date] = None,
) -> Registration:
    """
    Enter one athlete into one tournament outside the nomination list.

    Checks, in order: team is live, athlete belongs to it, tournament is
    live, hard age gate for the tournament's division, weight class is
    allowed for the athlete, and no live registration exists for the pair.
    """
    team = await get_live_team(session, team_id)
    if team is None:
        raise TeamNotFound(team_id)

    athlete = await get_team_athlete(session, team_id, data.athlete_id)
    if athlete is None:
        raise AthleteNotFound(data.athlete_id, team_id)

    tournament = await get_live_tournament(session, data.tournament_id)
    if tournament is None:
        raise TournamentNotFound(data.tournament_id)

    if not can_enter_division(tournament.division, athlete.birth_year, as_of):
        raise NotEligible(
            f"{athlete.full_name} is not old enough or too old for "
            f"the {tournament.division} division."
        )
    if not is_eligible_weight_class(athlete.gender, athlete.birth_year, data.weight_class, as_of):
        raise NotEligible(
            f"Weight class {data.weight_class} is not available to {athlete.full_name}."
        )

    existing = await session.execute(
        select(Registration.id).where(
            Registration.athlete_id == athlete.id,
            Registration.tournament_id == tournament.id,
            Registration.deleted_at.is_(None),
        )
    )
    if existing.first() is not None:
        raise RegistrationConflict(
            f"{athlete.full_name} is already registered in this tournament."
        )

    reg = Registration(
        athlete_id=athlete.id,
        tournament_id=tournament.id,
        team_id=team_id,
        weight_class=data.weight_class,
        status=RegistrationStatus.PENDING,
        payment_receipt_url=data.payment_receipt_url,
    )
    session.add(reg)
    await session.flush()
    logger.info(
        "Registered athlete %d in tournament %d for team %d",
        athlete.id, tournament.id, team_id,
    )
    return reg


async def update_pending_registration(
    session: AsyncSession,
    team_id: int,
    registration_id: int,
    weight_class: Optional[str] = None,
    payment_receipt_url: Optional[str] = None,
) -> Registration:
    """Edit a team's own pending row. Adjudicated rows raise LockedRegistration."""
    reg = await get_registration(session, registration_id)
    if reg is None or reg.team_id != team_id:
        raise RegistrationNotFound(registration_id)
    if reg.is_locked:
        raise LockedRegistration(registration_id, reg.status)

    if weight_class is not None:
        if weight_class not in WeightClass.ALL:
            raise ValueError(f"Unknown weight class: {weight_class!r}")
        reg.weight_class = weight_class
    if payment_receipt_url is not None:
        reg.payment_receipt_url = payment_receipt_url
    await session.flush()
    return reg


async def get_registration(
    session: AsyncSession,
    registration_id: int,
) -> Optional[Registration]:
    result = await session.execute(
        select(Registration)
        .where(Registration.id == registration_id, Registration.deleted_at.is_(None))
        .options(
            selectinload(Registration.athlete),
            selectinload(Registration.tournament),
            selectinload(Registration.team),
        )
    )
    return result.scalar_one_or_none()


# ── Adjudication ──────────────────────────────────────────────────────────────

async def set_registration_status(
    session: AsyncSession,
    registration_id: int,
    status: str,
) -> Registration:
    if status not in RegistrationStatus.ALL:
        raise ValueError(f"Unknown registration status: {status!r}")
    reg = await get_registration(session, registration_id)
    if reg is None:
        raise RegistrationNotFound(registration_id)
    reg.status = status
    await session.flush()
    logger.info("Registration %d set to %s", registration_id, status)
    return reg


async def bulk_set_registration_status(
    session: AsyncSession,
    registration_ids: Sequence[int],
    status: str,
) -> int:
    """Returns the number of live rows changed."""
    if status not in RegistrationStatus.ALL:
        raise ValueError(f"Unknown registration status: {status!r}")
    if not registration_ids:
        return 0
    result = await session.execute(
        select(Registration).where(
            Registration.id.in_(list(registration_ids)),
            Registration.deleted_at.is_(None),
        )
    )
    regs = list(result.scalars().all())
    for reg in regs:
        reg.status = status
    await session.flush()
    logger.info("Bulk status %s applied to %d registrations", status, len(regs))
    return len(regs)


# ── Listings ──────────────────────────────────────────────────────────────────

async def list_event_registrations(
    session: AsyncSession,
    event_id: int,
    team_id: Optional[int] = None,
    status: Optional[str] = None,
) -> List[Registration]:
    """Live registrations of an event, optionally narrowed to a team / status."""
    q = (
        select(Registration)
        .join(Registration.tournament)
        .where(
            Tournament.event_id == event_id,
            Tournament.deleted_at.is_(None),
            Registration.deleted_at.is_(None),
        )
        .options(
            selectinload(Registration.athlete),
            selectinload(Registration.tournament),
            selectinload(Registration.team),
        )
        .order_by(Registration.created_at.desc(), Registration.id.desc())
    )
    if team_id is not None:
        q = q.where(Registration.team_id == team_id)
    if status:
        q = q.where(Registration.status == status)
    result = await session.execute(q)
    return list(result.scalars().all())


# ── Export ────────────────────────────────────────────────────────────────────

def build_registration_rows(
    registrations: Sequence[Registration],
    as_of: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """
    One flat dict per registration for spreadsheet / CSV export.
    Registrations must be loaded with athlete, tournament and team.
    """
    as_of = as_of or date.today()
    rows: List[Dict[str, Any]] = []
    for reg in registrations:
        athlete = reg.athlete
        t = reg.tournament
        division = display_label(t.division, athlete.birth_year, as_of)
        rows.append({
            "athlete":      athlete.full_name,
            "team":         reg.team.name,
            "gender":       athlete.gender,
            "birth_year":   athlete.birth_year,
            "division":     DivisionLabel.LABELS.get(division, division),
            "weight_class": WeightClass.label(reg.weight_class),
            "modality":     Modality.LABELS.get(t.modality, t.modality),
            "equipment":    Equipment.LABELS.get(t.equipment, t.equipment),
            "status":       RegistrationStatus.LABELS.get(reg.status, reg.status),
            "receipt":      reg.payment_receipt_url or "",
        })
    return rows
