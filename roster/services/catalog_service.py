"""
Catalog service — teams, athletes, events and tournament instances.

All functions receive an AsyncSession and never commit; the caller owns
the transaction. Soft-deleted rows (deleted_at set) are invisible to every
lookup here.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from roster.errors import RegistrationConflict, TeamNotFound
from roster.models.models import (
    Athlete,
    Division,
    Equipment,
    Event,
    Modality,
    Team,
    Tournament,
    TournamentStatus,
)


# ── Teams ─────────────────────────────────────────────────────────────────────

async def create_team(
    session: AsyncSession,
    name: str,
    owner_ref: str,
    slug: Optional[str] = None,
) -> Team:
    team = Team(name=name, owner_ref=owner_ref, slug=slug or _slugify(name))
    session.add(team)
    await session.flush()
    return team


def _slugify(name: str) -> str:
    cleaned = "".join(ch if ch.isalnum() or ch in " -" else "" for ch in name.lower())
    return "-".join(cleaned.split())


async def get_live_team(session: AsyncSession, team_id: int) -> Optional[Team]:
    result = await session.execute(
        select(Team).where(Team.id == team_id, Team.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def get_owned_team(session: AsyncSession, owner_ref: str) -> Team:
    """
    Identity seam: the live team owned by the caller.
    Raises TeamNotFound when the caller has no team.
    """
    result = await session.execute(
        select(Team)
        .where(Team.owner_ref == owner_ref, Team.deleted_at.is_(None))
        .order_by(Team.id)
        .limit(1)
    )
    team = result.scalar_one_or_none()
    if team is None:
        raise TeamNotFound(owner_ref)
    return team


async def soft_delete_team(session: AsyncSession, team_id: int) -> None:
    await session.execute(
        update(Team).where(Team.id == team_id).values(deleted_at=func.now())
    )


# ── Athletes ──────────────────────────────────────────────────────────────────

async def create_athlete(
    session: AsyncSession,
    team_id: int,
    full_name: str,
    gender: str,
    birth_year: int,
) -> Athlete:
    athlete = Athlete(
        team_id=team_id,
        full_name=full_name,
        gender=gender,
        birth_year=birth_year,
    )
    session.add(athlete)
    await session.flush()
    return athlete


async def get_team_athlete(
    session: AsyncSession,
    team_id: int,
    athlete_id: int,
) -> Optional[Athlete]:
    result = await session.execute(
        select(Athlete).where(
            Athlete.id == athlete_id,
            Athlete.team_id == team_id,
            Athlete.deleted_at.is_(None),
        )
    )
    return result.scalar_one_or_none()


async def get_live_athletes(
    session: AsyncSession,
    athlete_ids: Iterable[int],
) -> Dict[int, Athlete]:
    """Live athletes by id, whatever their team."""
    ids = set(athlete_ids)
    if not ids:
        return {}
    result = await session.execute(
        select(Athlete).where(Athlete.id.in_(ids), Athlete.deleted_at.is_(None))
    )
    return {a.id: a for a in result.scalars().all()}


async def team_athlete_ids(
    session: AsyncSession,
    team_id: int,
    athlete_ids: Iterable[int],
) -> Set[int]:
    """Subset of ``athlete_ids`` that are live athletes of the team."""
    ids = set(athlete_ids)
    if not ids:
        return set()
    result = await session.execute(
        select(Athlete.id).where(
            Athlete.team_id == team_id,
            Athlete.id.in_(ids),
            Athlete.deleted_at.is_(None),
        )
    )
    return set(result.scalars().all())


# ── Events & tournaments ──────────────────────────────────────────────────────

async def create_event(session: AsyncSession, name: str) -> Event:
    event = Event(name=name)
    session.add(event)
    await session.flush()
    return event


async def create_tournament(
    session: AsyncSession,
    event_id: int,
    division: str,
    modality: str = Modality.FULL,
    equipment: str = Equipment.CLASSIC,
    name: Optional[str] = None,
    status: str = TournamentStatus.PRELIMINARY_OPEN,
) -> Tournament:
    """
    Add one instance to an event. The (division, modality, equipment) tuple
    must be unique among the event's live instances.
    """
    if division not in Division.ALL:
        raise ValueError(f"Unknown division: {division!r}")
    if modality not in Modality.ALL:
        raise ValueError(f"Unknown modality: {modality!r}")
    if equipment not in Equipment.ALL:
        raise ValueError(f"Unknown equipment: {equipment!r}")

    clash = await session.execute(
        select(Tournament.id).where(
            Tournament.event_id == event_id,
            Tournament.division == division,
            Tournament.modality == modality,
            Tournament.equipment == equipment,
            Tournament.deleted_at.is_(None),
        )
    )
    if clash.first() is not None:
        raise RegistrationConflict(
            f"Event {event_id} already has a {division}/{modality}/{equipment} tournament."
        )

    t = Tournament(
        event_id=event_id,
        name=name or f"{division} {modality} {equipment}",
        division=division,
        modality=modality,
        equipment=equipment,
        status=status,
    )
    session.add(t)
    await session.flush()
    return t


async def get_live_tournament(
    session: AsyncSession,
    tournament_id: int,
) -> Optional[Tournament]:
    result = await session.execute(
        select(Tournament).where(
            Tournament.id == tournament_id,
            Tournament.deleted_at.is_(None),
        )
    )
    return result.scalar_one_or_none()


async def list_event_tournaments(
    session: AsyncSession,
    event_id: int,
) -> List[Tournament]:
    """Live instances of an event in creation order."""
    result = await session.execute(
        select(Tournament)
        .where(Tournament.event_id == event_id, Tournament.deleted_at.is_(None))
        .order_by(Tournament.id)
    )
    return list(result.scalars().all())


async def set_tournament_status(
    session: AsyncSession,
    tournament_id: int,
    status: str,
) -> None:
    await session.execute(
        update(Tournament)
        .where(Tournament.id == tournament_id)
        .values(status=status)
    )


async def soft_delete_tournament(session: AsyncSession, tournament_id: int) -> None:
    await session.execute(
        update(Tournament)
        .where(Tournament.id == tournament_id)
        .values(deleted_at=func.now())
    )
