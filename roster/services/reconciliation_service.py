"""
Registration reconciliation engine.

Turns a team's desired nomination list for one event into the minimal set
of inserts, updates and deletes against its persisted registrations.

Algorithm
---------
1. Load the event's live tournament instances, the team's live
   registrations among them (one snapshot per call) and the nominated
   athletes.
2. For every nomination:
   a. resolve its athlete and base tournament (unknown → skipped), and
      check the weight class against the athlete (not allowed → skipped);
   b. expand it by division mode into one or two target instances
      (division_only → base; open_only → open counterpart; both → base and,
      unless the base is already open, its open counterpart);
   c. per target: insert a pending row if none is live; update the weight
      class (and receipt) of a pending row in place; leave a locked
      (approved / rejected) row alone. Every row reached is "touched".
3. Delete every pending row from the snapshot that was not touched.
4. The caller commits. Locked rows are never altered nor deleted.

Updates and deletes are conditional on the row still being pending, so a
registration adjudicated after the snapshot was read is left as it is.

Resubmitting the same list is a no-op; an empty list removes every pending
row of the team in the event. current_nominations() rebuilds the list that
the stored registrations stand for.

Concurrency
-----------
The partial unique index on live (athlete_id, tournament_id) makes the
loser of two concurrent inserts fail with IntegrityError. run_reconciliation
wraps one pass in a transaction and replays it from scratch on that error;
the replay reads the winner's row and turns into a no-op for the pair.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from roster.config import settings
from roster.errors import EventNotFound, TeamNotFound
from roster.models.base import session_scope
from roster.models.models import (
    Division,
    DivisionMode,
    Registration,
    RegistrationStatus,
    Tournament,
)
from roster.services.catalog_service import (
    get_live_athletes,
    get_live_team,
    list_event_tournaments,
    team_athlete_ids,
)
from roster.services.matcher_service import base_counterpart, open_counterpart
from roster.services.weight_class_service import is_eligible_weight_class
from roster.validators import NominationData

logger = logging.getLogger(__name__)


class SkipReason:
    UNKNOWN_TOURNAMENT        = "unknown_tournament"
    UNKNOWN_ATHLETE           = "unknown_athlete"
    NO_OPEN_COUNTERPART       = "no_open_counterpart"
    ATHLETE_NOT_IN_TEAM       = "athlete_not_in_team"
    WEIGHT_CLASS_NOT_ELIGIBLE = "weight_class_not_eligible"

    LABELS = {
        UNKNOWN_TOURNAMENT:        "Tournament is not part of this event",
        UNKNOWN_ATHLETE:           "Athlete does not exist",
        NO_OPEN_COUNTERPART:       "No open tournament with the same modality and equipment",
        ATHLETE_NOT_IN_TEAM:       "Athlete does not belong to this team",
        WEIGHT_CLASS_NOT_ELIGIBLE: "Weight class is not available to this athlete",
    }


@dataclass(frozen=True)
class SkippedNomination:
    nomination: NominationData
    reason:     str

    @property
    def message(self) -> str:
        return SkipReason.LABELS.get(self.reason, self.reason)


@dataclass
class ReconcileResult:
    """Outcome of one pass: ids of changed rows plus nominations dropped."""
    event_id: int
    team_id:  int
    inserted: List[int]               = field(default_factory=list)
    updated:  List[int]               = field(default_factory=list)
    deleted:  List[int]               = field(default_factory=list)
    skipped:  List[SkippedNomination] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not (self.inserted or self.updated or self.deleted)

    @property
    def is_partial(self) -> bool:
        """True when some nominations could not be applied."""
        return bool(self.skipped)

    def summary(self) -> Dict[str, int]:
        return {
            "inserted": len(self.inserted),
            "updated":  len(self.updated),
            "deleted":  len(self.deleted),
            "skipped":  len(self.skipped),
        }


# ── Pure fan-out ──────────────────────────────────────────────────────────────

def expand_nomination(
    division_mode: str,
    base: Any,
    instances: Sequence[Any],
) -> List[Any]:
    """
    Target instances for one nomination, base first.
    open_only without an open counterpart yields an empty list.
    """
    if division_mode == DivisionMode.DIVISION_ONLY:
        return [base]

    counterpart = open_counterpart(base, instances)
    if division_mode == DivisionMode.OPEN_ONLY:
        return [counterpart] if counterpart is not None else []

    if division_mode == DivisionMode.BOTH:
        if base.division == Division.OPEN or counterpart is None:
            return [base]
        return [base, counterpart]

    raise ValueError(f"Unknown division mode: {division_mode!r}")


def collapse_registrations(
    registrations: Sequence[Any],
    instances: Sequence[Any],
) -> List[NominationData]:
    """
    Inverse of the fan-out: the nominations a set of live registrations
    stands for. Rows are grouped per athlete and (modality, equipment);
    a base row plus an open row becomes ``both``, a lone open row goes back
    to its non-open sibling as ``open_only``. Registrations need their
    ``tournament`` loaded.
    """
    families: Dict[Tuple[int, str, str], List[Any]] = {}
    for reg in registrations:
        t = reg.tournament
        families.setdefault((reg.athlete_id, t.modality, t.equipment), []).append(reg)

    nominations: List[NominationData] = []
    for regs in families.values():
        bases = [r for r in regs if r.tournament.division != Division.OPEN]
        open_reg = next((r for r in regs if r.tournament.division == Division.OPEN), None)

        if bases:
            for i, reg in enumerate(bases):
                if i == 0 and open_reg is not None:
                    mode = DivisionMode.BOTH
                else:
                    mode = DivisionMode.DIVISION_ONLY
                nominations.append(_nomination_for(reg, reg.tournament_id, mode))
            continue

        base = base_counterpart(open_reg.tournament, instances)
        if base is not None:
            nominations.append(_nomination_for(open_reg, base.id, DivisionMode.OPEN_ONLY))
        else:
            nominations.append(
                _nomination_for(open_reg, open_reg.tournament_id, DivisionMode.DIVISION_ONLY)
            )
    return nominations


def _nomination_for(reg: Any, tournament_id: int, mode: str) -> NominationData:
    return NominationData(
        athlete_id=reg.athlete_id,
        tournament_id=tournament_id,
        weight_class=reg.weight_class,
        division_mode=mode,
        payment_receipt_url=reg.payment_receipt_url,
    )


# ── Storage reads ─────────────────────────────────────────────────────────────

async def _load_team_registrations(
    session: AsyncSession,
    team_id: int,
    tournament_ids: Iterable[int],
) -> List[Registration]:
    ids = list(tournament_ids)
    if not ids:
        return []
    result = await session.execute(
        select(Registration)
        .where(
            Registration.team_id == team_id,
            Registration.tournament_id.in_(ids),
            Registration.deleted_at.is_(None),
        )
        .options(selectinload(Registration.tournament))
        .order_by(Registration.id)
    )
    return list(result.scalars().all())


async def current_nominations(
    session: AsyncSession,
    event_id: int,
    team_id: int,
) -> List[NominationData]:
    """
    The team's nomination list for an event as stored today. Submitting it
    back unchanged is a no-op.
    """
    instances = await list_event_tournaments(session, event_id)
    registrations = await _load_team_registrations(
        session, team_id, (t.id for t in instances)
    )
    return collapse_registrations(registrations, instances)


# ── Engine ────────────────────────────────────────────────────────────────────

async def reconcile_event_registrations(
    session: AsyncSession,
    event_id: int,
    team_id: int,
    nominations: Sequence[NominationData],
    as_of: Optional[date] = None,
) -> ReconcileResult:
    """Team path: ``team_id`` comes from the caller's resolved identity."""
    return await _reconcile(
        session, event_id, team_id, nominations, verify_athletes=False, as_of=as_of
    )


async def reconcile_event_registrations_as_admin(
    session: AsyncSession,
    event_id: int,
    team_id: int,
    nominations: Sequence[NominationData],
    as_of: Optional[date] = None,
) -> ReconcileResult:
    """Admin path: explicit team, and each nominated athlete must belong to it."""
    return await _reconcile(
        session, event_id, team_id, nominations, verify_athletes=True, as_of=as_of
    )


async def _reconcile(
    session: AsyncSession,
    event_id: int,
    team_id: int,
    nominations: Sequence[NominationData],
    verify_athletes: bool,
    as_of: Optional[date] = None,
) -> ReconcileResult:
    # Preconditions: nothing is written before both pass.
    team = await get_live_team(session, team_id)
    if team is None:
        raise TeamNotFound(team_id)

    instances = await list_event_tournaments(session, event_id)
    if not instances:
        raise EventNotFound(event_id)
    by_id: Dict[int, Tournament] = {t.id: t for t in instances}

    snapshot = await _load_team_registrations(session, team_id, by_id)
    live: Dict[Tuple[int, int], Registration] = {
        (r.athlete_id, r.tournament_id): r for r in snapshot
    }

    athletes = await get_live_athletes(session, (n.athlete_id for n in nominations))
    owned: Optional[Set[int]] = None
    if verify_athletes:
        owned = await team_athlete_ids(session, team_id, athletes)

    as_of = as_of or date.today()
    result = ReconcileResult(event_id=event_id, team_id=team_id)
    touched: Set[int] = set()

    for nomination in nominations:
        if owned is not None and nomination.athlete_id not in owned:
            _skip(result, nomination, SkipReason.ATHLETE_NOT_IN_TEAM)
            continue
        athlete = athletes.get(nomination.athlete_id)
        if athlete is None:
            _skip(result, nomination, SkipReason.UNKNOWN_ATHLETE)
            continue

        base = by_id.get(nomination.tournament_id)
        if base is None:
            _skip(result, nomination, SkipReason.UNKNOWN_TOURNAMENT)
            continue

        if not is_eligible_weight_class(
            athlete.gender, athlete.birth_year, nomination.weight_class, as_of
        ):
            _skip(result, nomination, SkipReason.WEIGHT_CLASS_NOT_ELIGIBLE)
            continue

        targets = expand_nomination(nomination.division_mode, base, instances)
        if not targets:
            _skip(result, nomination, SkipReason.NO_OPEN_COUNTERPART)
            continue

        for target in targets:
            key = (nomination.athlete_id, target.id)
            reg = live.get(key)
            if reg is None:
                reg = Registration(
                    athlete_id=nomination.athlete_id,
                    tournament_id=target.id,
                    team_id=team_id,
                    weight_class=nomination.weight_class,
                    status=RegistrationStatus.PENDING,
                    payment_receipt_url=nomination.payment_receipt_url,
                )
                session.add(reg)
                await session.flush()
                live[key] = reg
                result.inserted.append(reg.id)
            elif reg.status == RegistrationStatus.PENDING and await _update_pending(
                session, reg, nomination
            ):
                if reg.id not in result.inserted and reg.id not in result.updated:
                    result.updated.append(reg.id)
            touched.add(reg.id)

    stale = [
        r for r in snapshot
        if r.status == RegistrationStatus.PENDING and r.id not in touched
    ]
    for reg in stale:
        if await _delete_pending(session, reg):
            result.deleted.append(reg.id)

    logger.info(
        "Reconciled team %d / event %d: %d inserted, %d updated, %d deleted, %d skipped",
        team_id, event_id,
        len(result.inserted), len(result.updated), len(result.deleted), len(result.skipped),
    )
    return result


async def _update_pending(
    session: AsyncSession,
    reg: Registration,
    nomination: NominationData,
) -> bool:
    """
    Copy mutable fields onto a row that is still pending in storage.
    Returns True if the row changed.
    """
    values: Dict[str, Any] = {}
    if reg.weight_class != nomination.weight_class:
        values["weight_class"] = nomination.weight_class
    receipt = nomination.payment_receipt_url
    if receipt is not None and reg.payment_receipt_url != receipt:
        values["payment_receipt_url"] = receipt
    if not values:
        return False

    outcome = await session.execute(
        update(Registration)
        .where(Registration.id == reg.id, Registration.status == RegistrationStatus.PENDING)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if outcome.rowcount != 1:
        logger.warning(
            "Registration %d was adjudicated during reconciliation; left unchanged", reg.id
        )
        return False
    for key, value in values.items():
        set_committed_value(reg, key, value)
    session.expire(reg, ["updated_at"])
    return True


async def _delete_pending(session: AsyncSession, reg: Registration) -> bool:
    """Hard-delete a row only if it is still pending in storage."""
    outcome = await session.execute(
        delete(Registration)
        .where(Registration.id == reg.id, Registration.status == RegistrationStatus.PENDING)
        .execution_options(synchronize_session=False)
    )
    if outcome.rowcount != 1:
        logger.warning("Registration %d was adjudicated during reconciliation; kept", reg.id)
        return False
    session.expunge(reg)
    return True


def _skip(result: ReconcileResult, nomination: NominationData, reason: str) -> None:
    logger.warning(
        "Skipped nomination athlete=%d tournament=%d (team %d, event %d): %s",
        nomination.athlete_id, nomination.tournament_id,
        result.team_id, result.event_id, reason,
    )
    result.skipped.append(SkippedNomination(nomination=nomination, reason=reason))


# ── Transactional runner ──────────────────────────────────────────────────────

async def run_reconciliation(
    event_id: int,
    team_id: int,
    nominations: Sequence[NominationData],
    *,
    as_admin: bool = False,
    as_of: Optional[date] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    max_attempts: Optional[int] = None,
) -> ReconcileResult:
    """
    Run one reconciliation in its own session_scope transaction: all of it
    commits or none of it does. A lost uniqueness race is replayed up to
    ``max_attempts`` times; any other error propagates after rollback.
    """
    attempts = max(1, max_attempts or settings.RECONCILE_MAX_ATTEMPTS)
    engine_fn = (
        reconcile_event_registrations_as_admin if as_admin
        else reconcile_event_registrations
    )

    attempt = 0
    while True:
        attempt += 1
        try:
            async with session_scope(session_factory) as session:
                return await engine_fn(session, event_id, team_id, nominations, as_of=as_of)
        except IntegrityError:
            if attempt >= attempts:
                logger.error(
                    "Reconciliation of team %d / event %d still conflicting after %d attempts",
                    team_id, event_id, attempts,
                )
                raise
            logger.warning(
                "Concurrent registration for team %d / event %d, retrying (%d/%d)",
                team_id, event_id, attempt, attempts,
            )
