"""
ORM models for the tournament registration core.

Domain overview
---------------
Team        — a club that enters athletes
  └─ Athlete — gender + birth year, owned by exactly one team
Event       — a named competition occasion
  └─ Tournament — one (division, modality, equipment) instance of the event
       └─ Registration — athlete entered through a team at a weight class

Every table carries a nullable ``deleted_at`` soft-delete marker; a row is
"live" while it is NULL.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roster.models.base import Base

# ─────────────────────────── Constants ────────────────────────────────────────

class Gender:
    MALE   = "M"
    FEMALE = "F"

    ALL = (MALE, FEMALE)


class Division:
    """Tournament-level division (coarse)."""
    JUNIORS = "juniors"
    OPEN    = "open"
    MASTERS = "masters"

    ALL = (JUNIORS, OPEN, MASTERS)


class DivisionLabel:
    """Athlete-level division label (fine, age-derived)."""
    SUBJUNIOR = "subjunior"
    JUNIOR    = "junior"
    OPEN      = "open"
    MASTER_1  = "master_1"
    MASTER_2  = "master_2"
    MASTER_3  = "master_3"
    MASTER_4  = "master_4"

    LABELS = {
        SUBJUNIOR: "Sub-Junior",
        JUNIOR:    "Junior",
        OPEN:      "Open",
        MASTER_1:  "Master 1",
        MASTER_2:  "Master 2",
        MASTER_3:  "Master 3",
        MASTER_4:  "Master 4",
    }


class Modality:
    FULL  = "full"    # squat · bench · deadlift
    BENCH = "bench"   # bench press only

    ALL = (FULL, BENCH)

    LABELS = {
        FULL:  "Powerlifting",
        BENCH: "Bench press",
    }


class Equipment:
    CLASSIC  = "classic"   # unequipped
    EQUIPPED = "equipped"  # supportive gear permitted

    ALL = (CLASSIC, EQUIPPED)

    LABELS = {
        CLASSIC:  "Classic",
        EQUIPPED: "Equipped",
    }


class TournamentStatus:
    PRELIMINARY_OPEN   = "preliminary_open"    # teams may nominate
    PRELIMINARY_CLOSED = "preliminary_closed"  # nominations frozen
    FINISHED           = "finished"            # results are final

    ALL = (PRELIMINARY_OPEN, PRELIMINARY_CLOSED, FINISHED)


class RegistrationStatus:
    PENDING  = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL    = (PENDING, APPROVED, REJECTED)
    LOCKED = (APPROVED, REJECTED)

    LABELS = {
        PENDING:  "Pending",
        APPROVED: "Approved",
        REJECTED: "Rejected",
    }


class DivisionMode:
    """How one nomination fans out into registrations."""
    DIVISION_ONLY = "division_only"
    OPEN_ONLY     = "open_only"
    BOTH          = "both"

    ALL = (DIVISION_ONLY, OPEN_ONLY, BOTH)


class WeightClass:
    """IPF weight classes, lightest first. The lightest of each list is youth-only."""
    MALE = [
        "M_CAT53", "M_CAT59", "M_CAT66", "M_CAT74", "M_CAT83",
        "M_CAT93", "M_CAT105", "M_CAT120", "M_CATHW",
    ]
    FEMALE = [
        "F_CAT43", "F_CAT47", "F_CAT52", "F_CAT57", "F_CAT63",
        "F_CAT69", "F_CAT76", "F_CAT84", "F_CATHW",
    ]

    ALL = tuple(FEMALE + MALE)

    @staticmethod
    def label(code: str) -> str:
        """'M_CAT93' → '-93 kg', 'F_CATHW' → '84+ kg'."""
        codes = WeightClass.MALE if code.startswith("M_") else WeightClass.FEMALE
        if code.endswith("HW"):
            return f"{codes[-2].split('CAT')[1]}+ kg"
        return f"-{code.split('CAT')[1]} kg"


# ─────────────────────────── Models ───────────────────────────────────────────

class Team(Base):
    """A club account. ``owner_ref`` is the identity provider's user id."""
    __tablename__ = "teams"

    id:         Mapped[int]                = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug:       Mapped[str]                = mapped_column(String(120), unique=True)
    name:       Mapped[str]                = mapped_column(String(255))
    owner_ref:  Mapped[str]                = mapped_column(String(255), index=True)
    created_at: Mapped[datetime]           = mapped_column(DateTime, default=func.now())
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    athletes:      Mapped[List["Athlete"]]      = relationship(back_populates="team")
    registrations: Mapped[List["Registration"]] = relationship(back_populates="team")

    @property
    def is_live(self) -> bool:
        return self.deleted_at is None


class Athlete(Base):
    """A competitor. Age is never stored; it is derived from birth_year."""
    __tablename__ = "athletes"

    id:         Mapped[int]                = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id:    Mapped[int]                = mapped_column(ForeignKey("teams.id"), index=True)
    full_name:  Mapped[str]                = mapped_column(String(255))
    gender:     Mapped[str]                = mapped_column(String(1))      # Gender.*
    birth_year: Mapped[int]                = mapped_column(Integer)
    created_at: Mapped[datetime]           = mapped_column(DateTime, default=func.now())
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    team:          Mapped["Team"]               = relationship(back_populates="athletes")
    registrations: Mapped[List["Registration"]] = relationship(back_populates="athlete")


class Event(Base):
    """A named competition occasion grouping several tournament instances."""
    __tablename__ = "events"

    id:         Mapped[int]                = mapped_column(Integer, primary_key=True, autoincrement=True)
    name:       Mapped[str]                = mapped_column(String(255))
    created_at: Mapped[datetime]           = mapped_column(DateTime, default=func.now())
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    tournaments: Mapped[List["Tournament"]] = relationship(back_populates="event")


class Tournament(Base):
    """One (division, modality, equipment) instance of an event."""
    __tablename__ = "tournaments"

    id:         Mapped[int]                = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id:   Mapped[int]                = mapped_column(ForeignKey("events.id"), index=True)
    name:       Mapped[str]                = mapped_column(String(255))
    division:   Mapped[str]                = mapped_column(String(20))   # Division.*
    modality:   Mapped[str]                = mapped_column(String(20))   # Modality.*
    equipment:  Mapped[str]                = mapped_column(String(20))   # Equipment.*
    status:     Mapped[str]                = mapped_column(
        String(30), default=TournamentStatus.PRELIMINARY_OPEN
    )
    created_at: Mapped[datetime]           = mapped_column(DateTime, default=func.now())
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    event:         Mapped["Event"]              = relationship(back_populates="tournaments")
    registrations: Mapped[List["Registration"]] = relationship(back_populates="tournament")

    @property
    def display_name(self) -> str:
        return (
            f"{self.name} · {self.division} · "
            f"{Modality.LABELS.get(self.modality, self.modality)} "
            f"{Equipment.LABELS.get(self.equipment, self.equipment)}"
        )


class Registration(Base):
    """
    Durable fact: athlete entered into a tournament through a team.

    At most one live row may exist per (athlete_id, tournament_id); the
    partial unique index below enforces it at the storage level.
    """
    __tablename__ = "registrations"
    __table_args__ = (
        Index(
            "uq_registrations_live",
            "athlete_id",
            "tournament_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id:                  Mapped[int]                = mapped_column(Integer, primary_key=True, autoincrement=True)
    athlete_id:          Mapped[int]                = mapped_column(ForeignKey("athletes.id"))
    tournament_id:       Mapped[int]                = mapped_column(ForeignKey("tournaments.id"), index=True)
    team_id:             Mapped[int]                = mapped_column(ForeignKey("teams.id"), index=True)
    weight_class:        Mapped[str]                = mapped_column(String(20))  # WeightClass.*
    status:              Mapped[str]                = mapped_column(
        String(20), default=RegistrationStatus.PENDING
    )
    payment_receipt_url: Mapped[Optional[str]]      = mapped_column(String(1024), nullable=True)
    created_at:          Mapped[datetime]           = mapped_column(DateTime, default=func.now())
    updated_at:          Mapped[datetime]           = mapped_column(
        DateTime, default=func.now(), onupdate=func.now()
    )
    deleted_at:          Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    athlete:    Mapped["Athlete"]    = relationship(back_populates="registrations")
    tournament: Mapped["Tournament"] = relationship(back_populates="registrations")
    team:       Mapped["Team"]       = relationship(back_populates="registrations")

    @property
    def is_locked(self) -> bool:
        """Adjudicated rows are read-only to the reconciliation engine."""
        return self.status in RegistrationStatus.LOCKED
