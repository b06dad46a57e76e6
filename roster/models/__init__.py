from roster.models.base import Base, engine, AsyncSessionFactory, session_scope
from roster.models.models import (
    Team,
    Athlete,
    Event,
    Tournament,
    Registration,
    Gender,
    Division,
    DivisionLabel,
    Modality,
    Equipment,
    TournamentStatus,
    RegistrationStatus,
    DivisionMode,
    WeightClass,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionFactory",
    "session_scope",
    "Team",
    "Athlete",
    "Event",
    "Tournament",
    "Registration",
    "Gender",
    "Division",
    "DivisionLabel",
    "Modality",
    "Equipment",
    "TournamentStatus",
    "RegistrationStatus",
    "DivisionMode",
    "WeightClass",
]
