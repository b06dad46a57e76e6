"""
Error taxonomy for the registration core.

Every error carries a short ``code`` the transport layer maps onto its own
status vocabulary (HTTP status, RPC error code, bot message).
"""
from __future__ import annotations


class RosterError(Exception):
    """Base class for all precondition and gating failures."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TeamNotFound(RosterError):
    code = "forbidden"

    def __init__(self, team_id: object) -> None:
        super().__init__(f"Team {team_id} not found or no longer active.")
        self.team_id = team_id


class EventNotFound(RosterError):
    code = "not_found"

    def __init__(self, event_id: object) -> None:
        super().__init__(f"Event {event_id} not found: it has no live tournaments.")
        self.event_id = event_id


class TournamentNotFound(RosterError):
    code = "not_found"

    def __init__(self, tournament_id: object) -> None:
        super().__init__(f"Tournament {tournament_id} not found.")
        self.tournament_id = tournament_id


class AthleteNotFound(RosterError):
    code = "forbidden"

    def __init__(self, athlete_id: object, team_id: object) -> None:
        super().__init__(f"Athlete {athlete_id} does not belong to team {team_id}.")
        self.athlete_id = athlete_id
        self.team_id = team_id


class RegistrationNotFound(RosterError):
    code = "not_found"

    def __init__(self, registration_id: object) -> None:
        super().__init__(f"Registration {registration_id} not found.")
        self.registration_id = registration_id


class RegistrationConflict(RosterError):
    code = "conflict"


class LockedRegistration(RosterError):
    code = "conflict"

    def __init__(self, registration_id: object, status: str) -> None:
        super().__init__(
            f"Registration {registration_id} is {status} and can no longer be changed."
        )
        self.registration_id = registration_id
        self.status = status


class NotEligible(RosterError):
    code = "ineligible"
