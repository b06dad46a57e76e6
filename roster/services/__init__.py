from roster.services.division_service import (
    age_on, classify, eligible_division_labels, display_label,
    can_enter_division, can_enter_open,
    OPEN_MIN_AGE, OPEN_GATE_MIN_AGE,
)
from roster.services.weight_class_service import (
    eligible_weight_classes, is_eligible_weight_class,
)
from roster.services.matcher_service import (
    eligible_instances, open_counterpart, match_exact, best_instance,
    eligible_options, EligibleOptions, base_counterpart, division_mode_options,
    available_modalities, available_equipment,
)
from roster.services.catalog_service import (
    create_team, get_live_team, get_owned_team, soft_delete_team,
    create_athlete, get_team_athlete, get_live_athletes, team_athlete_ids,
    create_event, create_tournament, get_live_tournament,
    list_event_tournaments, set_tournament_status, soft_delete_tournament,
)
from roster.services.reconciliation_service import (
    reconcile_event_registrations, reconcile_event_registrations_as_admin,
    run_reconciliation, expand_nomination, collapse_registrations, current_nominations,
    ReconcileResult, SkippedNomination, SkipReason,
)
from roster.services.registration_service import (
    register_athlete, update_pending_registration, get_registration,
    set_registration_status, bulk_set_registration_status,
    list_event_registrations, build_registration_rows,
)

__all__ = [
    # division classifier
    "age_on", "classify", "eligible_division_labels", "display_label",
    "can_enter_division", "can_enter_open",
    "OPEN_MIN_AGE", "OPEN_GATE_MIN_AGE",
    # weight classes
    "eligible_weight_classes", "is_eligible_weight_class",
    # tournament matcher
    "eligible_instances", "open_counterpart", "match_exact", "best_instance",
    "eligible_options", "EligibleOptions", "base_counterpart", "division_mode_options",
    "available_modalities", "available_equipment",
    # catalog
    "create_team", "get_live_team", "get_owned_team", "soft_delete_team",
    "create_athlete", "get_team_athlete", "get_live_athletes", "team_athlete_ids",
    "create_event", "create_tournament", "get_live_tournament",
    "list_event_tournaments", "set_tournament_status", "soft_delete_tournament",
    # reconciliation engine
    "reconcile_event_registrations", "reconcile_event_registrations_as_admin",
    "run_reconciliation", "expand_nomination", "collapse_registrations", "current_nominations",
    "ReconcileResult", "SkippedNomination", "SkipReason",
    # registrations
    "register_athlete", "update_pending_registration", "get_registration",
    "set_registration_status", "bulk_set_registration_status",
    "list_event_registrations", "build_registration_rows",
]
