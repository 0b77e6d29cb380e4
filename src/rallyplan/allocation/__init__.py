"""Shift-building allocation engine: normalize, filter, fill and orchestrate."""

from .editing import (
    CaptainChange,
    EligibilityNotice,
    EmptyPoolReason,
    OverflowReport,
    PlayerSelection,
    SlotDraft,
    SlotEditError,
    SlotState,
    change_captain,
    commit_draft,
    eligible_captains_for_slot,
    eligible_players_for_slot,
    explain_empty_captains,
    explain_empty_players,
    overflow_for,
    save_slot,
    slot_state,
)
from .eligibility import eligible_players, occupied_ids
from .normalize import Magnitude, normalize_magnitude
from .service import (
    AllocationSummary,
    align_slots,
    assign_captains,
    assign_players,
    attack_pool,
    auto_assign,
    clear_schedule,
    clear_slot,
    defense_pool,
    empty_slots,
    summarize,
)
from .slots import fill_slot

__all__ = [
    "AllocationSummary",
    "CaptainChange",
    "EligibilityNotice",
    "EmptyPoolReason",
    "Magnitude",
    "OverflowReport",
    "PlayerSelection",
    "SlotDraft",
    "SlotEditError",
    "SlotState",
    "align_slots",
    "assign_captains",
    "assign_players",
    "attack_pool",
    "auto_assign",
    "change_captain",
    "clear_schedule",
    "clear_slot",
    "commit_draft",
    "defense_pool",
    "eligible_captains_for_slot",
    "eligible_players",
    "eligible_players_for_slot",
    "empty_slots",
    "explain_empty_captains",
    "explain_empty_players",
    "fill_slot",
    "normalize_magnitude",
    "occupied_ids",
    "overflow_for",
    "save_slot",
    "slot_state",
    "summarize",
]
