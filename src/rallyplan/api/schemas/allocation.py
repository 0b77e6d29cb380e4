from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from rallyplan.allocation import (
    AllocationSummary,
    EligibilityNotice,
    OverflowReport,
    PlayerSelection,
    SlotDraft,
)
from rallyplan.models import PlayerRecord, ScheduleSettings, SlotAssignment


class AllocationRequest(BaseModel):
    settings: ScheduleSettings = Field(default_factory=ScheduleSettings)
    building_names: List[str] | None = None
    buildings: List[SlotAssignment] = Field(default_factory=list)


class AllocationSummaryResponse(BaseModel):
    slots: int
    staffed_slots: int
    empty_slots: int
    assigned_players: int
    total_march: int
    total_rally: int
    overflowing_slots: List[Tuple[str, int]]

    @classmethod
    def from_summary(cls, summary: AllocationSummary) -> "AllocationSummaryResponse":
        return cls(
            slots=summary.slots,
            staffed_slots=summary.staffed_slots,
            empty_slots=summary.empty_slots,
            assigned_players=summary.assigned_players,
            total_march=summary.total_march,
            total_rally=summary.total_rally,
            overflowing_slots=list(summary.overflowing_slots),
        )


class AutoAssignResponse(BaseModel):
    buildings: List[SlotAssignment]
    summary: AllocationSummaryResponse


class SelectionPayload(BaseModel):
    player_id: str
    march: int


class DraftPayload(BaseModel):
    building_name: str
    shift: int = Field(..., ge=1)
    captain_id: Optional[str] = None
    rally_size: int = 0
    selections: List[SelectionPayload] = Field(default_factory=list)

    def to_draft(self) -> SlotDraft:
        return SlotDraft(
            building_name=self.building_name,
            shift=self.shift,
            captain_id=self.captain_id,
            rally_size=self.rally_size,
            selections=tuple(
                PlayerSelection(player_id=item.player_id, march=item.march) for item in self.selections
            ),
        )

    @classmethod
    def from_draft(cls, draft: SlotDraft) -> "DraftPayload":
        return cls(
            building_name=draft.building_name,
            shift=draft.shift,
            captain_id=draft.captain_id,
            rally_size=draft.rally_size,
            selections=[
                SelectionPayload(player_id=item.player_id, march=item.march) for item in draft.selections
            ],
        )


class NoticeResponse(BaseModel):
    reason: str
    message: str

    @classmethod
    def from_notice(cls, notice: EligibilityNotice | None) -> "NoticeResponse | None":
        if notice is None:
            return None
        return cls(reason=notice.reason.value, message=notice.message)


class OverflowResponse(BaseModel):
    total_march: int
    rally_size: int
    excess: int
    is_overflowing: bool
    message: str | None = None

    @classmethod
    def from_report(cls, report: OverflowReport) -> "OverflowResponse":
        return cls(
            total_march=report.total_march,
            rally_size=report.rally_size,
            excess=report.excess,
            is_overflowing=report.is_overflowing,
            message=report.message,
        )


class SlotOptionsRequest(AllocationRequest):
    building_name: str
    shift: int = Field(..., ge=1)
    captain_id: Optional[str] = None
    selected_player_ids: List[str] = Field(default_factory=list)


class SlotOptionsResponse(BaseModel):
    state: str
    captains: List[PlayerRecord]
    players: List[PlayerRecord]
    captain_notice: NoticeResponse | None = None
    player_notice: NoticeResponse | None = None


class CaptainChangeRequest(BaseModel):
    draft: DraftPayload
    captain_id: Optional[str] = None


class CaptainChangeResponse(BaseModel):
    draft: DraftPayload
    dropped_players: List[str]
    overflow: OverflowResponse


class SlotSaveRequest(AllocationRequest):
    draft: DraftPayload


class SlotSaveResponse(BaseModel):
    buildings: List[SlotAssignment]
    overflow: OverflowResponse


class SlotClearRequest(AllocationRequest):
    building_name: str
    shift: int = Field(..., ge=1)
