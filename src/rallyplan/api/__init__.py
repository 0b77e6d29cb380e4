"""REST API the admin console uses to plan shift buildings."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import List, Literal, Sequence

from fastapi import FastAPI, HTTPException, Query

from rallyplan.allocation import (
    SlotDraft,
    SlotEditError,
    align_slots,
    attack_pool,
    auto_assign,
    change_captain,
    clear_slot,
    defense_pool,
    eligible_captains_for_slot,
    eligible_players_for_slot,
    explain_empty_captains,
    explain_empty_players,
    save_slot,
    slot_state,
    summarize,
)
from rallyplan.api.schemas import (
    AllocationRequest,
    AllocationSummaryResponse,
    AutoAssignResponse,
    CaptainChangeRequest,
    CaptainChangeResponse,
    DraftPayload,
    NoticeResponse,
    OverflowResponse,
    ScheduleRequest,
    SlotClearRequest,
    SlotOptionsRequest,
    SlotOptionsResponse,
    SlotSaveRequest,
    SlotSaveResponse,
)
from rallyplan.config import ShiftTopology, get_topology
from rallyplan.models import PlayerRecord, Schedule, ScheduleSettings, SlotAssignment
from rallyplan.persistence import ScheduleStore


def _topology(settings: ScheduleSettings, building_names: Sequence[str] | None) -> ShiftTopology:
    try:
        return get_topology(settings.shift_duration, building_names)
    except (KeyError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _find_slot(slots: Sequence[SlotAssignment], building_name: str, shift: int) -> SlotAssignment:
    for slot in slots:
        if slot.key == (building_name, shift):
            return slot
    raise HTTPException(status_code=404, detail=f"No slot {building_name!r} shift {shift}")


def _roster(store: ScheduleStore, settings: ScheduleSettings) -> List[PlayerRecord]:
    return defense_pool(
        store.list_players(is_attack=False),
        store.list_players(is_attack=True),
        settings.allow_attack_players_in_defense,
    )


def create_app(store: ScheduleStore | None = None) -> FastAPI:
    app = FastAPI(title="rallyplan", version="0.1.0")
    store = store or ScheduleStore(Path(__file__).resolve().parent.parent / "rallyplan.sqlite")
    app.state.store = store

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/players", response_model=List[PlayerRecord])
    async def list_players(
        pool: Literal["defense", "attack", "all"] = Query(default="all"),
    ) -> List[PlayerRecord]:
        if pool == "defense":
            return store.list_players(is_attack=False)
        if pool == "attack":
            return store.list_players(is_attack=True)
        return store.list_players()

    @app.put("/players/{player_id}", response_model=PlayerRecord)
    async def upsert_player(player_id: str, player: PlayerRecord) -> PlayerRecord:
        if player.player_id != player_id:
            raise HTTPException(status_code=400, detail="Player id in path and body differ")
        return store.upsert_player(player)

    @app.delete("/players/{player_id}")
    async def delete_player(player_id: str) -> dict[str, str]:
        if not store.delete_player(player_id):
            raise HTTPException(status_code=404, detail="Player not found")
        return {"status": "deleted", "id": player_id}

    @app.get("/schedules", response_model=List[Schedule])
    async def list_schedules(limit: int = Query(default=20, ge=1, le=200)) -> List[Schedule]:
        return store.list_schedules(limit=limit)

    @app.get("/schedules/{event_date}", response_model=Schedule)
    async def get_schedule(event_date: date) -> Schedule:
        schedule = store.get_schedule_by_event_date(event_date)
        if schedule is None:
            raise HTTPException(status_code=404, detail="Schedule not found")
        return schedule

    @app.put("/schedules/{event_date}", response_model=Schedule)
    async def put_schedule(event_date: date, payload: ScheduleRequest) -> Schedule:
        topology = _topology(payload.settings, None)
        buildings = payload.buildings or align_slots([], topology)
        attack_players = payload.attack_players
        if attack_players is None:
            attack_players = attack_pool(store.list_players(is_attack=True))
        existing = store.get_schedule_by_event_date(event_date)
        if existing is not None and existing.schedule_id:
            return store.update_schedule(
                existing.schedule_id,
                buildings=buildings,
                attack_players=attack_players,
                settings=payload.settings,
            )
        return store.save_schedule(
            Schedule(
                event_date=event_date,
                buildings=tuple(buildings),
                attack_players=tuple(attack_players),
                settings=payload.settings,
                created_by=payload.created_by,
            )
        )

    @app.delete("/schedules/{event_date}")
    async def delete_schedule(event_date: date) -> dict[str, str]:
        schedule = store.get_schedule_by_event_date(event_date)
        if schedule is None or not schedule.schedule_id:
            raise HTTPException(status_code=404, detail="Schedule not found")
        store.delete_schedule(schedule.schedule_id)
        return {"status": "deleted", "event_date": event_date.isoformat()}

    @app.post("/allocations/auto-assign", response_model=AutoAssignResponse)
    async def auto_assign_slots(payload: AllocationRequest) -> AutoAssignResponse:
        topology = _topology(payload.settings, payload.building_names)
        roster = _roster(store, payload.settings)
        buildings = auto_assign(payload.buildings, roster, topology)
        return AutoAssignResponse(
            buildings=buildings,
            summary=AllocationSummaryResponse.from_summary(summarize(buildings)),
        )

    @app.post("/allocations/slot/options", response_model=SlotOptionsResponse)
    async def slot_options(payload: SlotOptionsRequest) -> SlotOptionsResponse:
        topology = _topology(payload.settings, payload.building_names)
        roster = _roster(store, payload.settings)
        slots = align_slots(payload.buildings, topology)
        slot = _find_slot(slots, payload.building_name, payload.shift)
        captains = eligible_captains_for_slot(slot, slots, roster, topology, payload.selected_player_ids)
        players = eligible_players_for_slot(slot, slots, roster, topology, payload.captain_id)
        captain_notice = None
        if not captains:
            captain_notice = explain_empty_captains(
                slot, slots, roster, topology, payload.selected_player_ids
            )
        player_notice = None
        if not players:
            player_notice = explain_empty_players(slot, slots, roster, topology, payload.captain_id)
        return SlotOptionsResponse(
            state=slot_state(slot).value,
            captains=captains,
            players=players,
            captain_notice=NoticeResponse.from_notice(captain_notice),
            player_notice=NoticeResponse.from_notice(player_notice),
        )

    @app.post("/allocations/slot/captain", response_model=CaptainChangeResponse)
    async def slot_captain(payload: CaptainChangeRequest) -> CaptainChangeResponse:
        # Captains may come from the attack pool, so look them up across every player.
        change = change_captain(payload.draft.to_draft(), payload.captain_id, store.list_players())
        return CaptainChangeResponse(
            draft=DraftPayload.from_draft(change.draft),
            dropped_players=list(change.dropped_players),
            overflow=OverflowResponse.from_report(change.draft.overflow()),
        )

    @app.post("/allocations/slot/save", response_model=SlotSaveResponse)
    async def slot_save(payload: SlotSaveRequest) -> SlotSaveResponse:
        topology = _topology(payload.settings, payload.building_names)
        slots = align_slots(payload.buildings, topology)
        draft: SlotDraft = payload.draft.to_draft()
        try:
            buildings, report = save_slot(slots, draft, store.list_players())
        except SlotEditError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return SlotSaveResponse(buildings=buildings, overflow=OverflowResponse.from_report(report))

    @app.post("/allocations/slot/clear", response_model=List[SlotAssignment])
    async def slot_clear(payload: SlotClearRequest) -> List[SlotAssignment]:
        topology = _topology(payload.settings, payload.building_names)
        slots = align_slots(payload.buildings, topology)
        try:
            return clear_slot(slots, payload.building_name, payload.shift)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc.args[0])) from exc

    return app


__all__ = ["create_app"]
