import pytest

from rallyplan.allocation import (
    EmptyPoolReason,
    SlotDraft,
    SlotEditError,
    SlotState,
    change_captain,
    commit_draft,
    eligible_captains_for_slot,
    eligible_players_for_slot,
    explain_empty_captains,
    explain_empty_players,
    save_slot,
    slot_state,
)
from rallyplan.allocation.editing import PlayerSelection
from rallyplan.config import get_topology
from rallyplan.models import PlayerAssignment, PlayerRecord, SlotAssignment


TOPOLOGY = get_topology(4, ["HUB", "North"])


def _player(player_id, name=None, *, tier=10, fighter=False, shooter=False, captain=False, march=100_000, rally=0):
    return PlayerRecord(
        player_id=player_id,
        name=name or player_id,
        troop_tier=tier,
        troop_fighter=fighter,
        troop_shooter=shooter,
        is_captain=captain,
        march_size=march,
        rally_size=rally,
        first_shift=True,
    )


CAPTAIN_A = _player("a", "Captain A", fighter=True, captain=True, rally=500_000)
CAPTAIN_B = _player("b", "Captain B", shooter=True, captain=True, rally=400)
FIGHTER_ONE = _player("f1", "Fighter One", fighter=True)
FIGHTER_TWO = _player("f2", "Fighter Two", fighter=True)
SHOOTER = _player("s1", "Shooter", shooter=True, march=120)
ROSTER = [CAPTAIN_A, CAPTAIN_B, FIGHTER_ONE, FIGHTER_TWO, SHOOTER]


def _hub_with_fighters() -> SlotAssignment:
    return SlotAssignment(
        building_name="HUB",
        shift=1,
        captain=CAPTAIN_A,
        rally_size=500_000,
        players=(
            PlayerAssignment(player=FIGHTER_ONE, march=100_000),
            PlayerAssignment(player=FIGHTER_TWO, march=100_000),
        ),
    )


def test_slot_state_follows_contents():
    empty = SlotAssignment(building_name="HUB", shift=1)
    chosen = SlotAssignment(building_name="HUB", shift=1, captain=CAPTAIN_A, rally_size=10)

    assert slot_state(empty) is SlotState.EMPTY
    assert slot_state(chosen) is SlotState.CAPTAIN_CHOSEN
    assert slot_state(_hub_with_fighters()) is SlotState.PLAYERS_ASSIGNED


def test_captain_swap_drops_mismatched_players():
    draft = SlotDraft.from_slot(_hub_with_fighters())

    change = change_captain(draft, "b", ROSTER)

    assert change.dropped_players == ("Fighter One", "Fighter Two")
    assert change.draft.captain_id == "b"
    assert change.draft.rally_size == 400_000
    assert change.draft.selections == ()


def test_captain_swap_removes_new_captain_from_selections():
    draft = SlotDraft(
        building_name="HUB",
        shift=1,
        captain_id="a",
        rally_size=500_000,
        selections=(PlayerSelection("b", 50_000), PlayerSelection("s1", 120_000)),
    )

    change = change_captain(draft, "b", ROSTER)

    assert change.draft.selected_ids == ["s1"]
    assert change.dropped_players == ()


def test_eligible_players_follow_candidate_captain():
    slot = _hub_with_fighters()

    fighters = eligible_players_for_slot(slot, [slot], ROSTER, TOPOLOGY)
    shooters = eligible_players_for_slot(slot, [slot], ROSTER, TOPOLOGY, captain_id="b")

    assert [p.player_id for p in fighters] == ["f1", "f2"]
    assert [p.player_id for p in shooters] == ["s1"]


def test_eligible_captains_skip_shift_commitments_and_selected_players():
    hub = SlotAssignment(building_name="HUB", shift=1, captain=CAPTAIN_A, rally_size=500_000)
    north = SlotAssignment(building_name="North", shift=1)

    result = eligible_captains_for_slot(north, [hub, north], ROSTER, TOPOLOGY)
    assert [p.player_id for p in result] == ["b"]

    result = eligible_captains_for_slot(north, [hub, north], ROSTER, TOPOLOGY, selected_player_ids=["b"])
    assert result == []


def test_toggle_player_uses_normalized_march():
    draft = SlotDraft(building_name="HUB", shift=1, captain_id="b", rally_size=400_000)

    draft = draft.toggle_player(SHOOTER)
    assert draft.selections == (PlayerSelection("s1", 120_000),)

    draft = draft.set_march("s1", 90_000)
    assert draft.total_march == 90_000

    assert draft.toggle_player(SHOOTER).selections == ()
    with pytest.raises(SlotEditError):
        draft.set_march("f1", 10)


def test_typed_rally_size_is_not_normalized():
    draft = SlotDraft(building_name="HUB", shift=1, captain_id="a").with_rally_size(450)

    assert draft.rally_size == 450


def test_commit_without_captain_fails():
    draft = SlotDraft(building_name="HUB", shift=1)

    with pytest.raises(SlotEditError, match="Select a captain"):
        commit_draft(draft, ROSTER)


def test_commit_with_unknown_player_fails():
    draft = SlotDraft(
        building_name="HUB",
        shift=1,
        captain_id="a",
        rally_size=500_000,
        selections=(PlayerSelection("ghost", 10),),
    )

    with pytest.raises(SlotEditError, match="ghost"):
        commit_draft(draft, ROSTER)


def test_save_slot_reports_overflow_without_blocking():
    hub = _hub_with_fighters()
    north = SlotAssignment(building_name="North", shift=1)
    draft = SlotDraft.from_slot(hub).with_rally_size(150_000)

    slots, report = save_slot([hub, north], draft, ROSTER)

    assert slots[0].rally_size == 150_000
    assert slots[1] is north
    assert report.is_overflowing
    assert report.excess == 50_000
    assert report.message == "Overflow by 50000 units (200000 / 150000)"


def test_save_slot_unknown_slot_fails():
    draft = SlotDraft(building_name="West", shift=1, captain_id="a")

    with pytest.raises(SlotEditError):
        save_slot([_hub_with_fighters()], draft, ROSTER)


def test_explain_empty_captains_when_all_committed():
    hub = SlotAssignment(building_name="HUB", shift=1, captain=CAPTAIN_A, rally_size=1)
    west = SlotAssignment(building_name="North", shift=1, captain=CAPTAIN_B, rally_size=1)
    target = SlotAssignment(building_name="South", shift=1)

    notice = explain_empty_captains(target, [hub, west, target], ROSTER, get_topology(4))

    assert notice.reason is EmptyPoolReason.ALL_COMMITTED
    assert explain_empty_captains(west, [hub, west], ROSTER, TOPOLOGY) is None


def test_explain_empty_captains_when_none_in_shift():
    slot = SlotAssignment(building_name="HUB", shift=2)

    notice = explain_empty_captains(slot, [slot], ROSTER, TOPOLOGY)

    assert notice.reason is EmptyPoolReason.NOT_AVAILABLE_FOR_SHIFT


def test_explain_empty_players_troop_mismatch():
    roster = [CAPTAIN_B, FIGHTER_ONE, FIGHTER_TWO]
    slot = SlotAssignment(building_name="HUB", shift=1, captain=CAPTAIN_B, rally_size=400_000)

    notice = explain_empty_players(slot, [slot], roster, TOPOLOGY)

    assert notice.reason is EmptyPoolReason.TROOP_MISMATCH
    assert "shooter" in notice.message


def test_explain_empty_players_all_committed():
    hub = _hub_with_fighters()
    north = SlotAssignment(building_name="North", shift=1)
    roster = [CAPTAIN_A, FIGHTER_ONE, FIGHTER_TWO]

    notice = explain_empty_players(north, [hub, north], roster, TOPOLOGY)

    assert notice.reason is EmptyPoolReason.ALL_COMMITTED
    assert explain_empty_players(hub, [hub, north], roster, TOPOLOGY) is None


def test_save_slot_rejects_player_committed_elsewhere_in_shift():
    hub = _hub_with_fighters()
    north = SlotAssignment(building_name="North", shift=1)
    draft = SlotDraft(
        building_name="North",
        shift=1,
        captain_id="b",
        rally_size=400_000,
        selections=(PlayerSelection("f1", 100_000), PlayerSelection("s1", 120_000)),
    )

    with pytest.raises(SlotEditError, match="player f1 is already assigned in shift 1"):
        save_slot([hub, north], draft, ROSTER)


def test_save_slot_rejects_own_captain_as_player():
    north = SlotAssignment(building_name="North", shift=1)
    draft = SlotDraft(
        building_name="North",
        shift=1,
        captain_id="b",
        rally_size=400_000,
        selections=(PlayerSelection("b", 50_000),),
    )

    with pytest.raises(SlotEditError, match="player b is the captain of this slot"):
        save_slot([north], draft, ROSTER)


def test_save_slot_rejects_captain_committed_elsewhere_in_shift():
    hub = _hub_with_fighters()
    north = SlotAssignment(building_name="North", shift=1)
    draft = SlotDraft(building_name="North", shift=1, captain_id="a", rally_size=500_000)

    with pytest.raises(SlotEditError, match="captain a is already assigned"):
        save_slot([hub, north], draft, ROSTER)


def test_save_slot_allows_same_player_in_another_shift():
    hub = _hub_with_fighters()
    late = SlotAssignment(building_name="HUB", shift=2)
    draft = SlotDraft(
        building_name="HUB",
        shift=2,
        captain_id="a",
        rally_size=500_000,
        selections=(PlayerSelection("f1", 100_000),),
    )

    slots, _ = save_slot([hub, late], draft, ROSTER)

    assert slots[1].player_ids() == ["f1"]


def test_explain_empty_captains_counts_selected_players():
    north = SlotAssignment(building_name="North", shift=1)
    hub = SlotAssignment(building_name="HUB", shift=1, captain=CAPTAIN_A, rally_size=1)

    assert eligible_captains_for_slot(north, [hub, north], ROSTER, TOPOLOGY, selected_player_ids=["b"]) == []
    notice = explain_empty_captains(north, [hub, north], ROSTER, TOPOLOGY, selected_player_ids=["b"])

    assert notice.reason is EmptyPoolReason.ALL_COMMITTED
    assert "selected as players" in notice.message
