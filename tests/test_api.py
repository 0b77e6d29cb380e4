import pytest
from httpx import ASGITransport, AsyncClient

from rallyplan.api import create_app
from rallyplan.persistence import ScheduleStore


pytestmark = pytest.mark.anyio


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.delenv("RALLYPLAN_DB_PATH", raising=False)
    return ScheduleStore(tmp_path / "api.sqlite")


@pytest.fixture
async def client(store):
    app = create_app(store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client


def _player(player_id, name, **fields):
    payload = {"id": player_id, "name": name, "troopTier": 10, "firstShift": True}
    payload.update(fields)
    return payload


ROSTER = [
    _player("c", "Captain", troopTier=12, troopFighter=True, isCapitan=True, rallySize=500),
    _player("b", "Bowman", troopTier=11, troopShooter=True, isCapitan=True, rallySize=300_000),
    _player("f1", "Fighter One", troopTier=12, troopFighter=True, marchSize=200_000),
    _player("f2", "Fighter Two", troopTier=11, troopFighter=True, marchSize=200),
    _player("s1", "Shooter", troopShooter=True, marchSize=100_000),
    _player("atk", "Attacker", troopFighter=True, marchSize=300_000, isAttack=True),
]


async def _seed(client):
    for entry in ROSTER:
        response = await client.put(f"/players/{entry['id']}", json=entry)
        assert response.status_code == 200


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_player_pools(client):
    await _seed(client)

    defense = await client.get("/players", params={"pool": "defense"})
    attack = await client.get("/players", params={"pool": "attack"})

    assert [p["id"] for p in defense.json()] == ["c", "b", "f1", "f2", "s1"]
    assert [p["id"] for p in attack.json()] == ["atk"]
    assert defense.json()[0]["isCapitan"] is True


async def test_player_id_mismatch_rejected(client):
    response = await client.put("/players/other", json=_player("c", "Captain"))
    assert response.status_code == 400


async def test_delete_missing_player(client):
    response = await client.delete("/players/ghost")
    assert response.status_code == 404


async def test_auto_assign_uses_defense_pool(client):
    await _seed(client)

    response = await client.post(
        "/allocations/auto-assign",
        json={"settings": {"shiftDuration": 4}, "building_names": ["HUB", "North"]},
    )

    assert response.status_code == 200
    body = response.json()
    hub = body["buildings"][0]
    assert hub["buildingName"] == "HUB"
    assert hub["capitan"]["id"] == "c"
    assert hub["rallySize"] == 500_000
    assert [(p["player"]["id"], p["march"]) for p in hub["players"]] == [("f1", 200_000), ("f2", 200_000)]
    assert all(p["player"]["id"] != "atk" for b in body["buildings"] for p in b["players"])
    assert body["buildings"][1]["capitan"] == {}
    assert body["summary"]["slots"] == 4


async def test_auto_assign_can_draw_on_attack_players(client):
    await _seed(client)

    response = await client.post(
        "/allocations/auto-assign",
        json={
            "settings": {"shiftDuration": 4, "allowAttackPlayersInDefense": True},
            "building_names": ["HUB"],
        },
    )

    hub = response.json()["buildings"][0]
    assert [(p["player"]["id"], p["march"]) for p in hub["players"]] == [
        ("f1", 200_000),
        ("f2", 200_000),
        ("atk", 100_000),
    ]


async def test_auto_assign_rejects_duplicate_buildings(client):
    response = await client.post(
        "/allocations/auto-assign",
        json={"building_names": ["HUB", "HUB"]},
    )
    assert response.status_code == 400


async def test_slot_options_reports_troop_mismatch(client):
    for entry in (ROSTER[1], ROSTER[2]):
        await client.put(f"/players/{entry['id']}", json=entry)

    response = await client.post(
        "/allocations/slot/options",
        json={"building_names": ["HUB"], "building_name": "HUB", "shift": 1, "captain_id": "b"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "empty"
    assert [c["id"] for c in body["captains"]] == ["b"]
    assert body["players"] == []
    assert body["player_notice"]["reason"] == "troop_mismatch"


async def test_captain_change_reports_dropped_players(client):
    await _seed(client)

    response = await client.post(
        "/allocations/slot/captain",
        json={
            "draft": {
                "building_name": "HUB",
                "shift": 1,
                "captain_id": "c",
                "rally_size": 500_000,
                "selections": [
                    {"player_id": "f1", "march": 200_000},
                    {"player_id": "f2", "march": 200_000},
                    {"player_id": "s1", "march": 100_000},
                ],
            },
            "captain_id": "b",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["dropped_players"] == ["Fighter One", "Fighter Two"]
    assert body["draft"]["captain_id"] == "b"
    assert body["draft"]["selections"] == [{"player_id": "s1", "march": 100_000}]
    assert body["overflow"]["is_overflowing"] is False


async def test_slot_save_reports_overflow(client):
    await _seed(client)

    response = await client.post(
        "/allocations/slot/save",
        json={
            "building_names": ["HUB"],
            "draft": {
                "building_name": "HUB",
                "shift": 1,
                "captain_id": "c",
                "rally_size": 250_000,
                "selections": [
                    {"player_id": "f1", "march": 200_000},
                    {"player_id": "f2", "march": 200_000},
                ],
            },
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["buildings"][0]["capitan"]["id"] == "c"
    assert body["overflow"]["excess"] == 150_000
    assert body["overflow"]["message"] == "Overflow by 150000 units (400000 / 250000)"


async def test_slot_save_unknown_player_is_rejected(client):
    await _seed(client)

    response = await client.post(
        "/allocations/slot/save",
        json={
            "building_names": ["HUB"],
            "draft": {
                "building_name": "HUB",
                "shift": 1,
                "captain_id": "c",
                "rally_size": 500_000,
                "selections": [{"player_id": "ghost", "march": 1}],
            },
        },
    )

    assert response.status_code == 400
    assert "ghost" in response.json()["detail"]


async def test_slot_clear(client):
    await _seed(client)
    assigned = await client.post("/allocations/auto-assign", json={"building_names": ["HUB"]})

    response = await client.post(
        "/allocations/slot/clear",
        json={
            "building_names": ["HUB"],
            "buildings": assigned.json()["buildings"],
            "building_name": "HUB",
            "shift": 1,
        },
    )

    assert response.status_code == 200
    assert response.json()[0]["capitan"] == {}
    assert response.json()[0]["players"] == []

    missing = await client.post(
        "/allocations/slot/clear",
        json={"building_names": ["HUB"], "building_name": "HUB", "shift": 9},
    )
    assert missing.status_code == 404


async def test_schedule_lifecycle(client):
    await _seed(client)

    missing = await client.get("/schedules/2024-06-01")
    assert missing.status_code == 404

    created = await client.put("/schedules/2024-06-01", json={"created_by": "admin"})
    assert created.status_code == 200
    body = created.json()
    assert body["eventDate"] == "2024-06-01"
    assert len(body["buildings"]) == 10
    assert [p["id"] for p in body["attackPlayers"]] == ["atk"]

    updated = await client.put(
        "/schedules/2024-06-01",
        json={"settings": {"shiftDuration": 2}, "attack_players": []},
    )
    assert updated.status_code == 200
    assert updated.json()["id"] == body["id"]
    assert len(updated.json()["buildings"]) == 20
    assert updated.json()["attackPlayers"] == []

    listing = await client.get("/schedules")
    assert [s["eventDate"] for s in listing.json()] == ["2024-06-01"]

    deleted = await client.delete("/schedules/2024-06-01")
    assert deleted.status_code == 200
    assert (await client.get("/schedules/2024-06-01")).status_code == 404


async def test_slot_save_rejects_double_booking(client):
    await _seed(client)
    assigned = await client.post("/allocations/auto-assign", json={"building_names": ["HUB", "North"]})

    response = await client.post(
        "/allocations/slot/save",
        json={
            "building_names": ["HUB", "North"],
            "buildings": assigned.json()["buildings"],
            "draft": {
                "building_name": "North",
                "shift": 1,
                "captain_id": "b",
                "rally_size": 300_000,
                "selections": [
                    {"player_id": "f1", "march": 200_000},
                    {"player_id": "b", "march": 100_000},
                ],
            },
        },
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "player f1 is already assigned in shift 1" in detail
    assert "player b is the captain of this slot" in detail


async def test_slot_options_explains_captains_taken_by_selection(client):
    for entry in (ROSTER[0], ROSTER[1]):
        await client.put(f"/players/{entry['id']}", json=entry)

    response = await client.post(
        "/allocations/slot/options",
        json={
            "building_names": ["HUB"],
            "building_name": "HUB",
            "shift": 1,
            "selected_player_ids": ["c", "b"],
        },
    )

    body = response.json()
    assert body["captains"] == []
    assert body["captain_notice"]["reason"] == "all_committed"
