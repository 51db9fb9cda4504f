import pytest
from httpx import ASGITransport, AsyncClient

from pyleague.api import create_app
from pyleague.models import MatchStat

from tests.factories import add_round, seed_league


@pytest.fixture()
async def client(tmp_path):
    app = create_app(tmp_path / "api.sqlite")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        yield async_client


def _seed(client: AsyncClient):
    store = client.app.state.store
    league, pool = seed_league(store)
    round_ = add_round(store, league.league_id)
    return store, league, pool, round_


def _team_payload(league_id: int, pool, owner_id: int = 1, offset: int = 0) -> dict:
    return {
        "league_id": league_id,
        "owner_id": owner_id,
        "name": f"Owner {owner_id} XI",
        "players": [
            {"player_id": p.player_id, "is_starter": index < 3}
            for index, p in enumerate(pool[offset : offset + 4])
        ],
    }


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_create_and_read_team(client: AsyncClient):
    _, league, pool, round_ = _seed(client)

    resp = await client.post("/teams", json=_team_payload(league.league_id, pool))
    assert resp.status_code == 201
    body = resp.json()
    assert body["budget_remaining"] == "2"
    assert len(body["roster"]) == 4
    assert body["round_id"] == round_.round_id

    fetched = await client.get(f"/teams/{body['team_id']}")
    assert fetched.status_code == 200
    assert [slot["player_id"] for slot in fetched.json()["roster"]] == [p.player_id for p in pool[:4]]


@pytest.mark.anyio
async def test_rule_violation_maps_to_400(client: AsyncClient):
    _, league, pool, _ = _seed(client)
    payload = _team_payload(league.league_id, pool)
    payload["players"] = payload["players"][:3]

    resp = await client.post("/teams", json=payload)

    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "ROSTER_SIZE_MISMATCH"


@pytest.mark.anyio
async def test_missing_team_is_404(client: AsyncClient):
    resp = await client.get("/teams/999")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "NOT_FOUND"


@pytest.mark.anyio
async def test_transfer_flow(client: AsyncClient):
    _, league, pool, round_ = _seed(client)
    team_id = (await client.post("/teams", json=_team_payload(league.league_id, pool))).json()["team_id"]
    move = {"player_out_id": pool[0].player_id, "player_in_id": pool[5].player_id}

    closed = await client.post(f"/teams/{team_id}/transfers", json=move)
    assert closed.status_code == 400
    assert closed.json()["detail"]["code"] == "TRANSFER_WINDOW_CLOSED"

    opened = await client.post(f"/rounds/{round_.round_id}/open")
    assert opened.status_code == 200
    assert opened.json()["state"] == "OPEN"

    done = await client.post(f"/teams/{team_id}/transfers", json=move)
    assert done.status_code == 201
    assert done.json()["round_id"] == round_.round_id

    remaining = await client.get(f"/teams/{team_id}/transfers/remaining")
    assert remaining.json()["remaining"] == 1

    history = await client.get(f"/teams/{team_id}/transfers")
    assert [item["player_in_id"] for item in history.json()] == [pool[5].player_id]


@pytest.mark.anyio
async def test_lineup_and_captain(client: AsyncClient):
    _, league, pool, round_ = _seed(client)
    team_id = (await client.post("/teams", json=_team_payload(league.league_id, pool))).json()["team_id"]

    locked = await client.post(f"/teams/{team_id}/captain", json={"slot_index": 0})
    assert locked.status_code == 409
    assert locked.json()["detail"]["code"] == "LINEUP_LOCKED"

    await client.post(f"/rounds/{round_.round_id}/open")
    swapped = await client.post(f"/teams/{team_id}/lineup/swap", json={"first_slot": 0, "second_slot": 3})
    assert swapped.status_code == 200
    roles = {slot["slot_index"]: slot["is_starter"] for slot in swapped.json()["roster"]}
    assert roles[0] is False and roles[3] is True

    bench = await client.post(f"/teams/{team_id}/captain", json={"slot_index": 0})
    assert bench.json()["detail"]["code"] == "CAPTAIN_NOT_STARTER"

    captain = await client.post(f"/teams/{team_id}/captain", json={"slot_index": 3, "captain_type": "TRIPLE_CAPTAIN"})
    assert captain.status_code == 200
    body = captain.json()
    assert body["triple_captain_used"] is True
    assert [slot["captain_type"] for slot in body["roster"] if slot["slot_index"] == 3] == ["TRIPLE_CAPTAIN"]


@pytest.mark.anyio
async def test_complete_round_and_leaderboard(client: AsyncClient):
    store, league, pool, round_ = _seed(client)
    first = (await client.post("/teams", json=_team_payload(league.league_id, pool))).json()["team_id"]
    second = (await client.post("/teams", json=_team_payload(league.league_id, pool, owner_id=2, offset=4))).json()[
        "team_id"
    ]
    store.record_match_stat(MatchStat(player_id=pool[4].player_id, match_id=1, round_id=round_.round_id, goals=1, minutes_played=90))

    completed = await client.post(f"/rounds/{round_.round_id}/complete")
    assert completed.status_code == 200
    assert sorted(completed.json()["scored_team_ids"]) == sorted([first, second])

    again = await client.post(f"/rounds/{round_.round_id}/complete")
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "ROUND_ALREADY_COMPLETED"

    board = await client.get(f"/leagues/{league.league_id}/leaderboard")
    assert [row["fantasy_team_id"] for row in board.json()["rows"]] == [second, first]

    per_round = await client.get(f"/leagues/{league.league_id}/leaderboard", params={"round_id": round_.round_id})
    assert per_round.json()["rows"][0]["points"] == 6

    history = await client.get(f"/teams/{second}/history")
    entry = history.json()[0]
    assert entry["rank"] == 1
    scored = [item for item in entry["lineup"] if item["player_id"] == pool[4].player_id]
    assert scored[0]["points"] == 6
    bench = [item for item in entry["lineup"] if not item["is_starter"]]
    assert bench[0]["points"] is None

    h2h = await client.get(f"/teams/{first}/head-to-head/{second}")
    assert h2h.json()["second_wins"] == 1

    stats = await client.get(f"/leagues/{league.league_id}/stats")
    assert stats.json()["team_count"] == 2


@pytest.mark.anyio
async def test_current_round(client: AsyncClient):
    _, league, _, round_ = _seed(client)

    resp = await client.get(f"/leagues/{league.league_id}/current-round")

    assert resp.status_code == 200
    assert resp.json()["round_id"] == round_.round_id
    assert resp.json()["state"] == "SCHEDULED"


@pytest.mark.anyio
async def test_team_rank_and_round_transfers(client: AsyncClient):
    store, league, pool, round_ = _seed(client)
    await client.post(f"/rounds/{round_.round_id}/open")
    first = (await client.post("/teams", json=_team_payload(league.league_id, pool))).json()["team_id"]
    second = (await client.post("/teams", json=_team_payload(league.league_id, pool, owner_id=2, offset=4))).json()[
        "team_id"
    ]
    await client.post(f"/teams/{first}/transfers", json={"player_out_id": pool[0].player_id, "player_in_id": pool[8].player_id})
    await client.post(f"/teams/{second}/transfers", json={"player_out_id": pool[4].player_id, "player_in_id": pool[9].player_id})

    moves = await client.get(f"/rounds/{round_.round_id}/transfers")
    assert moves.status_code == 200
    assert [item["fantasy_team_id"] for item in moves.json()] == [second, first]

    store.record_match_stat(MatchStat(player_id=pool[5].player_id, match_id=1, round_id=round_.round_id, goals=1, minutes_played=90))
    await client.post(f"/rounds/{round_.round_id}/complete")

    rank = await client.get(f"/teams/{first}/rank")
    assert rank.status_code == 200
    body = rank.json()
    assert (body["rank"], body["total_teams"], body["total_points"]) == (2, 2, 0)
    assert body["recent"] == [{"round_id": round_.round_id, "points": 0, "rank": 2}]

    assert (await client.get("/teams/999/rank")).status_code == 404
    assert (await client.get("/rounds/999/transfers")).status_code == 404


@pytest.mark.anyio
async def test_open_later_round_while_earlier_pending_is_409(client: AsyncClient):
    store, league, _, _ = _seed(client)
    later = add_round(store, league.league_id, number=2)

    resp = await client.post(f"/rounds/{later.round_id}/open")

    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "PREVIOUS_ROUND_INCOMPLETE"
