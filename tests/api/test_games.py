"""
Tests for the game, transaction and totals endpoints.
"""

import uuid
from decimal import Decimal

ALICE = str(uuid.UUID(int=1))
BOB = str(uuid.UUID(int=2))


def create_game(client, status="in_progress"):
    game = client.post("/games", json={"name": "Thursday Game"}).json()
    steps = {"scheduled": [], "in_progress": ["in_progress"],
             "completed": ["in_progress", "completed"]}[status]
    for step in steps:
        client.patch(f"/games/{game['id']}/status", json={"new_status": step})
    return game


def post_transaction(client, game_id, user_id, type_, amount, actor=None):
    headers = {"X-User-Id": actor} if actor else {}
    return client.post(
        f"/games/{game_id}/transactions",
        json={"user_id": user_id, "type": type_, "amount": amount},
        headers=headers,
    )


class TestGames:

    def test_create_game(self, client):
        response = client.post("/games", json={"name": "Thursday Game"})

        assert response.status_code == 201
        assert response.json()["status"] == "scheduled"

    def test_get_game(self, client):
        game = create_game(client, "scheduled")

        response = client.get(f"/games/{game['id']}")

        assert response.status_code == 200
        assert response.json()["name"] == "Thursday Game"

    def test_get_unknown_game(self, client):
        response = client.get("/games/999")

        assert response.status_code == 404
        assert response.json()["detail"] == "Game 999 not found"

    def test_change_status(self, client):
        game = create_game(client, "scheduled")

        response = client.patch(
            f"/games/{game['id']}/status", json={"new_status": "in_progress"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

    def test_invalid_transition(self, client):
        game = create_game(client, "scheduled")

        response = client.patch(
            f"/games/{game['id']}/status", json={"new_status": "completed"}
        )

        assert response.status_code == 400


class TestTransactions:

    def test_record_buyin(self, client):
        game = create_game(client)

        response = post_transaction(client, game["id"], ALICE, "buyin", "100.00")

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"] == ALICE
        assert Decimal(data["amount"]) == Decimal("100.00")

    def test_zero_amount_rejected_by_schema(self, client):
        game = create_game(client)

        response = post_transaction(client, game["id"], ALICE, "buyin", "0")

        assert response.status_code == 422

    def test_amount_over_limit(self, client):
        game = create_game(client)

        response = post_transaction(client, game["id"], ALICE, "buyin", "20000.00")

        assert response.status_code == 400
        assert "exceeds maximum" in response.json()["detail"]

    def test_scheduled_game_rejects_transactions(self, client):
        game = create_game(client, "scheduled")

        response = post_transaction(client, game["id"], ALICE, "buyin", "10.00")

        assert response.status_code == 400

    def test_unknown_game(self, client):
        response = post_transaction(client, 999, ALICE, "buyin", "10.00")

        assert response.status_code == 404

    def test_list_and_totals(self, client):
        game = create_game(client)
        post_transaction(client, game["id"], ALICE, "buyin", "100.00")
        post_transaction(client, game["id"], BOB, "buyin", "100.00")
        post_transaction(client, game["id"], ALICE, "cashout", "150.00")
        post_transaction(client, game["id"], BOB, "cashout", "50.00")

        txns = client.get(f"/games/{game['id']}/transactions").json()
        totals = client.get(f"/games/{game['id']}/totals").json()

        assert len(txns) == 4
        assert [t["user_id"] for t in totals] == [ALICE, BOB]
        assert Decimal(totals[0]["net_result"]) == Decimal("50.00")
        assert Decimal(totals[1]["net_result"]) == Decimal("-50.00")

    def test_actor_header_recorded(self, client):
        game = create_game(client)
        actor = str(uuid.uuid4())

        txn = post_transaction(client, game["id"], ALICE, "buyin", "10.00", actor).json()

        history = client.get(f"/audit/records/transactions/{txn['id']}").json()
        assert history[0]["actor_id"] == actor
        assert history[0]["subject_id"] == ALICE
