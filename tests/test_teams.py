"""
Tests for team catalog endpoints.
"""

from fastapi.testclient import TestClient


def test_create_and_list_teams(client: TestClient):
    resp = client.post("/api/teams", json={"name": "  Deportivo Norte ", "founded_year": 1998, "colors": "green/white"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Deportivo Norte"
    assert data["founded_year"] == 1998

    client.post("/api/teams", json={"name": "Atletico Sur"})

    names = [t["name"] for t in client.get("/api/teams").json()]
    assert names == ["Atletico Sur", "Deportivo Norte"]


def test_duplicate_team_name_conflict(client: TestClient):
    client.post("/api/teams", json={"name": "Real Plaza"})
    resp = client.post("/api/teams", json={"name": "Real Plaza"})
    assert resp.status_code == 409


def test_empty_name_rejected(client: TestClient):
    resp = client.post("/api/teams", json={"name": "   "})
    assert resp.status_code == 422


def test_update_team(client: TestClient):
    team_id = client.post("/api/teams", json={"name": "Union"}).json()["id"]

    resp = client.patch(f"/api/teams/{team_id}", json={"logo_url": "https://example.org/union.png"})
    assert resp.status_code == 200
    assert resp.json()["logo_url"] == "https://example.org/union.png"
    assert resp.json()["name"] == "Union"


def test_get_missing_team(client: TestClient):
    assert client.get("/api/teams/999").status_code == 404


def test_delete_team(client: TestClient):
    team_id = client.post("/api/teams", json={"name": "Temporal"}).json()["id"]
    assert client.delete(f"/api/teams/{team_id}").status_code == 204
    assert client.get(f"/api/teams/{team_id}").status_code == 404


def test_cannot_delete_enrolled_team(client: TestClient):
    team_id = client.post("/api/teams", json={"name": "Inscrito"}).json()["id"]
    event_id = client.post("/api/events", json={"title": "Copa", "date": "2026-07-01"}).json()["id"]
    client.post(f"/api/events/{event_id}/teams", json={"team_ids": [team_id]})

    resp = client.delete(f"/api/teams/{team_id}")
    assert resp.status_code == 409
