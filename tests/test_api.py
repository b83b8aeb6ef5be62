"""Tests for the HTTP layer."""

import pytest
from fastapi.testclient import TestClient

import main
from service_session import SessionStore


@pytest.fixture
def client(monkeypatch, repo):
    monkeypatch.setattr(main, "store", SessionStore(repo))
    return TestClient(main.app)


def post_run(client, **overrides):
    body = {"type": "running", "coords": [10, 10], "distance": 5, "duration": 25, "metric": 180}
    body.update(overrides)
    return client.post("/workouts", json=body)


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_health_storage_down(client, repo):
    repo.fail_load = True
    assert client.get("/health").status_code == 500


def test_create_running(client, repo):
    res = post_run(client)

    assert res.status_code == 201
    body = res.json()
    assert body["pace"] == 5.0
    assert body["metric"] == 5.0
    assert body["metricUnit"] == "min/km"
    assert body["description"].startswith("Running on ")
    assert repo.data[0]["id"] == body["id"]


def test_create_cycling(client):
    res = client.post(
        "/workouts",
        json={"type": "cycling", "coords": [20, 20], "distance": 15, "duration": 45, "metric": 200},
    )
    assert res.status_code == 201
    assert res.json()["speed"] == 20.0
    assert res.json()["elevation"] == 200


@pytest.mark.parametrize("overrides", [{"distance": 0}, {"duration": -3}, {"metric": None}, {"type": "rowing"}])
def test_invalid_input_is_400(client, repo, overrides):
    res = post_run(client, **overrides)
    assert res.status_code == 400
    assert client.get("/workouts").json() == []
    assert repo.data is None


def test_missing_field_is_400(client):
    res = client.post("/workouts", json={"type": "running", "coords": [1, 1], "duration": 10, "metric": 5})
    assert res.status_code == 400


def test_list_keeps_insertion_order(client):
    first = post_run(client).json()
    second = post_run(client, type="cycling", metric=100).json()

    listed = client.get("/workouts").json()
    assert [w["id"] for w in listed] == [first["id"], second["id"]]


def test_get_by_id(client):
    created = post_run(client).json()
    assert client.get(f"/workouts/{created['id']}").json()["id"] == created["id"]
    assert client.get("/workouts/unknown").status_code == 404


def test_view(client):
    created = post_run(client).json()
    view = client.get(f"/workouts/{created['id']}/view").json()
    assert view == {"coords": [10, 10], "zoom": main.settings.map_zoom_level}
    assert client.get("/workouts/unknown/view").status_code == 404


def test_markers(client):
    created = post_run(client).json()
    markers = client.get("/markers").json()
    assert markers == [{
        "id": created["id"],
        "coords": [10, 10],
        "popup": f"{created['icon']} {created['description']}",
        "className": "running-popup",
    }]


def test_reset(client, repo):
    post_run(client)
    assert client.post("/reset").json() == {"ok": True}
    assert client.get("/workouts").json() == []
    assert repo.data is None


def test_seed(client, repo):
    res = client.post("/seed", params={"count": 4})
    assert res.json() == {"inserted": 4}
    assert len(client.get("/workouts").json()) == 4
    assert len(repo.data) == 4


def test_ui(client):
    res = client.get("/ui")
    assert res.status_code == 200
    assert "leaflet" in res.text
    assert "__ZOOM__" not in res.text


def test_ui_escapes_stored_text(client):
    html = client.get("/ui").text
    assert "function esc(" in html
    assert "${esc(w.description)}" in html
    assert "${esc(w.id)}" in html
    assert "<h3>${w.description}</h3>" not in html
    assert "textContent: m.popup" in html
