import base64
import io

import pytest

import app.main as main_module


@pytest.fixture
def client(monkeypatch, ingestor):
    monkeypatch.setattr(main_module, "_ingestor", ingestor)
    monkeypatch.setattr(main_module, "SCOREBOOK_API_TOKEN", None)
    main_module.app.config["TESTING"] = True
    with main_module.app.test_client() as test_client:
        yield test_client


def preview(client, file_name="sheet.jpg"):
    response = client.post(
        "/api/scoresheets/preview",
        data={"file": (io.BytesIO(b"fake image bytes"), file_name)},
        content_type="multipart/form-data",
    )
    assert response.status_code == 200
    return response.get_json()


def confirm(client, body, headers=None):
    return client.post("/api/scoresheets/confirm", json=body, headers=headers or {})


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["success"] is True


def test_preview_multipart(client):
    body = preview(client)

    assert body["success"] is True
    assert body["source_reference"].endswith("_sheet.jpg")
    assert body["parsed_data"]["match"]["opponent"] == "Ealing CC"
    assert len(body["parsed_data"]["batting"]) == 6


def test_preview_base64_json(client):
    encoded = base64.b64encode(b"fake image bytes").decode()
    response = client.post(
        "/api/scoresheets/preview",
        json={"file_data": f"data:image/jpeg;base64,{encoded}", "file_name": "upload.jpg"},
    )
    assert response.status_code == 200
    assert response.get_json()["parsed_data"]["match"]["venue"] == "Lammas Park"


def test_preview_without_image(client):
    response = client.post("/api/scoresheets/preview", json={})
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_confirm_and_read_back(client):
    body = preview(client)

    response = confirm(client, {
        "parsed_data": body["parsed_data"],
        "source_reference": body["source_reference"],
    })
    assert response.status_code == 200
    result = response.get_json()
    assert result["success"] is True
    assert result["processed_count"] == 10
    assert result["season"] == "2025"

    record = client.get(f"/api/scoresheets/{body['source_reference']}").get_json()
    assert record["scoresheet"]["processed"] is True
    assert record["scoresheet"]["approved"] is True

    stats = client.get("/api/statistics?season=2025").get_json()["statistics"]
    assert [s["player_name"] for s in stats] == ["R Patel", "J Smith", "A Khan"]
    assert stats[0]["high_score_not_out"] is True

    player_id = stats[0]["player_id"]
    player = client.get(f"/api/players/{player_id}/statistics").get_json()
    assert player["statistics"][0]["runs"] == 45


def test_confirm_twice_conflicts(client):
    body = preview(client)
    payload = {"parsed_data": body["parsed_data"], "source_reference": body["source_reference"]}

    assert confirm(client, payload).status_code == 200
    response = confirm(client, payload)
    assert response.status_code == 409
    assert "already been processed" in response.get_json()["error"]


@pytest.mark.parametrize(
    "payload",
    [
        {"parsed_data": {"batting": []}, "source_reference": "processed_x"},
        {"parsed_data": {"match": {}, "batting": [{"name": "A", "runs": "x"}]}, "source_reference": "processed_x"},
        {"source_reference": "processed_x"},
        ["not", "an", "object"],
    ]
)
def test_confirm_malformed(client, payload):
    response = confirm(client, payload)
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_confirm_requires_token_when_configured(client, monkeypatch):
    monkeypatch.setattr(main_module, "SCOREBOOK_API_TOKEN", "s3cret")
    body = preview(client)
    payload = {"parsed_data": body["parsed_data"], "source_reference": body["source_reference"]}

    assert confirm(client, payload).status_code == 401
    assert confirm(client, payload, {"Authorization": "Bearer wrong"}).status_code == 401
    assert confirm(client, payload, {"Authorization": "Bearer s3cret"}).status_code == 200


def test_confirm_persistence_failure(client, ingestor, monkeypatch):
    import sqlite3

    def broken_save(conn, stats):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(ingestor.db_manager, "save_player_statistics", broken_save)
    body = preview(client)

    response = confirm(client, {"parsed_data": body["parsed_data"], "source_reference": body["source_reference"]})
    assert response.status_code == 500
    assert response.get_json()["success"] is False


def test_unknown_scoresheet(client):
    assert client.get("/api/scoresheets/processed_missing").status_code == 404


def test_statistics_requires_season(client):
    assert client.get("/api/statistics").status_code == 400


def test_statistics_for_empty_season(client):
    body = client.get("/api/statistics?season=1999").get_json()
    assert body["statistics"] == []


def test_unknown_player(client):
    assert client.get("/api/players/999/statistics").status_code == 404


def test_unknown_route(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "Not found"}


def test_match_details(client):
    body = preview(client)
    result = confirm(client, {
        "parsed_data": body["parsed_data"],
        "source_reference": body["source_reference"],
    }).get_json()

    response = client.get(f"/api/matches/{result['match_id']}/details")
    assert response.status_code == 200
    details = response.get_json()["details"]
    assert len(details) == 8
    assert details[0]["opposition"] == "Ealing CC"


def test_unknown_match(client):
    assert client.get("/api/matches/999/details").status_code == 404


def test_preview_upload_too_large(client, monkeypatch):
    monkeypatch.setitem(main_module.app.config, "MAX_CONTENT_LENGTH", 10)
    response = client.post(
        "/api/scoresheets/preview",
        data={"file": (io.BytesIO(b"x" * 1024), "big.jpg")},
        content_type="multipart/form-data",
    )
    assert response.status_code == 413
    assert response.get_json()["error"] == "Upload too large"


def test_read_side_errors_use_json_envelope(client, ingestor, monkeypatch):
    from scorebook.utils.exceptions import PersistenceError

    def broken_list(conn, season):
        raise PersistenceError("statistics table unreadable")

    monkeypatch.setattr(ingestor.db_manager, "list_season_statistics", broken_list)

    response = client.get("/api/statistics?season=2025")
    assert response.status_code == 500
    assert response.get_json() == {"success": False, "error": "statistics table unreadable"}
