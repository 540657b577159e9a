from pathlib import Path

FIXTURES = Path(__file__).parent / "fixtures"


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_import_text_export(client):
    with (FIXTURES / "whatsapp_chat.txt").open("rb") as handle:
        resp = client.post(
            "/imports",
            files={"file": ("WhatsApp Chat with Bob.txt", handle, "text/plain")},
            data={"timezone_name": "UTC"},
        )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["chat"]["title"] == "Bob"
    assert len(body["chat"]["messages"]) == 4
    assert {user["name"] for user in body["chat"]["users"]} == {"Alice", "Bob"}
    assert body["chat"]["messages"][2]["type"] == "image"
    assert body["summary"]["source_format"] == "text"
    assert body["summary"]["validation"]["is_reasonably_valid"] is True


def test_import_html_export(client):
    with (FIXTURES / "whatsapp_export.html").open("rb") as handle:
        resp = client.post("/imports", files={"file": ("export.html", handle, "text/html")})
    assert resp.status_code == 201, resp.text
    assert resp.json()["summary"]["markup_strategy"] == "structured"


def test_import_rejects_unknown_extension(client):
    resp = client.post("/imports", files={"file": ("chat.json", b"{}", "application/json")})
    assert resp.status_code == 400


def test_import_rejects_unknown_timezone(client):
    resp = client.post(
        "/imports",
        files={"file": ("chat.txt", b"2022-01-01 10:00 - Alice: hi", "text/plain")},
        data={"timezone_name": "Mars/Olympus"},
    )
    assert resp.status_code == 400
    assert "Unknown timezone" in resp.json()["detail"]


def test_empty_upload_returns_placeholder_chat(client):
    resp = client.post("/imports", files={"file": ("empty.txt", b"", "text/plain")})
    assert resp.status_code == 201
    body = resp.json()
    assert body["summary"]["used_empty_fallback"] is True
    assert body["chat"]["messages"][0]["metadata"] == {"placeholder": True}


def test_import_rejects_oversized_upload(client, monkeypatch):
    from chatimport.core.config import Settings

    monkeypatch.setattr("chatimport.services.storage.get_settings", lambda: Settings(max_upload_size_mb=0))
    resp = client.post("/imports", files={"file": ("chat.txt", b"2022-01-01 10:00 - Alice: hi", "text/plain")})
    assert resp.status_code == 413


def test_rate_limiter_drops_idle_clients():
    from chatimport.main import RateLimiter

    limiter = RateLimiter(limit_per_minute=2)
    assert limiter.hit("10.0.0.1", now=1000.0)
    assert limiter.hit("10.0.0.1", now=1001.0)
    assert not limiter.hit("10.0.0.1", now=1002.0)
    assert limiter.hit("10.0.0.2", now=1002.0)
    assert len(limiter) == 2

    assert limiter.hit("10.0.0.2", now=1100.0)
    assert len(limiter) == 1
    assert limiter.hit("10.0.0.1", now=1100.0)
