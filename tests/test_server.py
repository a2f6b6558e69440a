from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi.testclient import TestClient

from tonewatch.adapters.file_tenant_store import FileTenantStore
from tonewatch.core.models import InboundMessage, ScorePolarity
from tonewatch.core.relay import BackgroundRelay
from tonewatch.server import create_app


class _FakeScorer:
    polarity = ScorePolarity.LOWER_IS_WORSE

    def __init__(self) -> None:
        self.warmed = False

    async def warm_up(self) -> None:
        self.warmed = True

    def score(self, text: str) -> float:
        return -1.0


class _RecordingHandler:
    def __init__(self) -> None:
        self.messages: list[InboundMessage] = []

    async def handle(self, message: InboundMessage) -> None:
        self.messages.append(message)


class _Closable:
    def __init__(self) -> None:
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


def _build(tmp_path: Path, rate_limit: Optional[str] = None):
    handler = _RecordingHandler()
    scorer = _FakeScorer()
    resource = _Closable()
    app = create_app(
        tenant_store=FileTenantStore(tmp_path),
        relay=BackgroundRelay(handler),
        scorer=scorer,
        rate_limit=rate_limit,
        resources=[resource],
    )
    return app, handler, scorer, resource


def _webhook_body(**data) -> dict:
    base = {
        "website_id": "site-1",
        "session_id": "session_abc",
        "from": "user",
        "type": "text",
        "content": "This is damn awful",
    }
    base.update(data)
    return {"event": "message:send", "data": base}


def test_webhook_acknowledges_and_screens_in_background(tmp_path: Path) -> None:
    app, handler, scorer, resource = _build(tmp_path)

    with TestClient(app) as client:
        assert scorer.warmed is True
        response = client.post("/webhook", json=_webhook_body())
        assert response.status_code == 200
        assert response.text == "OK"

    assert [message.text for message in handler.messages] == ["This is damn awful"]
    assert resource.closed is True


def test_webhook_acknowledges_ignored_and_malformed_payloads(tmp_path: Path) -> None:
    app, handler, _, _ = _build(tmp_path)

    with TestClient(app) as client:
        assert client.post("/webhook", json={"event": "session:removed"}).text == "OK"
        assert client.post("/webhook", json=_webhook_body(**{"from": "operator"})).text == "OK"
        response = client.post(
            "/webhook",
            content=b"{broken",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 200

    assert handler.messages == []


def test_get_config_returns_defaults(tmp_path: Path) -> None:
    app, _, _, _ = _build(tmp_path)
    with TestClient(app) as client:
        response = client.get("/plugin-config/site-1")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["tenantId"] == "site-1"
    assert body["config"]["alertTag"] == "profanity-alert"


def test_update_config_round_trips_through_storage(tmp_path: Path) -> None:
    app, _, _, _ = _build(tmp_path)
    with TestClient(app) as client:
        response = client.post("/plugin-config/site-1", json={"negativeThreshold": -0.5})
        assert response.status_code == 200
        assert client.get("/plugin-config/site-1").json()["config"]["negativeThreshold"] == -0.5


def test_update_config_validation_errors(tmp_path: Path) -> None:
    app, _, _, _ = _build(tmp_path)
    with TestClient(app) as client:
        invalid = client.post("/plugin-config/site-1", json={"negativeThreshold": "low"})
        empty = client.post("/plugin-config/site-1", json={"nothing": True})
        not_object = client.post("/plugin-config/site-1", json=[1, 2])

    assert invalid.status_code == 400
    assert invalid.json() == {"ok": False, "errors": ["negativeThreshold must be a number."]}
    assert empty.json()["errors"] == ["No valid fields provided."]
    assert not_object.status_code == 400


def test_invalid_tenant_id_is_rejected(tmp_path: Path) -> None:
    app, _, _, _ = _build(tmp_path)
    with TestClient(app) as client:
        response = client.get("/plugin-config/bad.id")
        update = client.post("/plugin-config/bad.id", json={"alertTag": "x"})

    assert response.status_code == 400
    assert response.json() == {"ok": False, "errors": ["invalid tenant id"]}
    assert update.status_code == 400
    assert list(tmp_path.iterdir()) == []


def test_health_and_security_headers(tmp_path: Path) -> None:
    app, _, _, _ = _build(tmp_path)
    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "timestamp" in response.json()
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_rate_limit_rejects_excess_requests(tmp_path: Path) -> None:
    app, _, _, _ = _build(tmp_path, rate_limit="2/minute")
    with TestClient(app) as client:
        statuses = [client.get("/health").status_code for _ in range(3)]

    assert statuses == [200, 200, 429]


def test_webhook_is_not_rate_limited(tmp_path: Path) -> None:
    app, handler, _, _ = _build(tmp_path, rate_limit="2/minute")

    with TestClient(app) as client:
        statuses = [
            client.post("/webhook", json=_webhook_body(session_id=f"session_{index}")).status_code
            for index in range(5)
        ]
        limited = [client.get("/health").status_code for _ in range(3)]

    assert statuses == [200] * 5
    assert sorted(message.conversation_id for message in handler.messages) == [
        f"session_{index}" for index in range(5)
    ]
    assert limited == [200, 200, 429]
