"""HTTP tests for /api: scenarios, reveal, subscribe."""
import pytest

from app.main import app
from app.routers.deps import get_subscription_service
from app.services.catalog import get_catalog
from app.services.reveal import CUE_FLIP, CUE_PAGE_TURN, RevealSessionStore, count_nonempty, split_lines
from app.services.subscription import (
    INTERNAL_ERROR_MESSAGE,
    INVALID_EMAIL_MESSAGE,
    NAME_REQUIRED_MESSAGE,
    SUCCESS_MESSAGE,
    TEST_MODE_MESSAGE,
    SubscriptionService,
)
from conftest import FakeLedger, FakeNotifier


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


# ── scenarios ───────────────────────────────────────────────────────

class TestScenarios:

    def test_list(self, client):
        response = client.get("/api/scenarios")
        assert response.status_code == 200
        ids = [s["id"] for s in response.json()]
        assert ids == [s.id for s in get_catalog()]
        assert set(response.json()[0]) == {"id", "category", "question"}

    def test_get_one(self, client):
        response = client.get("/api/scenarios/cashflow")
        assert response.status_code == 200
        assert response.json()["tarot"]["name"] == "The Tower"

    def test_unknown(self, client):
        assert client.get("/api/scenarios/nope").status_code == 404


# ── reveal ──────────────────────────────────────────────────────────

class TestReveal:

    def total(self, scenario_id="cashflow"):
        return count_nonempty(split_lines(get_catalog().get(scenario_id).emotional_content.content))

    def test_nothing_selected(self, client):
        assert client.get("/api/reveal").status_code == 404
        assert client.post("/api/reveal/flip").status_code == 404

    def test_select_unknown(self, client):
        assert client.post("/api/reveal/select", json={"scenario_id": "nope"}).status_code == 404

    def test_select_starts_face_down_and_sets_cookie(self, client):
        response = client.post("/api/reveal/select", json={"scenario_id": "cashflow"})
        assert response.status_code == 200
        assert "tarot_session" in response.cookies
        data = response.json()
        assert data["state"] == "back"
        assert data["revealed_line_count"] == 0
        assert data["total_line_count"] == self.total()
        assert client.get("/api/reveal").json()["scenario_id"] == "cashflow"

    def test_full_reading(self, client):
        client.post("/api/reveal/select", json={"scenario_id": "cashflow"})

        data = client.post("/api/reveal/flip").json()
        assert data["flipped"] is False
        assert data["cue"] is None

        client.post("/api/reveal/image-ready")
        data = client.post("/api/reveal/flip").json()
        assert data["state"] == "flipped"
        assert data["cue"] == CUE_FLIP

        assert client.post("/api/reveal/flip").json()["cue"] is None

        counts = []
        while True:
            data = client.post("/api/reveal/continue", json={"viewport_height": 150}).json()
            if data["cue"] is None:
                break
            assert data["cue"] == CUE_PAGE_TURN
            assert data["scroll_to"] is not None
            counts.append(data["revealed_line_count"])
        assert counts == sorted(set(counts))
        assert counts[-1] == self.total()
        assert data["complete"] is True
        assert data["revealed_line_count"] == self.total()

    def test_continue_without_body_uses_default_viewport(self, client):
        client.post("/api/reveal/select", json={"scenario_id": "burnout"})
        client.post("/api/reveal/image-ready")
        client.post("/api/reveal/flip")
        data = client.post("/api/reveal/continue").json()
        assert data["revealed_line_count"] == min(800 // 30, self.total("burnout"))

    def test_masked_text_is_still_returned(self, client):
        data = client.post("/api/reveal/select", json={"scenario_id": "people"}).json()
        texts = [line["text"] for line in data["lines"]]
        assert "\n".join(texts) == get_catalog().get("people").emotional_content.content
        assert not any(line["visible"] for line in data["lines"] if line["text"].strip())

    def test_reselect_resets(self, client):
        client.post("/api/reveal/select", json={"scenario_id": "cashflow"})
        client.post("/api/reveal/image-ready")
        client.post("/api/reveal/flip")
        client.post("/api/reveal/continue", json={"viewport_height": 300})

        data = client.post("/api/reveal/select", json={"scenario_id": "growth"}).json()
        assert data["scenario_id"] == "growth"
        assert data["state"] == "back"
        assert data["image_ready"] is False
        assert data["revealed_line_count"] == 0

    def test_delete_discards_state(self, client):
        client.post("/api/reveal/select", json={"scenario_id": "cashflow"})
        assert client.delete("/api/reveal").json() == {"status": "reset"}
        assert client.get("/api/reveal").status_code == 404

    def test_plain_read_does_not_replay_cue(self, client):
        client.post("/api/reveal/select", json={"scenario_id": "cashflow"})
        client.post("/api/reveal/image-ready")
        assert client.post("/api/reveal/flip").json()["cue"] == CUE_FLIP
        data = client.get("/api/reveal").json()
        assert data["flipped"] is True
        assert data["cue"] is None

    def test_cookieless_selects_keep_store_bounded(self, client):
        store = RevealSessionStore(max_sessions=5)
        app.state.reveal_store = store
        for _ in range(200):
            client.cookies.clear()
            assert client.post("/api/reveal/select", json={"scenario_id": "cashflow"}).status_code == 200
        assert len(store) <= 5
        # the latest visitor still has a reading
        assert client.get("/api/reveal").json()["scenario_id"] == "cashflow"


# ── subscribe ───────────────────────────────────────────────────────

class TestSubscribe:

    def test_success_in_test_mode(self, client):
        response = client.post("/api/subscribe", json={"name": "지민", "email": "jimin@example.com"})
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": TEST_MODE_MESSAGE}
        assert response.headers["access-control-allow-origin"] == "*"

    def test_success_with_sinks(self, configured_client, ledger, notifier):
        response = configured_client.post("/api/subscribe", json={"name": "지민", "email": "jimin@example.com"})
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["message"] == SUCCESS_MESSAGE
        assert len(ledger.rows) == 1
        assert len(notifier.sent) == 1

    @pytest.mark.parametrize("body,error", [
        ({"name": "", "email": "a@b.com"}, NAME_REQUIRED_MESSAGE),
        ({"email": "a@b.com"}, NAME_REQUIRED_MESSAGE),
        ({"name": 42, "email": "a@b.com"}, NAME_REQUIRED_MESSAGE),
        ({"name": "x", "email": "no-at-sign"}, INVALID_EMAIL_MESSAGE),
        ({"name": "x"}, INVALID_EMAIL_MESSAGE),
    ])
    def test_validation_failure(self, configured_client, ledger, notifier, body, error):
        response = configured_client.post("/api/subscribe", json=body)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": error}
        assert ledger.rows == []
        assert notifier.sent == []

    def test_sink_failures_still_succeed(self, client):
        service = SubscriptionService(
            FakeLedger(error=ConnectionError("down")),
            FakeNotifier(error=TimeoutError("slow")),
        )
        app.dependency_overrides[get_subscription_service] = lambda: service
        response = client.post("/api/subscribe", json={"name": "지민", "email": "jimin@example.com"})
        assert response.status_code == 200
        assert response.json()["success"] is True

    @pytest.mark.parametrize("content", [b"{not json", b"[1, 2]", b""])
    def test_malformed_body(self, client, content):
        response = client.post("/api/subscribe", content=content, headers={"Content-Type": "application/json"})
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": INTERNAL_ERROR_MESSAGE}

    def test_preflight(self, client):
        response = client.options("/api/subscribe")
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_other_methods(self, client, method):
        response = getattr(client, method)("/api/subscribe")
        assert response.status_code == 405
        assert response.json() == {"success": False, "error": "Method not allowed"}
