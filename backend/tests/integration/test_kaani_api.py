# backend/tests/integration/test_kaani_api.py
from kaani.config.settings import settings

API = f"/api/{settings.api_version}/kaani"


def _send(client, conversation_id, message, **extra):
    return client.post(f"{API}/conversations/{conversation_id}/messages", json={"message": message, **extra})


def test_root_and_health(test_client):
    assert test_client.get("/").json()["service"] == "KaAni Guided Conversation Engine"
    assert test_client.get("/health").json()["status"] == "healthy"
    assert test_client.get("/health/ready").json() == {"status": "ready"}


def test_detailed_health(test_client):
    response = test_client.get("/health/detailed")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["services"]["store"] == "connected"
    assert data["deployment"] == "DEV"


def test_send_message_runs_guided_turn(test_client):
    response = _send(test_client, "conv-123", "Palay ang tanim ko, 2 hectares", audience="farmer", dialect="tagalog")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["mode"] == "guided"
    assert data["conversationId"] == "conv-123"
    assert data["replyText"] == "Salamat! Ilang ektarya po ang sakahan?"
    assert data["slots"] == {"crop": "palay", "hectares": 2.0}
    assert data["nextStepId"] == "location"
    assert data["progress"]["requiredTotal"] == 3
    assert data["progress"]["missingRequired"] == ["province"]
    assert data["whatWeKnow"][0] == {"label": "Pananim", "value": "palay"}


def test_state_endpoint(test_client):
    empty = test_client.get(f"{API}/conversations/conv-new/state")
    assert empty.status_code == 200
    assert empty.json()["data"] is None

    _send(test_client, "conv-123", "Palay ang tanim ko, 2 hectares")
    state = test_client.get(f"{API}/conversations/conv-123/state").json()["data"]
    assert state["flowId"] == "default"
    assert state["nextStepId"] == "location"
    assert state["slots"]["hectares"] == 2.0


def test_artifacts_endpoint(test_client):
    _send(test_client, "conv-123", "Palay ang tanim ko, 2 hectares")
    response = test_client.get(
        f"{API}/conversations/conv-123/artifacts",
        params={"audience": "loan_officer", "farmer_profile_id": "farmer-1"},
        headers={"X-Request-ID": "req-abc"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["readiness"] == "draft"
    assert data["missing"] == ["province"]
    types = [artifact["type"] for artifact in data["artifacts"]]
    assert types == ["loan_summary", "cost_breakdown", "risk_flags", "next_questions", "loan_suggestion"]

    cost = data["artifacts"][1]["data"]
    assert cost["total"] == {"min": 70000, "max": 130000}
    assert len(cost["lineItems"]) == 9

    suggestion = data["artifacts"][4]
    assert suggestion["visibility"] == "ui"
    assert suggestion["data"]["suggestedAmount"] % 500 == 0


def test_get_flow(test_client):
    response = test_client.get(f"{API}/flows/loan_officer/default")
    assert response.status_code == 200
    flow = response.json()["data"]
    assert flow["audience"] == "loan_officer"
    assert flow["steps"][0]["slotKeys"] == []

    assert test_client.get(f"{API}/flows/farmer/harvest").status_code == 404
    assert test_client.get(f"{API}/flows/buyer/default").status_code == 422


def test_starter_prompts(test_client):
    for audience in ("farmer", "loan_officer"):
        data = test_client.get(f"{API}/starter-prompts/{audience}").json()["data"]
        assert data["audience"] == audience
        assert len(data["prompts"]) == 5


def test_invalid_requests_are_rejected(test_client):
    assert _send(test_client, "conv-1", "hello", audience="buyer").status_code == 422
    assert _send(test_client, "conv-1", "").status_code == 422
    assert _send(test_client, "conv-1", "hello", dialect="klingon").status_code == 422
    assert _send(test_client, "bad id!", "hello").status_code == 422


def test_metrics_endpoint_exposes_engine_counters(test_client):
    _send(test_client, "conv-1", "Palay")
    body = test_client.get("/metrics").text
    assert "kaani_turns_total" in body
