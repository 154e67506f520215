import json

from handlers import health_check


def test_health_check_returns_ok(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "staging")
    resp = health_check.lambda_handler({}, None)
    assert resp["statusCode"] == 200
    body = json.loads(resp["body"])
    assert body["status"] == "ok"
    assert body["service"] == "complaint-intelligence"
    assert body["environment"] == "staging"
    assert "timestamp" in body
