from __future__ import annotations

from fastapi.testclient import TestClient

from chatbridge.app import create_app


def test_health_endpoint(monkeypatch) -> None:
    monkeypatch.delenv("LOG_FILE", raising=False)
    client = TestClient(create_app())

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_app_registers_routes(monkeypatch) -> None:
    monkeypatch.delenv("LOG_FILE", raising=False)
    app = create_app()

    paths = {getattr(route, "path", None) for route in app.routes}

    assert {
        "/api/chat/prepare",
        "/api/chat/assemble",
        "/api/models",
        "/api/messages/ui",
        "/api/messages/record",
        "/api/tools/web-search",
        "/api/tools/memory/save",
        "/api/tools/memory/retrieve",
        "/api/tools/call",
    } <= paths
