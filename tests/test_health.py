"""
tests/test_health.py -- Integration tests for GET /api/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against a live database
  - degraded status when the database stops answering
  - No authentication required
"""

from __future__ import annotations

from unittest.mock import patch


def test_health_returns_200_with_components(api):
    resp = api.client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(api):
    resp = api.client.get("/api/health", headers={})
    assert resp.status_code == 200


def test_health_degraded_when_database_down(api):
    with patch.object(api.stores.db, "ping", return_value=False):
        data = api.client.get("/api/health").json()
    assert data["status"] == "degraded"
    assert data["components"]["database"] == "error"
