"""
Tests for the health check API router.

Validates the health response shape, Elasticsearch status reporting and
the per-index checks.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

from conftest import WORDS_INDEX, FakeElasticsearch


class TestHealthCheck:
    def test_health_healthy(self, client_for, make_backend) -> None:
        resp = client_for(make_backend(FakeElasticsearch())).get("/health")
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "healthy",
            "services": {
                "elasticsearch": "healthy",
                "words_index": "healthy",
                "sentences_index": "healthy",
            },
        }

    def test_health_not_configured(self, client_for) -> None:
        data = client_for(None).get("/health").json()
        assert data == {"status": "healthy", "services": {"elasticsearch": "not_configured"}}

    def test_health_missing_index(self, client_for, make_backend) -> None:
        es = FakeElasticsearch()
        es.indices.names = {WORDS_INDEX}
        data = client_for(make_backend(es)).get("/health").json()
        assert data["services"]["sentences_index"] == "missing"
        assert data["status"] == "degraded"

    def test_health_ping_false(self, client_for, make_backend) -> None:
        es = FakeElasticsearch()
        es.ping = AsyncMock(return_value=False)
        data = client_for(make_backend(es)).get("/health").json()
        assert data["services"] == {"elasticsearch": "unhealthy"}
        assert data["status"] == "degraded"

    def test_health_ping_error(self, client_for, make_backend) -> None:
        es = FakeElasticsearch()
        es.ping = AsyncMock(side_effect=ConnectionError("down"))
        data = client_for(make_backend(es)).get("/health").json()
        assert data["services"]["elasticsearch"] == "unhealthy"

    def test_health_index_check_error(self, client_for, make_backend) -> None:
        es = FakeElasticsearch()
        es.indices.exists = AsyncMock(side_effect=ConnectionError("timeout"))
        data = client_for(make_backend(es)).get("/health").json()
        assert data["services"]["words_index"] == "unhealthy"
        assert data["services"]["sentences_index"] == "unhealthy"
        assert data["status"] == "degraded"
