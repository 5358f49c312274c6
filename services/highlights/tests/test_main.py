"""
Tests for the highlights application factory.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from cv_common.config import Settings

from highlights import main
from highlights.backend import SearchBackend


class TestCreateApp:
    def test_routes_registered(self) -> None:
        app = main.create_app(Settings(log_json=False))
        paths = {getattr(route, "path", None) for route in app.routes}
        assert "/api/v1/meetings/{meeting_id}/highlights" in paths
        assert "/health" in paths
        assert "/metrics" in paths

    def test_lifespan_creates_and_closes_backend(self) -> None:
        es = AsyncMock()
        es.ping = AsyncMock(return_value=True)
        with patch.object(main, "AsyncElasticsearch", return_value=es) as es_cls:
            app = main.create_app(Settings(es_hosts="http://es1:9200, http://es2:9200", log_json=False))
            with TestClient(app) as client:
                assert isinstance(app.state.search_backend, SearchBackend)
                assert client.get("/health").json()["services"]["elasticsearch"] == "healthy"
        es_cls.assert_called_once_with(["http://es1:9200", "http://es2:9200"])
        es.close.assert_awaited_once()
        assert app.state.search_backend is None

    def test_metrics_endpoint(self) -> None:
        client = TestClient(main.create_app(Settings(log_json=False)))
        resp = client.get("/metrics/")
        assert resp.status_code == 200
        assert "highlight_chunks_total" in resp.text
