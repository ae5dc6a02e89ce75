from unittest.mock import patch

from sqlalchemy.exc import OperationalError


class TestApp:
    def test_root_banner(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == "Billing System API is running"

    def test_unknown_api_route_requires_session(self, client):
        assert client.get("/api/nope").status_code == 401

    def test_cors_preflight(self, client):
        response = client.options(
            "/api/save-bill",
            headers={"Origin": "http://localhost:5500", "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:5500"
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_large_listing_is_gzipped(self, auth_client):
        for n in range(10):
            auth_client.post("/api/save-bill", json={"estimateNo": f"E{n}", "customerName": "Acme" * 20})
        response = auth_client.get("/api/get-bills", headers={"Accept-Encoding": "gzip"})
        assert response.status_code == 200
        assert response.headers.get("content-encoding") == "gzip"
        assert len(response.json()) == 10


class TestLifespan:
    def test_lifespan_runs_initialize_db(self):
        from starlette.testclient import TestClient

        from web.app import app

        with patch("web.app.initialize_db") as mock_init, patch("web.app.dispose_engine") as mock_dispose:
            with TestClient(app):
                mock_init.assert_called_once()
            mock_dispose.assert_called_once()

    def test_startup_survives_database_outage(self):
        from starlette.testclient import TestClient

        from web.app import app

        failure = OperationalError("CREATE", {}, Exception("down"))
        with patch("web.app.initialize_db", side_effect=failure), patch("web.app.dispose_engine"):
            with TestClient(app, base_url="https://testserver") as client:
                assert client.get("/").status_code == 200


class TestExceptionHandler:
    def test_unhandled_exception_returns_500(self, auth_client, monkeypatch):
        from starlette.testclient import TestClient

        from web.app import app

        def boom(request):
            raise RuntimeError("kaboom")

        monkeypatch.setattr("web.routes.bills.get_bill_service", boom)
        client = TestClient(app, base_url="https://testserver", raise_server_exceptions=False)
        client.cookies = auth_client.cookies

        response = client.get("/api/get-bills")
        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal Server Error"}
        assert "kaboom" not in response.text
