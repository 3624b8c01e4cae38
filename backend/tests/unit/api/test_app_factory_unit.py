import gc

import pytest
from bson import ObjectId

from app.app import allowed_origins, create_app, get_config_class
from config.development import DevelopmentConfig
from config.test import TestConfig


@pytest.mark.unit
class TestAppFactory:
    def test_testing_env_selects_test_config(self, monkeypatch):
        monkeypatch.setenv("FLASK_ENV", "testing")
        assert get_config_class() is TestConfig

    def test_unknown_env_is_rejected(self, monkeypatch):
        monkeypatch.setenv("FLASK_ENV", "staging")
        with pytest.raises(ValueError):
            get_config_class()

    def test_services_and_routes_registered(self):
        app = create_app(TestConfig, connect_database=False)

        services = app.extensions["services"]
        assert set(services) == {"bill_store", "bill_service", "company_service"}
        assert services["bill_store"].query_timeout_ms == 2000

        rules = {rule.rule for rule in app.url_map.iter_rules()}
        assert "/api/v1/bill/<company_id>/open/<year>/case/<case_id>" in rules
        assert "/api/v1/company/my" in rules

    @pytest.mark.parametrize("config", [TestConfig, DevelopmentConfig])
    def test_open_routes_served_with_and_without_rate_limiting(self, config):
        client = create_app(config, connect_database=False).test_client()
        gc.collect()

        yearly = client.get(f"/api/v1/bill/{ObjectId()}/open/2024/case/1")
        single = client.get(f"/api/v1/bill/{ObjectId()}/open/2024/3/case/1")

        assert yearly.status_code == 200
        assert len(yearly.get_json()["data"]) == 12
        assert single.status_code == 404

    def test_cors_for_allowed_origin(self):
        client = create_app(TestConfig, connect_database=False).test_client()

        preflight = client.options(
            "/api/v1/", headers={"Origin": "http://localhost:3000"}
        )
        response = client.get("/api/v1/", headers={"Origin": "http://localhost:3000"})
        foreign = client.get("/api/v1/", headers={"Origin": "https://evil.example"})

        assert preflight.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
        assert "GET" in preflight.headers["Access-Control-Allow-Methods"]
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
        assert "Access-Control-Allow-Origin" not in foreign.headers

    def test_security_headers(self):
        client = create_app(DevelopmentConfig, connect_database=False).test_client()

        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "default-src 'self'" in response.headers["Content-Security-Policy"]
        assert "Strict-Transport-Security" not in response.headers

    @pytest.mark.parametrize(
        "configured, expected",
        [
            ("https://a.example, https://b.example", ["https://a.example", "https://b.example"]),
            (["http://localhost:3000", " "], ["http://localhost:3000"]),
            (None, []),
        ],
    )
    def test_allowed_origins(self, configured, expected):
        assert allowed_origins({"ALLOWED_ORIGINS": configured}) == expected
