"""
Tests for environment-driven settings
"""
from config import Settings


class TestSettings:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ADMIN_EMAILS", " Admin@Plant.Example , chief@plant.example,")
        monkeypatch.setenv("STORE_BACKEND", "rest")
        monkeypatch.setenv("JWT_TTL", "600")

        settings = Settings()

        assert settings.admin_email_list == ["admin@plant.example", "chief@plant.example"]
        assert settings.store_backend == "rest"
        assert settings.jwt_ttl_seconds == 600

    def test_timezone_defaults_to_moscow(self, monkeypatch):
        monkeypatch.delenv("TZ_DEFAULT", raising=False)
        assert Settings(_env_file=None).timezone.zone == "Europe/Moscow"

    def test_cors_origins_are_split(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://a.example, http://b.example")
        assert Settings().cors_origin_list == ["http://a.example", "http://b.example"]
