from copany_bot.core.config import Settings


class TestSettings:
    def test_reads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("GITHUB_WEBHOOK_SECRET", "s3cret")
        monkeypatch.setenv("SUPABASE_URL", "https://xyz.supabase.co/")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")
        monkeypatch.setenv("PORT", "9000")

        settings = Settings()

        assert settings.github_webhook_secret == "s3cret"
        assert settings.supabase_url == "https://xyz.supabase.co"
        assert settings.port == 9000
        assert settings.supabase_configured is True

    def test_credentials_are_not_defaulted(self, monkeypatch) -> None:
        for name in ("GITHUB_WEBHOOK_SECRET", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.github_webhook_secret == ""
        assert settings.supabase_configured is False

    def test_table_names_default(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.installation_table == "copany_bot_installation"
        assert settings.copany_table == "copany"
