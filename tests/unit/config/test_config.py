"""Unit tests for configuration loading."""

import logging

from fedauth.config import Config, LoggingConfig, ProviderSettings, configure_logging


class TestConfigSources:
    def test_defaults(self):
        config = Config()

        assert config.auth.providers == {}
        assert config.http.timeout().connect == 5.0

    def test_nested_env_vars(self, monkeypatch):
        monkeypatch.setenv("FEDAUTH_AUTH__PROVIDERS__NEXTCLOUD__CLIENT_ID", "env-client")
        monkeypatch.setenv("FEDAUTH_HTTP__READ", "2.5")

        config = Config()

        assert config.auth.providers["nextcloud"].client_id == "env-client"
        assert config.http.read == 2.5

    def test_yaml_file(self, monkeypatch, tmp_path):
        path = tmp_path / "fedauth.yaml"
        path.write_text(
            "auth:\n"
            "  providers:\n"
            "    oidc2:\n"
            "      type: oidc\n"
            "      client_id: yaml-client\n"
            "      scopes: [openid]\n"
        )
        monkeypatch.setenv("FEDAUTH_CONFIG_FILE", str(path))

        config = Config()

        settings = config.auth.providers["oidc2"]
        assert settings.type == "oidc"
        assert settings.client_id == "yaml-client"
        assert settings.scopes == ["openid"]


class TestProviderSettings:
    def test_overrides_skip_unset_fields(self):
        settings = ProviderSettings(client_id="c", token_url="https://t.test", enabled=True)

        assert settings.overrides() == {
            "client_id": "c",
            "client_secret": "",
            "redirect_url": "",
            "token_url": "https://t.test",
        }

    def test_is_configured(self):
        assert not ProviderSettings(client_id="c").is_configured
        assert ProviderSettings(
            client_id="c", client_secret="s", redirect_url="https://a.test/cb"
        ).is_configured


class TestConfigureLogging:
    def test_sets_level_and_quiets_httpx(self):
        configure_logging(LoggingConfig(level="WARNING"))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING
