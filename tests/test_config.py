"""Tests for src/config.py: PostdeskConfig, TOML loading, CLI overrides."""

from pathlib import Path
from unittest.mock import patch

import pytest
from postdesk.config import PostdeskConfig, load_config, merge_cli_overrides

_ENV_VARS = (
    "POSTDESK_STORE_DIR",
    "POSTDESK_SITE_NAME",
    "POSTDESK_SITE_URL",
    "POSTDESK_SITE_LANG",
    "POSTDESK_LOGO_URL",
    "POSTDESK_ADMIN_EMAIL",
    "POSTDESK_SECRET_KEY",
    "POSTDESK_SESSION_HOURS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove env vars that _apply_env_vars reads so tests see TOML values."""
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)


class TestPostdeskConfigDefaults:
    def test_default_store(self):
        cfg = PostdeskConfig()
        assert cfg.store.directory == "./.postdesk"
        assert cfg.store.path == Path("./.postdesk")

    def test_default_seo(self):
        cfg = PostdeskConfig()
        assert cfg.seo.min_content_length == 300
        assert cfg.seo.excerpt_max_length == 160

    def test_default_auth(self):
        cfg = PostdeskConfig()
        assert cfg.auth.session_hours == 24
        assert cfg.auth.bootstrap_admin_email == ""
        assert cfg.auth.secret_key == ""

    def test_default_site(self):
        assert PostdeskConfig().site.lang == "en"


class TestLoadConfig:
    def test_load_from_explicit_path(self, tmp_path):
        toml_path = tmp_path / ".postdesk.toml"
        toml_path.write_text('[site]\nname = "Example Press"\nlang = "fr"\n')
        cfg = load_config(toml_path)
        assert cfg.site.name == "Example Press"
        assert cfg.site.lang == "fr"
        assert cfg.seo.min_content_length == 300  # other defaults preserved

    def test_load_missing_path_returns_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "nonexistent.toml")
        assert cfg.store.directory == "./.postdesk"

    def test_load_searches_cwd(self, tmp_path, monkeypatch):
        (tmp_path / ".postdesk.toml").write_text('[store]\ndirectory = "/data/posts"\n')
        monkeypatch.chdir(tmp_path)
        with patch("postdesk.config.CONFIG_SEARCH_PATHS", [tmp_path]):
            cfg = load_config()
        assert cfg.store.directory == "/data/posts"

    def test_invalid_toml_returns_defaults(self, tmp_path):
        toml_path = tmp_path / ".postdesk.toml"
        toml_path.write_text("[site\nname = ")
        cfg = load_config(toml_path)
        assert cfg.site.name == "postdesk"

    def test_invalid_values_return_defaults(self, tmp_path):
        toml_path = tmp_path / ".postdesk.toml"
        toml_path.write_text('[seo]\nmin_content_length = "lots"\n')
        cfg = load_config(toml_path)
        assert cfg.seo.min_content_length == 300

    def test_all_sections(self, tmp_path):
        toml_path = tmp_path / ".postdesk.toml"
        toml_path.write_text(
            "[store]\n"
            'directory = "/srv/postdesk"\n'
            "[site]\n"
            'url = "https://blog.example"\n'
            'logo_url = "https://blog.example/logo.png"\n'
            "[seo]\n"
            "min_content_length = 500\n"
            "excerpt_max_length = 140\n"
            "[auth]\n"
            "session_hours = 8\n"
            'bootstrap_admin_email = "root@example.com"\n'
        )
        cfg = load_config(toml_path)
        assert cfg.store.directory == "/srv/postdesk"
        assert cfg.site.logo_url == "https://blog.example/logo.png"
        assert cfg.seo.min_content_length == 500
        assert cfg.seo.excerpt_max_length == 140
        assert cfg.auth.session_hours == 8
        assert cfg.auth.bootstrap_admin_email == "root@example.com"


class TestEnvVarOverrides:
    def test_env_overrides_toml(self, tmp_path, monkeypatch):
        toml_path = tmp_path / ".postdesk.toml"
        toml_path.write_text('[site]\nname = "From TOML"\n')
        monkeypatch.setenv("POSTDESK_SITE_NAME", "From env")
        assert load_config(toml_path).site.name == "From env"

    def test_store_dir_and_admin_email(self, tmp_path, monkeypatch):
        monkeypatch.setenv("POSTDESK_STORE_DIR", "/tmp/store")
        monkeypatch.setenv("POSTDESK_ADMIN_EMAIL", "root@example.com")
        cfg = load_config(tmp_path / "none.toml")
        assert cfg.store.directory == "/tmp/store"
        assert cfg.auth.bootstrap_admin_email == "root@example.com"

    def test_session_hours(self, tmp_path, monkeypatch):
        monkeypatch.setenv("POSTDESK_SESSION_HOURS", "2")
        assert load_config(tmp_path / "none.toml").auth.session_hours == 2

    def test_secret_key(self, tmp_path, monkeypatch):
        monkeypatch.setenv("POSTDESK_SECRET_KEY", "s3cret")
        assert load_config(tmp_path / "none.toml").auth.secret_key == "s3cret"

    def test_bad_session_hours_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("POSTDESK_SESSION_HOURS", "soon")
        assert load_config(tmp_path / "none.toml").auth.session_hours == 24


class TestMergeCliOverrides:
    def test_override_store_directory(self):
        cfg = merge_cli_overrides(PostdeskConfig(), store_directory="/cli/store")
        assert cfg.store.directory == "/cli/store"

    def test_none_values_ignored(self):
        cfg = merge_cli_overrides(PostdeskConfig(), store_directory=None, site_name=None)
        assert cfg == PostdeskConfig()

    def test_unknown_keys_ignored(self):
        cfg = merge_cli_overrides(PostdeskConfig(), colour="blue")
        assert cfg == PostdeskConfig()

    def test_site_overrides(self):
        cfg = merge_cli_overrides(PostdeskConfig(), site_name="CLI", site_lang="de")
        assert (cfg.site.name, cfg.site.lang) == ("CLI", "de")
