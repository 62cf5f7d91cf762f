from __future__ import annotations

from pathlib import Path

import pytest

from ccsu_result_api.config import DEFAULT_BROWSER_ARGS, DEFAULT_PORTAL_URL, load_config


_ENV_KEYS = (
    "PORT",
    "HOST",
    "PORTAL_URL",
    "PORTAL_HEADLESS",
    "PORTAL_NAVIGATION_TIMEOUT_MS",
    "PORTAL_BROWSER_ARGS",
    "CORS_ORIGINS",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_defaults_without_yaml(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.yaml")

    assert cfg.server.port == 8080
    assert cfg.server.host == "0.0.0.0"
    assert cfg.server.cors_origins == ["*"]
    assert cfg.portal.url == DEFAULT_PORTAL_URL
    assert cfg.portal.headless is True
    assert cfg.portal.launch_timeout_ms == 40_000
    assert cfg.portal.navigation_timeout_ms == 30_000
    assert cfg.portal.selector_timeout_ms == 10_000
    assert cfg.portal.browser_args == DEFAULT_BROWSER_ARGS
    assert cfg.logging.level == "INFO"
    assert cfg.logging.file_path == ""


def test_port_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "9090")

    cfg = load_config()

    assert cfg.server.port == 9090


def test_non_numeric_port_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "eighty")

    with pytest.raises(ValueError, match="PORT"):
        load_config()


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTAL_HEADLESS", "false")
    monkeypatch.setenv("PORTAL_NAVIGATION_TIMEOUT_MS", "45000")
    monkeypatch.setenv("PORTAL_BROWSER_ARGS", "--no-sandbox, --disable-gpu")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")

    cfg = load_config()

    assert cfg.portal.headless is False
    assert cfg.portal.navigation_timeout_ms == 45_000
    assert cfg.portal.browser_args == ["--no-sandbox", "--disable-gpu"]
    assert cfg.server.cors_origins == ["https://a.example", "https://b.example"]


def test_yaml_overrides_env_defaults_and_expands_vars(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("RESULT_HOST", "result.example.test")
    cfg_path = _write(
        tmp_path,
        "cfg.yaml",
        """
portal:
  url: "https://${RESULT_HOST}/regpvt2013.php"
  selector_timeout_ms: 5000
server:
  port: 8181
logging:
  level: "DEBUG"
""",
    )

    cfg = load_config(cfg_path)

    assert cfg.portal.url == "https://result.example.test/regpvt2013.php"
    assert cfg.portal.selector_timeout_ms == 5000
    # untouched keys keep their env/default values
    assert cfg.portal.navigation_timeout_ms == 30_000
    assert cfg.server.port == 8181
    assert cfg.logging.level == "DEBUG"


def test_empty_yaml_sections_are_ignored(tmp_path: Path) -> None:
    cfg_path = _write(tmp_path, "cfg.yaml", "server:\nportal:\n")

    cfg = load_config(cfg_path)

    assert cfg.server.port == 8080
    assert cfg.portal.url == DEFAULT_PORTAL_URL


@pytest.mark.parametrize("url", ["result.ccsuniversity.ac.in/regpvt2013.php", "ftp://example.test/x", ""])
def test_invalid_portal_url_rejected(tmp_path: Path, url: str) -> None:
    cfg_path = _write(tmp_path, "cfg.yaml", f'portal:\n  url: "{url}"\n')

    with pytest.raises(Exception):
        _ = load_config(cfg_path)


def test_invalid_port_rejected(tmp_path: Path) -> None:
    cfg_path = _write(tmp_path, "cfg.yaml", "server:\n  port: 70000\n")

    with pytest.raises(Exception):
        _ = load_config(cfg_path)


def test_non_positive_timeout_rejected(tmp_path: Path) -> None:
    cfg_path = _write(tmp_path, "cfg.yaml", "portal:\n  launch_timeout_ms: 0\n")

    with pytest.raises(Exception):
        _ = load_config(cfg_path)


def test_bundled_static_dir_has_landing_page() -> None:
    cfg = load_config()

    assert (cfg.server.resolved_static_dir() / "index.html").exists()
