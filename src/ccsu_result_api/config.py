from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")

DEFAULT_PORTAL_URL = "https://result.ccsuniversity.ac.in/regpvt2013.php"

# Flags needed to run Chromium as root inside containers / small VMs.
DEFAULT_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})")


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _default_config_from_env() -> dict:
    """
    Env-only config so a deployment only needs `PORT` (and optionally `.env`).

    YAML remains an optional override for everything below.
    """
    browser_args = _split_csv(os.getenv("PORTAL_BROWSER_ARGS", "")) or list(DEFAULT_BROWSER_ARGS)
    return {
        "portal": {
            "url": os.getenv("PORTAL_URL", DEFAULT_PORTAL_URL),
            "headless": _env_bool("PORTAL_HEADLESS", default=True),
            "launch_timeout_ms": _env_int("PORTAL_LAUNCH_TIMEOUT_MS", 40_000),
            "navigation_timeout_ms": _env_int("PORTAL_NAVIGATION_TIMEOUT_MS", 30_000),
            "selector_timeout_ms": _env_int("PORTAL_SELECTOR_TIMEOUT_MS", 10_000),
            "browser_args": browser_args,
            "slow_mo_ms": _env_int("PORTAL_SLOW_MO_MS", 0),
            "debug_dir": os.getenv("PORTAL_DEBUG_DIR", "data/debug"),
            "save_debug_on_failure": _env_bool("PORTAL_SAVE_DEBUG_ON_FAILURE", default=False),
            "log_steps": _env_bool("PORTAL_LOG_STEPS", default=False),
        },
        "server": {
            "host": os.getenv("HOST", "0.0.0.0"),
            "port": _env_int("PORT", 8080),
            "static_dir": os.getenv("STATIC_DIR", ""),
            "cors_origins": _split_csv(os.getenv("CORS_ORIGINS", "")) or ["*"],
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", ""),
        },
    }


class PortalConfig(BaseModel):
    """
    Settings for driving the result portal.

    The form field names and result-page offsets are not configurable here; they live in
    `portal.selectors.PortalSelectors` so a markup change is fixed in one place.
    """

    url: str = DEFAULT_PORTAL_URL
    headless: bool = True
    launch_timeout_ms: int = 40_000
    navigation_timeout_ms: int = 30_000
    selector_timeout_ms: int = 10_000
    browser_args: list[str] = Field(default_factory=lambda: list(DEFAULT_BROWSER_ARGS))
    slow_mo_ms: int = 0

    # Failure diagnostics (screenshots + HTML of the page that broke).
    debug_dir: str = "data/debug"
    save_debug_on_failure: bool = False
    log_steps: bool = False

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        url = (v or "").strip()
        parsed = urlparse(url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"portal.url must be a full http(s) URL (got {v!r})")
        return url

    @field_validator("launch_timeout_ms", "navigation_timeout_ms", "selector_timeout_ms")
    @classmethod
    def _validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("portal timeouts must be positive milliseconds")
        return v

    @field_validator("slow_mo_ms")
    @classmethod
    def _validate_slow_mo(cls, v: int) -> int:
        return max(0, v)


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    # Empty means the landing page bundled with the package.
    static_dir: str = ""
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @field_validator("port")
    @classmethod
    def _validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError(f"server.port must be between 1 and 65535 (got {v})")
        return v

    def resolved_static_dir(self) -> Path:
        if self.static_dir:
            return Path(self.static_dir).resolve()
        return Path(__file__).resolve().parent / "static"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = ""


class AppConfig(BaseModel):
    portal: PortalConfig = PortalConfig()
    server: ServerConfig = ServerConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_sections(cls, data: object) -> object:
        # A YAML file with `server:` and nothing under it loads as None.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)
