"""Configuration: environment variables (optionally from a .env file) with CLI overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_PROVIDER = "litellm"
DEFAULT_TIMEOUT = 60.0
DEFAULT_TICK_MS = 50


class ConfigError(ValueError):
    pass


@dataclass
class Config:
    api_key: str
    model: str
    provider: str = DEFAULT_PROVIDER
    base_url: Optional[str] = None
    timeout: Optional[float] = DEFAULT_TIMEOUT
    candidates: int = 1
    tick_interval: float = DEFAULT_TICK_MS / 1000
    log_file: Optional[Path] = None
    log_level: str = "INFO"

    def __repr__(self) -> str:
        # keep the key out of logs and tracebacks
        return (
            f"Config(model={self.model!r}, provider={self.provider!r}, base_url={self.base_url!r}, "
            f"timeout={self.timeout!r}, candidates={self.candidates!r}, tick_interval={self.tick_interval!r})"
        )


def _number(name: str, raw: Any, cast=float):
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def _timeout(raw: Any) -> Optional[float]:
    if raw is None:
        return DEFAULT_TIMEOUT
    if str(raw).strip().lower() in ("", "0", "none", "off"):
        return None
    value = _number("timeout", raw)
    if value < 0:
        raise ConfigError(f"timeout must not be negative, got {value}")
    return value or None


def load_config(
    overrides: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[Path] = None,
) -> Config:
    """Build a Config from CLI overrides, then the environment.

    `overrides` holds values given on the command line; None entries fall back
    to the environment. When `env` is not given, a .env file is loaded into
    os.environ first (existing variables win).
    """
    if env is None:
        load_dotenv(env_file or find_dotenv(usecwd=True), override=False)
        env = os.environ
    opts = {k: v for k, v in (overrides or {}).items() if v is not None}

    api_key = opts.get("api_key") or env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY", "")
    model = opts.get("model") or env.get("GEMINI_MODEL", "")

    if not api_key:
        raise ConfigError("An API key must be provided. Set GEMINI_API_KEY (or GOOGLE_API_KEY).")
    if not model:
        raise ConfigError("A model must be specified. Set GEMINI_MODEL or pass --model.")

    candidates = _number("candidates", opts.get("candidates", env.get("GEMTUI_CANDIDATES", 1)), int)
    if candidates < 1:
        raise ConfigError(f"candidates must be at least 1, got {candidates}")

    tick_ms = _number("tick interval", opts.get("tick_ms", env.get("GEMTUI_TICK_MS", DEFAULT_TICK_MS)))
    if tick_ms <= 0:
        raise ConfigError(f"tick interval must be positive, got {tick_ms}")

    log_file = opts.get("log_file") or env.get("GEMTUI_LOG_FILE")
    log_level = str(opts.get("log_level") or env.get("GEMTUI_LOG_LEVEL", "INFO")).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"unknown log level {log_level!r}")

    return Config(
        api_key=api_key,
        model=model,
        provider=opts.get("provider") or env.get("GEMTUI_PROVIDER", DEFAULT_PROVIDER),
        base_url=opts.get("base_url") or env.get("GEMINI_BASE_URL") or None,
        timeout=_timeout(opts.get("timeout", env.get("GEMTUI_TIMEOUT"))),
        candidates=candidates,
        tick_interval=tick_ms / 1000,
        log_file=Path(log_file) if log_file else None,
        log_level=log_level,
    )


def configure_logging(config: Config) -> None:
    """Send logs to the configured file; the terminal belongs to the UI."""
    root = logging.getLogger("gemtui")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.propagate = False
    if config.log_file is None:
        root.addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(config.log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(config.log_level)
