"""Configuration: validated settings, frozen runtime payload, ambient scope.

Resolution layers, lowest to highest precedence:

1. ``Settings`` defaults
2. Environment variables (``TRISTATE_*``, optionally from a ``.env`` file)
3. Explicit overrides passed to ``resolve_config``

Library code never receives configuration as an argument; the capture
boundary in ``tristate.outcome`` reads ``current_config()``, which prefers a
config installed with ``config_scope`` and falls back to fresh resolution.
"""

from __future__ import annotations

from contextlib import contextmanager
import contextvars
from dataclasses import dataclass
from functools import cache
import logging
import os
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from tristate.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Generator, Mapping

log = logging.getLogger(__name__)

# Environment variable -> settings field
ENV_VARS: dict[str, str] = {
    "TRISTATE_LOG_CAPTURED": "log_captured",
    "TRISTATE_CAPTURED_LOG_LEVEL": "captured_log_level",
    "TRISTATE_LOG_TRACEBACKS": "log_tracebacks",
}

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})


# --- Schema (Pydantic wall) ---


class Settings(BaseModel):
    """Schema for configuration fields, defaults and validation."""

    #: Log exceptions that ``match`` and friends convert into failures.
    log_captured: bool = Field(default=False)
    captured_log_level: int = Field(default=logging.DEBUG, ge=0)
    #: Attach the traceback to captured-exception log records.
    log_tracebacks: bool = Field(default=False)

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("log_captured", "log_tracebacks", mode="before")
    @classmethod
    def normalize_flag(cls, v: Any) -> Any:
        """Accept common string spellings of booleans from the environment."""
        if isinstance(v, str):
            s = v.strip().lower()
            if s in _TRUTHY:
                return True
            if s in _FALSY:
                return False
        return v

    @field_validator("captured_log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept level names (``"info"``) as well as numeric levels."""
        if isinstance(v, str):
            s = v.strip()
            if s.isdigit():
                return int(s)
            level = logging.getLevelName(s.upper())
            if isinstance(level, int):
                return level
        return v  # Let Pydantic raise with a precise error message


# --- Immutable runtime payload ---


@dataclass(frozen=True)
class FrozenConfig:
    """Validated configuration consulted at the exception-capture boundary."""

    log_captured: bool
    captured_log_level: int
    log_tracebacks: bool


# --- Ambient scope ---

_AMBIENT: contextvars.ContextVar[FrozenConfig | None] = contextvars.ContextVar(
    "tristate_ambient_config", default=None
)

_DOTENV_LOADED: bool = False


def _try_load_dotenv() -> None:
    """Load a ``.env`` file once per process.

    A file that cannot be read is logged and skipped, so resolution never
    fails on it.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    try:
        from dotenv import load_dotenv

        load_dotenv()
    except Exception as e:
        # An unreadable .env leaves the process environment as the only layer.
        log.warning("Could not load .env file: %r", e)
    _DOTENV_LOADED = True


def _env_layer(env: Mapping[str, str]) -> dict[str, str]:
    return {field: env[key] for key, field in ENV_VARS.items() if key in env}


def resolve_config(overrides: Mapping[str, Any] | None = None) -> FrozenConfig:
    """Resolve configuration from defaults, environment and overrides.

    Args:
        overrides: Field values that take precedence over the environment.

    Returns:
        The validated, immutable configuration.

    Raises:
        ConfigurationError: If any layer holds an unknown field or an invalid
            value.
    """
    _try_load_dotenv()
    merged: dict[str, Any] = {**_env_layer(os.environ), **(overrides or {})}
    try:
        settings = Settings(**merged)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        raise ConfigurationError(
            f"Invalid tristate configuration ({fields or 'unknown field'})",
            hint=f"Check overrides and the {', '.join(ENV_VARS)} environment variables",
        ) from e
    return FrozenConfig(**settings.model_dump())


# Keyed on the TRISTATE_* environment snapshot.
@cache
def _resolve_ambient_default(env_items: tuple[tuple[str, str], ...]) -> FrozenConfig:
    return resolve_config(dict(env_items))


def current_config() -> FrozenConfig:
    """Return the ambient configuration, resolving one when no scope is active.

    Outside a scope the resolved config is reused until a ``TRISTATE_*``
    environment variable changes.
    """
    cfg = _AMBIENT.get()
    if cfg is not None:
        return cfg
    _try_load_dotenv()
    return _resolve_ambient_default(tuple(sorted(_env_layer(os.environ).items())))


@contextmanager
def config_scope(
    cfg_or_overrides: Mapping[str, Any] | FrozenConfig | None = None,
    **overrides: Any,
) -> Generator[FrozenConfig]:
    """Install a configuration for the current context.

    Async-safe: each task sees the scope active where it was created.

    Example:
        with config_scope(log_captured=True, captured_log_level="warning"):
            outcome.match(...)  # captured exceptions are now logged
    """
    if isinstance(cfg_or_overrides, FrozenConfig):
        cfg = cfg_or_overrides
    else:
        cfg = resolve_config({**(cfg_or_overrides or {}), **overrides})

    token = _AMBIENT.set(cfg)
    log.debug("Entered config scope: %s", cfg)
    try:
        yield cfg
    finally:
        _AMBIENT.reset(token)
