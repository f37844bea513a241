"""telelog wiring for the editing engine.

Everything the engine logs is either an ``event::<component>.<what>`` line
from :func:`record_event` or a profiled ``<component>::<action>`` block from
:func:`span`. Hosts pick a preset (or hand over a ``telelog.Config``) through
:func:`configure`; otherwise ``MDEDIT_ENGINE_*`` variables decide.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from typing import Any, Dict, Iterator, MutableMapping, Optional, Tuple, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "MDEDIT_ENGINE_"
PRESETS = ("development", "quiet")

_LOGGER_CACHE: MutableMapping[str, Any] = {}
_ACTIVE_CONFIG: Optional[Any] = None


def _env(name: str) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}")


def _env_flag(name: str) -> bool:
    raw = _env(name)
    return raw is not None and raw.lower() in {"1", "true", "yes", "on"}


def _text(value: Any) -> str:
    return value if isinstance(value, str) else repr(value)


def _pairs(data: Dict[str, Any]) -> list[tuple[str, str]]:
    return [(str(key), _text(value)) for key, value in data.items()]


def _preset_config(preset: str) -> Any:
    config = tl.Config()
    key = preset.lower()
    if key == "development":
        config.with_min_level("DEBUG")
        config.with_console_output(True)
        config.with_colored_output(True)
        config.with_profiling(True)
    elif key == "quiet":
        # Warnings only and nothing on the console; the test suite runs here.
        config.with_min_level("WARNING")
        config.with_console_output(False)
    else:
        raise ValueError(f"Unknown preset '{preset}', expected one of {PRESETS}.")
    return config


def _env_config() -> Any:
    preset = _env("PRESET")
    if preset:
        return _preset_config(preset)

    config = tl.Config()
    config.with_min_level((_env("LOG_LEVEL") or "INFO").upper())
    console = not _env_flag("DISABLE_CONSOLE")
    config.with_console_output(console)
    if console:
        config.with_colored_output(not _env_flag("NO_COLOR"))
    if _env_flag("LOG_JSON"):
        config.with_json_format(True)
    log_file = _env("LOG_FILE")
    if log_file:
        config.with_file_output(log_file)
        config.with_buffering(True)
    config.with_profiling(_env_flag("PROFILE"))
    return config


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Replace the active telelog configuration.

    ``preset`` is ``"development"`` (debug lines, colours, profiling) or
    ``"quiet"`` (warnings only, no console). ``config`` adopts an explicit
    ``telelog.Config``; the two are mutually exclusive. With neither, the
    ``MDEDIT_ENGINE_*`` environment is read again.
    """

    global _ACTIVE_CONFIG
    if config is not None and preset is not None:
        raise ValueError("Provide either `config` or `preset`, not both.")

    if preset is not None:
        config = _preset_config(preset)
    elif config is None:
        config = _env_config()

    _ACTIVE_CONFIG = config
    _LOGGER_CACHE.clear()


def _logger(name: Optional[str]) -> Any:
    global _ACTIVE_CONFIG
    logger_name = name or _env("LOGGER") or "mdedit_engine"
    if logger_name not in _LOGGER_CACHE:
        if _ACTIVE_CONFIG is None:
            _ACTIVE_CONFIG = _env_config()
        _LOGGER_CACHE[logger_name] = tl.Logger.with_config(logger_name, _ACTIVE_CONFIG)
    return _LOGGER_CACHE[logger_name]


def _emit(log: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    name = level.lower()
    with_data = getattr(log, f"{name}_with", None)
    if with_data is not None:
        with_data(message, _pairs(payload))
        return
    plain = getattr(log, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {payload}")


def _component_of(event: str) -> str:
    return event.partition(".")[0]


def record_event(
    name: str,
    *,
    level: str = "debug",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Emit ``event::<name>``; the component is the part of ``name`` before the dot."""

    payload = {"event": name, "component": _component_of(name), **(data or {})}
    _emit(_logger(logger_name), level, f"event::{name}", payload)


@contextmanager
def span(
    component: str,
    action: str,
    *,
    logger_name: Optional[str] = None,
    **fields: Any,
) -> Iterator[None]:
    """Profile ``<component>::<action>`` while tracking ``component``.

    ``fields`` (session name, flush kind, drop index, ...) are attached as
    logger context for the duration of the block. An exception escaping the
    block is logged as ``span::fail`` and re-raised.
    """

    log = _logger(logger_name)
    name = f"{component}::{action}"
    context: Tuple[Tuple[str, str], ...] = tuple(
        (key, _text(value)) for key, value in fields.items()
    )
    for key, value in context:
        log.add_context(key, value)

    with ExitStack() as stack:
        stack.enter_context(log.track_component(component))
        stack.enter_context(log.profile(name))
        try:
            yield
        except Exception as exc:
            failure = {"span": name, "component": component, "reason": str(exc)}
            _emit(log, "error", "span::fail", {**failure, **dict(context)})
            raise
        finally:
            for key, _ in context:
                log.remove_context(key)


configure()

__all__ = ["ENV_PREFIX", "PRESETS", "configure", "record_event", "span"]
