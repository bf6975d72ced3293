"""Application configuration.

``AppConfig`` is a frozen dataclass: immutable after creation, no
string-key lookups for framework settings.  Free-form application values
(greetings, feature switches, connection strings) live in ``Settings``,
an immutable mapping loaded once from a JSON file and the environment.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from okapi.errors import ConfigurationError

logger = logging.getLogger("okapi.config")

ENV_PREFIX = "OKAPI_"


class Settings(Mapping[str, str]):
    """Immutable, case-insensitive string settings.

    Nested JSON objects are flattened with ``:`` separators, so
    ``{"Logging": {"Level": "Error"}}`` is read as ``settings["Logging:Level"]``.
    Environment variables use ``__`` in place of ``:``.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        flat: dict[str, tuple[str, str]] = {}
        for key, value in _flatten(data or {}):
            flat[key.lower()] = (key, value)
        object.__setattr__(self, "_data", flat)

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()][1]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._data

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Settings({len(self)} keys)"

    def merged(self, overrides: Mapping[str, Any]) -> Settings:
        """Return new settings with *overrides* layered on top."""
        combined: dict[str, Any] = dict(self.items())
        for key, value in _flatten(overrides):
            for existing in [k for k in combined if k.lower() == key.lower()]:
                del combined[existing]
            combined[key] = value
        return Settings(combined)


def _flatten(data: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, str]]:
    for key, value in data.items():
        name = f"{prefix}:{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            yield from _flatten(value, name)
        elif isinstance(value, bool):
            yield name, "true" if value else "false"
        elif value is None:
            yield name, ""
        else:
            yield name, str(value)


def load_settings(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    prefix: str = ENV_PREFIX,
) -> Settings:
    """Load settings from a JSON file, then overlay prefixed env vars.

    A missing file is not an error (the environment alone may configure
    the app); a file that is not a JSON object is.

    ``OKAPI_HelloMessage=hi`` sets ``HelloMessage``;
    ``OKAPI_Logging__Level=Debug`` sets ``Logging:Level``.
    """
    data: dict[str, Any] = {}
    if path is not None:
        settings_path = Path(path)
        if settings_path.is_file():
            try:
                loaded = json.loads(settings_path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                msg = f"Settings file {str(settings_path)!r} is not valid JSON: {exc}"
                raise ConfigurationError(msg) from exc
            if not isinstance(loaded, dict):
                msg = f"Settings file {str(settings_path)!r} must contain a JSON object."
                raise ConfigurationError(msg)
            data = loaded
        else:
            logger.debug("Settings file %s not found, using environment only", settings_path)

    env = os.environ if environ is None else environ
    overrides = {
        name[len(prefix) :].replace("__", ":"): value
        for name, value in env.items()
        if name.startswith(prefix) and len(name) > len(prefix)
    }
    return Settings(data).merged(overrides)


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Framework configuration. Immutable after creation.

    Every field has a default; override what you need::

        config = AppConfig(port=8080, secret_key="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 5000
    debug: bool = False

    # Signing key for cookies issued by the auth middleware
    secret_key: str = ""

    # Logging
    log_level: str = "info"

    # Templates (rendered with kida; None disables Template responses)
    template_dir: str | Path | None = None
    autoescape: bool = True

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    # Application settings (see ``load_settings``)
    settings: Settings = field(default_factory=Settings)
