"""Extractor settings and request manifest loading.

Settings come from an optional YAML (or JSON) file, then environment
variables (a ``.env`` file is honored through python-dotenv), then explicit
overrides from the caller.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from snippet.config import (
    DEFAULT_BLOCK_ELLIPSIS,
    DEFAULT_ELLIPSIS_INDENT,
    DEFAULT_LANGUAGE,
)

logger = logging.getLogger(__name__)

STRICT_PARSING_ENV = "SNIPPET_STRICT_PARSING"
SOURCE_ROOTS_ENV = "SNIPPET_SOURCE_ROOTS"


class ConfigValidationError(RuntimeError):
    """Raised when a settings or request manifest payload is invalid."""


@dataclass(frozen=True)
class ExtractorSettings:
    """Options shared by every extractor of a run."""

    source_roots: tuple[str, ...] = ()
    strict_parsing: bool = False
    language: str = DEFAULT_LANGUAGE
    block_ellipsis: str = DEFAULT_BLOCK_ELLIPSIS
    ellipsis_indent: str = DEFAULT_ELLIPSIS_INDENT


@dataclass(frozen=True)
class ExtractionRequest:
    """One snippet requested by the documentation layer."""

    file_path: str
    pattern: str = ""
    language: str | None = None

    @property
    def label(self) -> str:
        return f"{self.file_path} {self.pattern}".strip()


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _expect_dict(payload: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ConfigValidationError(f"{ctx} must be an object")
    return payload


def _read_payload(path: str) -> Any:
    """Read a YAML or JSON document, chosen by file suffix."""
    file_path = Path(path)
    if not file_path.is_file():
        raise ConfigValidationError(f"Configuration file not found: {file_path}")

    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigValidationError(f"Failed to parse {file_path}: {exc}") from exc


def _resolve_roots(raw_roots: Any, base_dir: Path, ctx: str) -> tuple[str, ...]:
    if isinstance(raw_roots, str):
        raw_roots = [raw_roots]
    if not isinstance(raw_roots, list) or not all(isinstance(r, str) for r in raw_roots):
        raise ConfigValidationError(f"{ctx} must be a list of directory paths")

    roots = []
    for raw in raw_roots:
        root = Path(os.path.expanduser(raw))
        if not root.is_absolute():
            root = base_dir / root
        roots.append(str(root.resolve()))
    return tuple(roots)


def load_settings(
    config_path: str | None = None,
    **overrides: Any,
) -> ExtractorSettings:
    """Load extractor settings.

    Args:
        config_path: Optional YAML/JSON settings file. Relative source roots
            resolve against the file's directory.
        **overrides: Field values taking precedence over file and
            environment; ``None`` values are ignored.

    Returns:
        The resolved ExtractorSettings.

    Raises:
        ConfigValidationError: If the file is missing or malformed.
    """
    load_dotenv()
    settings = ExtractorSettings()

    if config_path:
        payload = _read_payload(config_path)
        payload = _expect_dict(payload if payload is not None else {}, "settings")
        base_dir = Path(config_path).resolve().parent

        unknown = set(payload) - {
            "source_roots",
            "strict_parsing",
            "language",
            "block_ellipsis",
            "ellipsis_indent",
        }
        if unknown:
            raise ConfigValidationError(
                "Unknown settings keys: " + ", ".join(sorted(unknown))
            )

        values: dict[str, Any] = {}
        if "source_roots" in payload:
            values["source_roots"] = _resolve_roots(
                payload["source_roots"], base_dir, "source_roots"
            )
        if "strict_parsing" in payload:
            if not isinstance(payload["strict_parsing"], bool):
                raise ConfigValidationError("strict_parsing must be a boolean")
            values["strict_parsing"] = payload["strict_parsing"]
        for key in ("language", "block_ellipsis", "ellipsis_indent"):
            if key in payload:
                if not isinstance(payload[key], str):
                    raise ConfigValidationError(f"{key} must be a string")
                values[key] = payload[key]
        settings = replace(settings, **values)
        logger.info("Loaded settings from %s", config_path)

    env_roots = os.getenv(SOURCE_ROOTS_ENV)
    if env_roots and not settings.source_roots:
        settings = replace(
            settings,
            source_roots=_resolve_roots(
                [r for r in env_roots.split(os.pathsep) if r],
                Path.cwd(),
                SOURCE_ROOTS_ENV,
            ),
        )
    settings = replace(
        settings,
        strict_parsing=_env_flag(STRICT_PARSING_ENV, default=settings.strict_parsing),
    )

    explicit = {k: v for k, v in overrides.items() if v is not None}
    if "source_roots" in explicit:
        explicit["source_roots"] = _resolve_roots(
            list(explicit["source_roots"]), Path.cwd(), "source_roots"
        )
    return replace(settings, **explicit)


def load_requests(manifest_path: str) -> list[ExtractionRequest]:
    """Load a request manifest.

    The manifest is either a list of entries or an object with a
    ``snippets`` list. Each entry holds ``file`` and optionally
    ``pattern`` and ``language``.

    Raises:
        ConfigValidationError: If the manifest is missing or malformed.
    """
    payload = _read_payload(manifest_path)
    if isinstance(payload, dict):
        payload = payload.get("snippets")
    if not isinstance(payload, list):
        raise ConfigValidationError("request manifest must hold a list of snippets")

    requests: list[ExtractionRequest] = []
    for index, item in enumerate(payload):
        entry = _expect_dict(item, f"snippets[{index}]")
        file_path = entry.get("file")
        if not isinstance(file_path, str) or not file_path.strip():
            raise ConfigValidationError(f"snippets[{index}].file must be a non-empty string")
        pattern = entry.get("pattern") or ""
        if not isinstance(pattern, str):
            raise ConfigValidationError(f"snippets[{index}].pattern must be a string")
        language = entry.get("language")
        if language is not None and not isinstance(language, str):
            raise ConfigValidationError(f"snippets[{index}].language must be a string")
        requests.append(ExtractionRequest(file_path=file_path, pattern=pattern, language=language))

    logger.info("Loaded %d snippet request(s) from %s", len(requests), manifest_path)
    return requests
