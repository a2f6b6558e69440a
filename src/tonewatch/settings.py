"""Configuration loading for tonewatch.

User-editable, non-secret settings (server, storage, screening, tenant
defaults, logging) live in a single JSON file for quick edits without
touching Python. Secrets come from the environment via python-dotenv.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from tonewatch.core.config import TenantConfig

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Source-tree config; installed copies fall back to ./config.json.
CONFIG_PATH = PROJECT_ROOT / "config.json"
CONFIG_NAME = "config.json"

SCORER_BACKENDS = ("sentiment", "toxicity")


@dataclass(frozen=True)
class AppSettings:
    """Resolved settings for one process."""

    host: str = "0.0.0.0"
    port: int = 8080
    rate_limit: Optional[str] = "60/minute"
    root: Path = PROJECT_ROOT
    data_dir: Path = PROJECT_ROOT / "data" / "tenants"
    scorer: str = "sentiment"
    toxicity_model: str = "original"
    extra_words: tuple[str, ...] = ()
    allow_words: tuple[str, ...] = ()
    crisp_api_base: str = "https://api.crisp.chat/v1"
    crisp_app_base: str = "https://app.crisp.chat"
    crisp_identifier: Optional[str] = None
    crisp_key: Optional[str] = None
    tenant_defaults: TenantConfig = field(default_factory=TenantConfig)
    logging: dict[str, Any] = field(default_factory=dict)


def _load_json_config(path: Path) -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        loaded = json.load(handle)
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be an object: {path}")
    return loaded


def _section(config: dict, name: str) -> dict:
    value = config.get(name, {})
    return value if isinstance(value, dict) else {}


def _resolve_path(value: str, root: Path) -> Path:
    path = Path(value)
    return path if path.is_absolute() else root / path


def find_config_path() -> Path:
    """Return the config.json to use when --config is not given.

    A source checkout keeps it at the project root; an installed package has
    no project root, so the working directory is used instead.
    """

    if CONFIG_PATH.exists():
        return CONFIG_PATH
    return Path.cwd() / CONFIG_NAME


def _tenant_defaults(raw: dict) -> TenantConfig:
    """Build tenant defaults from config.json plus the legacy env overrides."""

    overrides = dict(raw)
    # TAG_TO_APPLY / NEGATIVE_THRESHOLD / SLACK_WEBHOOK_URL predate per-tenant config.
    tag = os.getenv("TAG_TO_APPLY")
    if tag:
        overrides["alertTag"] = tag
    threshold = os.getenv("NEGATIVE_THRESHOLD")
    if threshold:
        try:
            overrides["negativeThreshold"] = float(threshold)
        except ValueError as exc:
            raise ValueError(f"NEGATIVE_THRESHOLD must be a number, got {threshold!r}") from exc
    webhook_url = os.getenv("SLACK_WEBHOOK_URL")
    if webhook_url and not overrides.get("notificationTarget"):
        overrides["notificationTarget"] = webhook_url
    if "notificationEnabled" not in overrides:
        overrides["notificationEnabled"] = bool(overrides.get("notificationTarget"))

    defaults = TenantConfig().merged(overrides)
    if defaults.notification_enabled and not defaults.notification_target:
        defaults = TenantConfig().merged({**overrides, "notificationEnabled": False})
    return defaults


def load_settings(config_path: Optional[Path] = None) -> AppSettings:
    """Read config.json and the environment into an AppSettings."""

    load_dotenv()
    path = Path(config_path) if config_path else find_config_path()
    config = _load_json_config(path)
    # Relative paths in config.json are relative to the file itself.
    root = path.resolve().parent

    server = _section(config, "server")
    storage = _section(config, "storage")
    screening = _section(config, "screening")
    crisp = _section(config, "crisp")

    scorer = str(screening.get("scorer", "sentiment"))
    if scorer not in SCORER_BACKENDS:
        raise ValueError(f"screening.scorer must be one of {', '.join(SCORER_BACKENDS)}")

    # PORT wins over config.json so hosting platforms can assign one.
    port = int(os.getenv("PORT") or server.get("port", 8080))

    return AppSettings(
        host=str(server.get("host", "0.0.0.0")),
        port=port,
        rate_limit=server.get("rate_limit", "60/minute"),
        root=root,
        data_dir=_resolve_path(str(storage.get("data_dir", "data/tenants")), root),
        scorer=scorer,
        toxicity_model=str(screening.get("toxicity_model", "original")),
        extra_words=tuple(screening.get("extra_words", []) or []),
        allow_words=tuple(screening.get("allow_words", []) or []),
        crisp_api_base=str(crisp.get("api_base", "https://api.crisp.chat/v1")),
        crisp_app_base=str(crisp.get("app_base", "https://app.crisp.chat")),
        crisp_identifier=os.getenv("CRISP_IDENTIFIER"),
        crisp_key=os.getenv("CRISP_KEY"),
        tenant_defaults=_tenant_defaults(_section(config, "tenant_defaults")),
        logging=_section(config, "logging"),
    )
