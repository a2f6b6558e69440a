"""Flat-file tenant config adapter.

Implements the core TenantConfigPort with one JSON file per tenant.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping

from tonewatch.core.config import TenantConfig, apply_update, check_tenant_id

LOGGER = logging.getLogger(__name__)


class FileTenantStore:
    """Stores each tenant's config as ``<data_dir>/<tenant_id>.json``.

    Reads merge the stored record over the defaults, so missing or unknown
    tenants get a full config without anything being written. Concurrent
    writes for one tenant are last-write-wins.
    """

    def __init__(self, data_dir: str | Path, defaults: TenantConfig | None = None) -> None:
        self._data_dir = Path(data_dir)
        self._defaults = defaults or TenantConfig()

    def _path(self, tenant_id: str) -> Path:
        return self._data_dir / f"{check_tenant_id(tenant_id)}.json"

    def _read_raw(self, path: Path) -> dict[str, Any]:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.error("Ignoring unreadable tenant config %s: %s", path.name, exc.msg)
            return {}
        if not isinstance(raw, dict):
            LOGGER.error("Ignoring tenant config %s: root must be an object", path.name)
            return {}
        return raw

    def get(self, tenant_id: str) -> TenantConfig:
        """Return the tenant's config, materializing defaults if none is stored."""

        return self._defaults.merged(self._read_raw(self._path(tenant_id)))

    def update(self, tenant_id: str, partial: Mapping[str, Any]) -> TenantConfig:
        """Validate ``partial``, merge it onto the current config, and persist."""

        path = self._path(tenant_id)
        updated = apply_update(self._defaults.merged(self._read_raw(path)), partial)
        self._write(path, updated)
        LOGGER.info("Updated config for tenant %s", tenant_id)
        return updated

    def _write(self, path: Path, config: TenantConfig) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(config.to_dict(), handle, indent=2, ensure_ascii=True)
                handle.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
