"""Tenant configuration dataclass and its validation rules.

Storage lives in an adapter, but the shape of a tenant record and the rules
for changing it belong to the core so every writer (HTTP API, config panel)
applies the same checks.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from typing import Any, Mapping

from tonewatch.core.errors import ConfigValidationError, InvalidTenantError

TENANT_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")

MAX_TAG_LENGTH = 64

# Wire (JSON) name -> dataclass attribute.
FIELD_NAMES = {
    "alertTag": "alert_tag",
    "negativeThreshold": "negative_threshold",
    "notificationEnabled": "notification_enabled",
    "notificationTarget": "notification_target",
    "highlightMatches": "highlight_matches",
    "toxicityThreshold": "toxicity_threshold",
}


@dataclass(frozen=True)
class TenantConfig:
    """Per-tenant screening and alerting settings."""

    alert_tag: str = "profanity-alert"
    negative_threshold: float = 0.0
    notification_enabled: bool = False
    notification_target: str = ""
    highlight_matches: bool = True
    toxicity_threshold: float = 0.9

    def to_dict(self) -> dict[str, Any]:
        return {wire: getattr(self, attr) for wire, attr in FIELD_NAMES.items()}

    def merged(self, raw: Mapping[str, Any]) -> "TenantConfig":
        """Overlay a stored record onto this config.

        Values with the wrong type are ignored so a hand-edited file can never
        leave a field undefined.
        """

        changes: dict[str, Any] = {}
        for wire, attr in FIELD_NAMES.items():
            if wire not in raw:
                continue
            value, error = _VALIDATORS[wire](raw[wire])
            if error is None:
                changes[attr] = value
        return replace(self, **changes)


def check_tenant_id(tenant_id: object) -> str:
    """Return the tenant id if it is safe to use as a storage key."""

    if not isinstance(tenant_id, str) or not TENANT_ID_PATTERN.match(tenant_id):
        raise InvalidTenantError(tenant_id)
    return tenant_id


def normalize_tag(value: str) -> str:
    return value.strip().lower()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_tag(value: Any) -> tuple[Any, str | None]:
    if not isinstance(value, str) or not value.strip():
        return None, "alertTag must be a non-empty string."
    tag = normalize_tag(value)
    if len(tag) > MAX_TAG_LENGTH:
        return None, f"alertTag must be at most {MAX_TAG_LENGTH} characters."
    return tag, None


def _check_negative_threshold(value: Any) -> tuple[Any, str | None]:
    if not _is_number(value) or not math.isfinite(value):
        return None, "negativeThreshold must be a number."
    return float(value), None


def _check_toxicity_threshold(value: Any) -> tuple[Any, str | None]:
    if not _is_number(value) or not math.isfinite(value) or not 0 <= value <= 1:
        return None, "toxicityThreshold must be a number between 0 and 1."
    return float(value), None


def _check_bool(name: str):
    def check(value: Any) -> tuple[Any, str | None]:
        if not isinstance(value, bool):
            return None, f"{name} must be a boolean."
        return value, None

    return check


def _check_target(value: Any) -> tuple[Any, str | None]:
    if not isinstance(value, str):
        return None, "notificationTarget must be a string."
    target = value.strip()
    if target and not target.startswith(("https://", "http://")):
        return None, "notificationTarget must be an http(s) URL."
    return target, None


_VALIDATORS = {
    "alertTag": _check_tag,
    "negativeThreshold": _check_negative_threshold,
    "notificationEnabled": _check_bool("notificationEnabled"),
    "notificationTarget": _check_target,
    "highlightMatches": _check_bool("highlightMatches"),
    "toxicityThreshold": _check_toxicity_threshold,
}


def apply_update(current: TenantConfig, partial: Any) -> TenantConfig:
    """Validate a partial update and merge it onto ``current``.

    Omitted fields keep their prior values. Any invalid field rejects the
    whole update with every collected message.
    """

    if not isinstance(partial, Mapping):
        raise ConfigValidationError(["Request body must be a JSON object."])

    errors: list[str] = []
    changes: dict[str, Any] = {}
    for wire, attr in FIELD_NAMES.items():
        if wire not in partial:
            continue
        value, error = _VALIDATORS[wire](partial[wire])
        if error:
            errors.append(error)
        else:
            changes[attr] = value

    if errors:
        raise ConfigValidationError(errors)
    if not changes:
        raise ConfigValidationError(["No valid fields provided."])

    updated = replace(current, **changes)
    if updated.notification_enabled and not updated.notification_target:
        raise ConfigValidationError(
            ["notificationTarget is required when notificationEnabled is true."]
        )
    return updated
