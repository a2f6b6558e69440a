from __future__ import annotations

import pytest

from tonewatch.core.config import TenantConfig, apply_update, check_tenant_id
from tonewatch.core.errors import ConfigValidationError, InvalidTenantError


def test_to_dict_uses_wire_names() -> None:
    assert TenantConfig().to_dict() == {
        "alertTag": "profanity-alert",
        "negativeThreshold": 0.0,
        "notificationEnabled": False,
        "notificationTarget": "",
        "highlightMatches": True,
        "toxicityThreshold": 0.9,
    }


def test_merged_ignores_invalid_stored_values() -> None:
    merged = TenantConfig().merged({"alertTag": 5, "negativeThreshold": -0.5, "unknown": 1})
    assert merged.alert_tag == "profanity-alert"
    assert merged.negative_threshold == -0.5


def test_partial_update_keeps_omitted_fields() -> None:
    current = TenantConfig(alert_tag="rude", highlight_matches=False)
    updated = apply_update(current, {"negativeThreshold": -1})
    assert updated.negative_threshold == -1.0
    assert updated.alert_tag == "rude"
    assert updated.highlight_matches is False


def test_update_normalizes_tag() -> None:
    assert apply_update(TenantConfig(), {"alertTag": "  Needs-Review "}).alert_tag == "needs-review"


def test_update_collects_every_field_error() -> None:
    with pytest.raises(ConfigValidationError) as excinfo:
        apply_update(
            TenantConfig(),
            {"alertTag": "", "negativeThreshold": "low", "highlightMatches": "yes"},
        )
    assert excinfo.value.errors == [
        "alertTag must be a non-empty string.",
        "negativeThreshold must be a number.",
        "highlightMatches must be a boolean.",
    ]


def test_update_rejects_booleans_as_numbers() -> None:
    with pytest.raises(ConfigValidationError):
        apply_update(TenantConfig(), {"negativeThreshold": True})


def test_update_rejects_out_of_range_toxicity_threshold() -> None:
    with pytest.raises(ConfigValidationError):
        apply_update(TenantConfig(), {"toxicityThreshold": 1.5})


def test_update_without_known_fields_is_rejected() -> None:
    with pytest.raises(ConfigValidationError) as excinfo:
        apply_update(TenantConfig(), {"color": "blue"})
    assert excinfo.value.errors == ["No valid fields provided."]


def test_update_requires_object_body() -> None:
    with pytest.raises(ConfigValidationError):
        apply_update(TenantConfig(), ["alertTag"])


def test_enabling_notifications_requires_target() -> None:
    with pytest.raises(ConfigValidationError):
        apply_update(TenantConfig(), {"notificationEnabled": True})

    updated = apply_update(
        TenantConfig(),
        {"notificationEnabled": True, "notificationTarget": "https://hooks.slack.com/services/T/B/X"},
    )
    assert updated.notification_enabled is True


def test_target_must_be_http_url() -> None:
    with pytest.raises(ConfigValidationError):
        apply_update(TenantConfig(), {"notificationTarget": "ftp://example.com"})


@pytest.mark.parametrize("tenant_id", ["", "../etc", "a/b", "-leading", "x" * 65, 12])
def test_check_tenant_id_rejects_unsafe_values(tenant_id: object) -> None:
    with pytest.raises(InvalidTenantError):
        check_tenant_id(tenant_id)


def test_check_tenant_id_accepts_crisp_website_ids() -> None:
    website_id = "8c842203-7ed8-4e29-a608-7cf78a7d2fcc"
    assert check_tenant_id(website_id) == website_id
