"""Form state for the tenant config panel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class PanelState:
    """Tracks the last saved form values so edits can be compared to them.

    Textual delivers change events after programmatic updates, so dirtiness
    is computed from values rather than from which events fired.
    """

    tenant_id: str
    saved_values: Optional[tuple[Any, ...]] = None
    config: dict[str, Any] = field(default_factory=dict)
    dirty: bool = False
    error: Optional[str] = None

    @property
    def loaded(self) -> bool:
        return self.saved_values is not None

    def mark_saved(self, values: tuple[Any, ...], config: dict[str, Any]) -> None:
        self.saved_values = values
        self.config = config
        self.dirty = False
        self.error = None

    def refresh(self, values: tuple[Any, ...]) -> bool:
        if self.saved_values is not None:
            self.dirty = values != self.saved_values
        return self.dirty
