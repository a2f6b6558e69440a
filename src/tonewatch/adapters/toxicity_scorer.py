"""Detoxify toxicity classifier scorer.

The model is loaded once during warm-up, in a worker thread so the event loop
stays responsive, and held for the life of the process. Higher is more toxic.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from tonewatch.core.errors import ScorerNotReadyError
from tonewatch.core.models import ScorePolarity

LOGGER = logging.getLogger(__name__)


def load_detoxify(model_name: str) -> Any:
    # Imported here because torch is only needed when this backend is selected.
    from detoxify import Detoxify

    return Detoxify(model_name)


class DetoxifyToxicityScorer:
    """Toxicity probability scorer backed by a pre-trained Detoxify model."""

    polarity = ScorePolarity.HIGHER_IS_WORSE

    def __init__(
        self,
        model_name: str = "original",
        label: str = "toxicity",
        loader: Callable[[str], Any] = load_detoxify,
    ) -> None:
        self._model_name = model_name
        self._label = label
        self._loader = loader
        self._model: Optional[Any] = None

    @property
    def ready(self) -> bool:
        return self._model is not None

    async def warm_up(self) -> None:
        if self._model is not None:
            return
        LOGGER.info("Loading toxicity model %r", self._model_name)
        self._model = await asyncio.to_thread(self._loader, self._model_name)
        LOGGER.info("Toxicity model %r ready", self._model_name)

    def score(self, text: str) -> float:
        if self._model is None:
            raise ScorerNotReadyError("Toxicity scorer used before warm_up()")
        prediction = self._model.predict(text)
        return float(prediction[self._label])
