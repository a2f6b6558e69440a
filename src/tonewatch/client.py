"""HTTP client factory for tonewatch.

One AsyncClient is shared by the Crisp and Slack adapters for the life of the
server. Its lifecycle is managed explicitly by the server lifespan so it is
obvious when connections are opened and when they are closed.
"""

from __future__ import annotations

import logging

import httpx

from tonewatch import __version__


def build_http_client() -> httpx.AsyncClient:
    """Create the shared outbound client.

    No timeout is configured beyond httpx's defaults; a slow endpoint only
    delays its own dispatch operation.
    """

    logging.getLogger(__name__).info("Initializing outbound HTTP client")
    return httpx.AsyncClient(headers={"User-Agent": f"tonewatch/{__version__}"})
