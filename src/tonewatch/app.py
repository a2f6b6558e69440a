"""Application entry point for the tonewatch relay."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

import uvicorn
from art import tprint

from tonewatch.adapters.file_tenant_store import FileTenantStore
from tonewatch.adapters.profanity_wordlist import load_word_list
from tonewatch.core.content import LinkBuilder, build_alert_content
from tonewatch.core.errors import InvalidTenantError
from tonewatch.core.models import InboundMessage
from tonewatch.core.processor import ScreeningProcessor
from tonewatch.logs import configure_logging
from tonewatch.server import build_app, build_scorer
from tonewatch.settings import AppSettings, load_settings

NAME = "TONEWATCH"
FONT = "tarty-1"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _run(settings: AppSettings) -> None:
    LOGGER.info("Starting tonewatch with the %s scorer", settings.scorer)
    app = build_app(settings)
    # log_config=None leaves uvicorn on the root handlers from configure_logging.
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


def _config_panel(settings: AppSettings, tenant_id: str) -> None:
    from tonewatch.frontend.app import ConfigPanelApp

    store = FileTenantStore(settings.data_dir, settings.tenant_defaults)
    ConfigPanelApp(store, tenant_id).run()


def _screen(settings: AppSettings, tenant_id: str, text: str) -> int:
    store = FileTenantStore(settings.data_dir, settings.tenant_defaults)
    try:
        config = store.get(tenant_id)
    except InvalidTenantError as exc:
        print(exc)
        return 2

    scorer = build_scorer(settings)
    asyncio.run(scorer.warm_up())
    links = LinkBuilder(settings.crisp_app_base)
    processor = ScreeningProcessor(
        tenant_configs=store,
        scorer=scorer,
        word_list=load_word_list(settings.extra_words, settings.allow_words),
        dispatcher=None,
        links=links,
    )
    message = InboundMessage(tenant_id=tenant_id, conversation_id="dry-run", text=text)
    decision = processor.screen(message, config)
    if decision is None:
        print("Scoring failed; see the log for details.")
        return 1

    result = decision.result
    terms = ", ".join(sorted(result.matched_terms, key=str.lower)) or "-"
    print(f"matched terms: {terms}")
    print(f"score: {result.score:.2f} ({result.score_label})")
    print(f"alert: {'yes' if decision.fire else 'no'}")
    if decision.fire:
        print()
        print(build_alert_content(message, result, config, links, scorer.polarity).note)
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="tonewatch")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the webhook server")
    config_parser = subparsers.add_parser("config", help="Edit a tenant's config in the TUI")
    config_parser.add_argument("--tenant", required=True, help="Crisp website id")
    screen_parser = subparsers.add_parser(
        "screen",
        help="Screen a message locally and print the decision without side effects",
    )
    screen_parser.add_argument("--tenant", required=True, help="Crisp website id")
    screen_parser.add_argument("text", help="Message text to screen")

    args = parser.parse_args(argv)
    settings = load_settings(args.config)

    if args.command == "config":
        _print_banner()
        _config_panel(settings, args.tenant)
        return
    configure_logging(settings.logging, settings.root)
    if args.command == "screen":
        raise SystemExit(_screen(settings, args.tenant, args.text))
    _print_banner()
    _run(settings)


if __name__ == "__main__":
    main()
