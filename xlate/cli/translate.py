"""Command-line front end for the translation engine.

Usage::

    python -m xlate.cli translate --target en "hola" "buenos días"
    python -m xlate.cli translate --target en --json "hola"
    python -m xlate.cli stats
    python -m xlate.cli purge
    python -m xlate.cli clear --yes

Every command builds the same components as the API server from
``Settings`` (``XLATE_*`` environment variables and ``.env``), so the
default SQLite store is shared with a running server on the same path.
Log lines go to stderr; stdout carries only command output.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from xlate.bootstrap import build_components, start_components, stop_components
from xlate.config.settings import Settings
from xlate.engine.engine import TranslationEngine
from xlate.utils.errors import XlateError
from xlate.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_translate(args: argparse.Namespace, engine: TranslationEngine) -> int:
    """Translate every positional text concurrently so they share one batch."""
    results = await asyncio.gather(*(engine.translate(text, args.target) for text in args.texts))

    if args.json_output:
        payload = [
            {"text": text, "translated": translated, "available": bool(translated)}
            for text, translated in zip(args.texts, results)
        ]
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        for text, translated in zip(args.texts, results):
            print(translated if translated else f"(no translation) {text}")

    return 0 if all(results) else 1


async def _handle_stats(args: argparse.Namespace, engine: TranslationEngine) -> int:
    stats = engine.stats()
    if args.json_output:
        print(json.dumps({**stats.model_dump(), **engine.config.describe()}, indent=2))
        return 0

    config = engine.config
    print(f"Entries:      {stats.durable_entries} (max {config.max_persist_entries})")
    print(f"Approx size:  {stats.approx_kb} KB")
    ttl = f"{config.cache_ttl_days} days" if config.cache_ttl_days > 0 else "disabled"
    print(f"TTL:          {ttl}")
    print(f"Provider:     {engine.provider_mode.value}")
    return 0


async def _handle_purge(args: argparse.Namespace, engine: TranslationEngine) -> int:
    removed = await engine.purge_expired()
    print(f"Removed {removed} expired entries.")
    return 0


async def _handle_clear(args: argparse.Namespace, engine: TranslationEngine) -> int:
    if not args.yes:
        answer = input("Clear the entire translation cache? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("Aborted.")
            return 1
    await engine.clear_cache()
    print("Cache cleared.")
    return 0


_HANDLERS = {
    "translate": _handle_translate,
    "stats": _handle_stats,
    "purge": _handle_purge,
    "clear": _handle_clear,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    try:
        components: dict[str, Any] = build_components(app_settings)
    except XlateError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    try:
        await start_components(components)
        return await _HANDLERS[args.command](args, components["engine"])
    except XlateError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    finally:
        await stop_components(components)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the xlate CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m xlate.cli",
        description="Translate text through the xlate cache and manage the cache.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log at DEBUG level (to stderr).",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- translate --
    translate_parser = subparsers.add_parser("translate", help="Translate one or more texts")
    translate_parser.add_argument("texts", nargs="+", help="Source texts")
    translate_parser.add_argument("--target", "-t", required=True, help="Target language code, e.g. en")
    translate_parser.add_argument(
        "--json", action="store_true", dest="json_output", help="Print results as JSON."
    )

    # -- stats --
    stats_parser = subparsers.add_parser("stats", help="Show cache statistics")
    stats_parser.add_argument(
        "--json", action="store_true", dest="json_output", help="Print statistics as JSON."
    )

    # -- purge --
    subparsers.add_parser("purge", help="Remove expired cache entries")

    # -- clear --
    clear_parser = subparsers.add_parser("clear", help="Drop every cached translation")
    clear_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, configure logging for stderr and run one command.

    Returns the process exit code: 0 on success, 1 when a translation was
    unavailable or the user aborted, 2 on a store or configuration error.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    app_settings = Settings()
    log_level = "DEBUG" if args.verbose else "WARNING"
    configure_logging(log_level=log_level, stream=sys.stderr)

    return asyncio.run(_run(args, app_settings))


if __name__ == "__main__":
    sys.exit(main())
