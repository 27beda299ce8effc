from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TextIO

import structlog

from danmakarr.domain.entities.danmaku import DanmakuEvent
from danmakarr.domain.exceptions import DanmakuError
from danmakarr.infrastructure.config import AppConfig, load_config
from danmakarr.infrastructure.config.filters import parse_sources
from danmakarr.infrastructure.logging.setup import configure_logging
from danmakarr.interfaces.composition import build_context

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="danmakarr",
        description="Fetch danmaku comments for a local file or library stream URL.",
    )
    parser.add_argument("path", help="Local media file or HTTP(S) stream URL.")

    # Config layers: these flags win over YAML and env
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Override the data root (resolution cache + stored comments).",
    )
    parser.add_argument(
        "--proxy",
        default=None,
        help="HTTP proxy for all upstream requests.",
    )

    # Output / runtime filter
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print one JSON object per comment instead of tab separated lines.",
    )
    parser.add_argument(
        "--block-source",
        action="append",
        default=None,
        metavar="SOURCE",
        help="Mark comments from SOURCE as blocked, replacing configured sources "
        "(repeatable).",
    )

    return parser.parse_args(argv)


def _event_to_dict(event: DanmakuEvent) -> dict[str, Any]:
    return {
        "time": event.time,
        "message": event.message,
        "count": event.count,
        "color": list(event.color),
        "source": event.source.value,
        "blocked": event.blocked,
    }


def write_events(
    events: list[DanmakuEvent], *, as_json: bool, stream: TextIO
) -> None:
    for event in events:
        if as_json:
            stream.write(json.dumps(_event_to_dict(event), ensure_ascii=False))
        else:
            r, g, b = event.color
            stream.write(
                f"{event.time:.2f}\t#{r:02x}{g:02x}{b:02x}\t{event.source.value}"
                f"\t{'blocked' if event.blocked else '-'}\t{event.message}"
            )
        stream.write("\n")


async def run(
    config: AppConfig,
    path: str,
    *,
    as_json: bool = False,
    block_sources: list[str] | None = None,
    stream: TextIO | None = None,
) -> int:
    async with build_context(config) as ctx:
        if block_sources is not None:
            await ctx.danmaku_filter.set_source_override(parse_sources(block_sources))
        try:
            events = await ctx.danmaku.execute(path)
        except DanmakuError:
            return 1

    write_events(events, as_json=as_json, stream=stream or sys.stdout)
    log.info("danmaku_written", events=len(events))
    return 0


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once here, then runs a single lookup with it.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format
    if args.data_dir:
        cli_overrides["data_dir"] = args.data_dir
    if args.proxy is not None:
        cli_overrides["http_proxy"] = args.proxy

    config = load_config(
        config_path=config_path,
        dotenv_path=dotenv_path,
        cli_overrides=cli_overrides,
    )

    configure_logging(config)

    return asyncio.run(
        run(
            config,
            args.path,
            as_json=args.json,
            block_sources=args.block_source,
        )
    )


if __name__ == "__main__":
    raise SystemExit(start())
