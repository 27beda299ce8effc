"""Tests for the command-line entrypoint."""

from __future__ import annotations

import io
import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

from danmakarr.domain.entities import DanmakuEvent, DanmakuSource
from danmakarr.domain.exceptions import NoMatch
from danmakarr.infrastructure.config import AppConfig
from danmakarr.interfaces.cli.cli import _parse_args, run, start, write_events


def _event(**overrides: object) -> DanmakuEvent:
    fields: dict[str, object] = {
        "message": "hello",
        "count": 5,
        "time": 12.5,
        "r": 255,
        "g": 0,
        "b": 16,
        "source": DanmakuSource.BILIBILI,
        "blocked": False,
    }
    fields.update(overrides)
    return DanmakuEvent(**fields)  # type: ignore[arg-type]


def _fake_context(events: list[DanmakuEvent] | Exception) -> tuple[MagicMock, object]:
    ctx = MagicMock()
    ctx.danmaku_filter.set_source_override = AsyncMock()
    if isinstance(events, Exception):
        ctx.danmaku.execute = AsyncMock(side_effect=events)
    else:
        ctx.danmaku.execute = AsyncMock(return_value=events)

    @asynccontextmanager
    async def fake_build_context(config):
        yield ctx

    return ctx, fake_build_context


class TestParseArgs:
    def test_block_source_is_repeatable(self) -> None:
        args = _parse_args(["movie.mkv", "--block-source", "bilibili", "--block-source", "qq"])
        assert args.path == "movie.mkv"
        assert args.block_source == ["bilibili", "qq"]
        assert args.json is False

    def test_defaults(self) -> None:
        args = _parse_args(["https://emby/videos/1/x.mkv?api_key=k"])
        assert args.config is None
        assert args.block_source is None


class TestWriteEvents:
    def test_tab_separated(self) -> None:
        out = io.StringIO()
        write_events([_event(), _event(blocked=True, message="b")], as_json=False, stream=out)
        assert out.getvalue().splitlines() == [
            "12.50\t#ff0010\tbilibili\t-\thello",
            "12.50\t#ff0010\tbilibili\tblocked\tb",
        ]

    def test_json_lines(self) -> None:
        out = io.StringIO()
        write_events([_event(message="弾幕")], as_json=True, stream=out)
        assert json.loads(out.getvalue()) == {
            "time": 12.5,
            "message": "弾幕",
            "count": 5,
            "color": [255, 0, 16],
            "source": "bilibili",
            "blocked": False,
        }


class TestRun:
    async def test_success_writes_events(self) -> None:
        ctx, fake = _fake_context([_event()])
        out = io.StringIO()

        with patch("danmakarr.interfaces.cli.cli.build_context", fake):
            code = await run(AppConfig(), "movie.mkv", block_sources=["gamer", "nope"], stream=out)

        assert code == 0
        assert out.getvalue().startswith("12.50\t")
        ctx.danmaku_filter.set_source_override.assert_awaited_once_with(
            frozenset({DanmakuSource.GAMER})
        )

    async def test_lookup_failure_exit_code(self) -> None:
        ctx, fake = _fake_context(NoMatch("no matching episode"))
        out = io.StringIO()

        with patch("danmakarr.interfaces.cli.cli.build_context", fake):
            code = await run(AppConfig(), "movie.mkv", stream=out)

        assert code == 1
        assert out.getvalue() == ""
        ctx.danmaku_filter.set_source_override.assert_not_awaited()


class TestStart:
    def test_flags_become_cli_overrides(self) -> None:
        config = AppConfig()
        with (
            patch("danmakarr.interfaces.cli.cli.load_config", return_value=config) as load,
            patch("danmakarr.interfaces.cli.cli.configure_logging") as configure,
            patch("danmakarr.interfaces.cli.cli.run", new=AsyncMock(return_value=1)) as fake_run,
        ):
            code = start(
                ["ep.mkv", "--log-level", "DEBUG", "--data-dir", "/tmp/d", "--proxy", "", "--json"]
            )

        assert code == 1
        assert load.call_args.kwargs["cli_overrides"] == {
            "log_level": "DEBUG",
            "data_dir": "/tmp/d",
            "http_proxy": "",
        }
        configure.assert_called_once_with(config)
        fake_run.assert_awaited_once_with(config, "ep.mkv", as_json=True, block_sources=None)
