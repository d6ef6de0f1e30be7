"""Tests for the command line entry point."""

import pytest

from newsdeck.core.config import AppSettings
from run import build_parser, cmd_cache_clear, cmd_cache_stats, cmd_providers, format_item


class TestParser:
    def test_provider_command(self):
        args = build_parser().parse_args(["--no-cache", "provider", "hackernews", "--offset", "30"])

        assert args.command == "provider"
        assert args.provider_id == "hackernews"
        assert args.offset == 30
        assert args.limit is None
        assert args.no_cache is True

    def test_search_command(self):
        args = build_parser().parse_args(["search", "cratesio", "tokio", "--limit", "5"])
        assert (args.provider_id, args.query, args.limit) == ("cratesio", "tokio", 5)


def test_format_item(make_item):
    item = make_item(title="Rust 2.0", score=120, comments=45)
    line = format_item(item)

    assert "Test: Rust 2.0" in line
    assert "(▲120, 💬45)" in line


@pytest.mark.asyncio
async def test_cmd_providers_lists_status(capsys):
    exit_code = await cmd_providers(AppSettings.from_dict({}))
    out = capsys.readouterr().out

    assert exit_code == 0
    assert "hackernews" in out
    assert "⚠ Needs Config" in out


@pytest.mark.asyncio
async def test_cache_commands(tmp_path, capsys):
    settings = AppSettings.from_dict({"cache": {"path": str(tmp_path / "cache")}})

    assert await cmd_cache_stats(settings) == 0
    assert "Entries:   0" in capsys.readouterr().out

    assert await cmd_cache_clear(settings) == 0
    assert "Cleared cache" in capsys.readouterr().out
