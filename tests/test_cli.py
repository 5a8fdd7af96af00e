from __future__ import annotations

from importlib import import_module
from pathlib import Path

import pytest
from typer.testing import CliRunner

from creator_rss.cli import app
from creator_rss.errors import SourceUnavailable
from creator_rss.models import SourceKind

runner = CliRunner()
cli_app = import_module("creator_rss.cli")


class FakePipeline:
    calls: list[tuple[SourceKind, str]] = []
    error: Exception | None = None

    def __init__(self, settings: object, **_: object):
        self.settings = settings

    async def render(self, kind: SourceKind, identifier: str) -> str:
        FakePipeline.calls.append((kind, identifier))
        if FakePipeline.error is not None:
            raise FakePipeline.error
        return "<rss>feed</rss>"


@pytest.fixture(autouse=True)
def _fake_pipeline(monkeypatch: pytest.MonkeyPatch) -> None:
    FakePipeline.calls = []
    FakePipeline.error = None
    monkeypatch.setattr(cli_app, "FeedPipeline", FakePipeline)
    monkeypatch.setattr(cli_app, "load_dotenv", lambda: None)
    monkeypatch.delenv("CREATOR_RSS_CACHE_DIR", raising=False)


def test_render_prints_feed() -> None:
    result = runner.invoke(app, ["render", "yt", "UCabc123", "--no-cache"])

    assert result.exit_code == 0, result.output
    assert "<rss>feed</rss>" in result.output
    assert FakePipeline.calls == [(SourceKind.SYNDICATION, "UCabc123")]


def test_render_writes_output_file(tmp_path: Path) -> None:
    target = tmp_path / "feed.xml"
    result = runner.invoke(app, ["render", "p", "42", "--cache-dir", str(tmp_path), "-o", str(target)])

    assert result.exit_code == 0, result.output
    assert target.read_text(encoding="utf-8") == "<rss>feed</rss>"
    assert "Wrote Patreon feed for 42" in result.output


def test_source_failure_exits_non_zero() -> None:
    FakePipeline.error = SourceUnavailable("extraction", "946974", "rendering timed out after 60s")

    result = runner.invoke(app, ["render", "bi", "946974"])

    assert result.exit_code == 1
    assert "Error generating RSS feed" in result.output


def test_missing_cache_dir_exits_non_zero(tmp_path: Path) -> None:
    result = runner.invoke(app, ["render", "p", "42", "--cache-dir", str(tmp_path / "absent")])

    assert result.exit_code == 1
    assert "Cache directory not found" in result.output
    assert FakePipeline.calls == []


def test_unknown_kind_is_a_usage_error() -> None:
    result = runner.invoke(app, ["render", "rss", "42"])

    assert result.exit_code == 2
    assert FakePipeline.calls == []


def test_kinds_lists_aliases() -> None:
    result = runner.invoke(app, ["kinds"])

    assert result.exit_code == 0, result.output
    assert "api" in result.output
    assert "p, patreon" in result.output
    assert "bi, bilibili" in result.output
