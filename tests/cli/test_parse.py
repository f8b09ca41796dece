from __future__ import annotations

import argparse
from pathlib import Path

import pytest

from cata import BaseCommand
from cata.cli import build_parser, build_telemetry, main, parse
from cata.settings import RuntimeSettings
from cata.telemetry.jsonl import JsonlHandler
from cata.telemetry.posthog import Posthog

CALLS: list[str] = []


class Leaf(BaseCommand):
    help = "Leaf command"

    @classmethod
    def configure(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--fail", action="store_true")

    async def run(self) -> None:
        CALLS.append("leaf")
        if self.args.fail:
            raise RuntimeError("leaf exploded")

    def post_run(self) -> None:
        CALLS.append("leaf-post")


class Middle(BaseCommand):
    subcommands = (Leaf,)

    def pre_run(self) -> None:
        CALLS.append("middle-pre")

    def post_run(self) -> None:
        CALLS.append("middle-post")


class Other(BaseCommand):
    pass


class Root(BaseCommand):
    subcommands = (Middle, Other)

    @classmethod
    def configure(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--verbose", action="store_true")


class Lenient(BaseCommand):
    subcommands = (Other,)
    subcommand_required = False


@pytest.fixture(autouse=True)
def _reset_calls():
    CALLS.clear()
    yield
    CALLS.clear()


@pytest.fixture
def settings(tmp_path: Path) -> RuntimeSettings:
    return RuntimeSettings(tool_name="demo", home_dir=tmp_path, log_dir=tmp_path / "logs")


def test_parse_links_selected_chain() -> None:
    root = parse(Root, ["--verbose", "middle", "leaf"])
    assert isinstance(root, Root)
    middle = root.next()
    assert isinstance(middle, Middle)
    leaf = middle.next()
    assert isinstance(leaf, Leaf)
    assert leaf.next() is None
    assert root.args.verbose is True
    assert leaf.args.fail is False


def test_parse_requires_subcommand() -> None:
    with pytest.raises(SystemExit):
        parse(Root, [])


def test_parse_allows_optional_subcommand() -> None:
    root = parse(Lenient, [])
    assert root.next() is None
    assert isinstance(parse(Lenient, ["other"]).next(), Other)


def test_build_parser_lists_subcommands() -> None:
    help_text = build_parser(Root, prog="demo").format_help()
    assert "middle" in help_text
    assert "other" in help_text


def test_main_runs_chain(settings: RuntimeSettings) -> None:
    assert main(Root, ["middle", "leaf"], settings=settings) == 0
    assert CALLS == ["middle-pre", "leaf", "leaf-post", "middle-post"]


def test_main_reports_failure(settings: RuntimeSettings, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(Root, ["middle", "leaf", "--fail"], settings=settings) == 1
    assert CALLS == ["middle-pre", "leaf"]
    assert "Error: leaf exploded" in capsys.readouterr().err


def test_build_telemetry_is_off_by_default(settings: RuntimeSettings) -> None:
    assert build_telemetry(settings) is None


def test_build_telemetry_uses_local_log_without_api_key(tmp_path: Path) -> None:
    settings = RuntimeSettings(
        tool_name="demo",
        home_dir=tmp_path,
        log_dir=tmp_path / "logs",
        telemetry_errors=True,
    )
    telemetry = build_telemetry(settings)
    assert telemetry is not None
    assert isinstance(telemetry.handler, JsonlHandler)
    assert telemetry.handler.path == tmp_path / "logs" / "telemetry.jsonl"
    assert telemetry.errors and not telemetry.activity


def test_build_telemetry_prefers_posthog(tmp_path: Path) -> None:
    settings = RuntimeSettings(
        tool_name="demo",
        home_dir=tmp_path,
        log_dir=tmp_path / "logs",
        telemetry_activity=True,
        posthog_api_key="phc_test",
        posthog_host="https://ph.example.com/",
    )
    telemetry = build_telemetry(settings)
    assert telemetry is not None
    assert isinstance(telemetry.handler, Posthog)
    assert telemetry.handler.url == "https://ph.example.com/i/v0/e/"
    assert telemetry.handler.names == ("demo::activity", "demo::error")
