from __future__ import annotations

import argparse
import io
import json
from dataclasses import dataclass, field
from typing import Optional

import yaml

from cata.output import Format, display


@dataclass
class Thing:
    single: str
    multiple: list[str] = field(default_factory=list, metadata={"display": display})
    note: Optional[str] = None


THINGS = [Thing("single", ["two", "one"]), Thing("another", ["three", "four"], note="n")]


def _render(fmt: Format, method: str, data) -> str:
    stream = io.StringIO()
    getattr(fmt, method)(data, stream=stream)
    return stream.getvalue()


def test_display_sorts_and_joins() -> None:
    assert display(["b", "c", "a"]) == "a\nb\nc"
    assert display([]) == ""


def test_json_list_and_item() -> None:
    assert json.loads(_render(Format.JSON, "list", THINGS))[1] == {
        "single": "another",
        "multiple": ["three", "four"],
        "note": "n",
    }
    assert json.loads(_render(Format.JSON, "item", THINGS[0]))["single"] == "single"


def test_yaml_list_and_item() -> None:
    assert yaml.safe_load(_render(Format.YAML, "list", THINGS))[0]["multiple"] == ["two", "one"]
    assert yaml.safe_load(_render(Format.YAML, "item", {"key": "value"})) == {"key": "value"}


def test_pretty_renders_table() -> None:
    output = _render(Format.PRETTY, "list", THINGS)
    for text in ("single", "multiple", "note", "another", "one", "four"):
        assert text in output
    assert "None" not in output
    assert output.index("one") < output.index("two")


def test_pretty_item_has_header() -> None:
    output = _render(Format.PRETTY, "item", {"name": "cata"})
    assert "name" in output
    assert "cata" in output


def test_add_argument_defaults_to_pretty() -> None:
    parser = argparse.ArgumentParser()
    Format.add_argument(parser)
    assert parser.parse_args([]).output is Format.PRETTY
    assert parser.parse_args(["-o", "yaml"]).output is Format.YAML
    assert parser.parse_args(["--output", "json"]).output is Format.JSON
