"""Tests for the command-line entry point."""

import json

import pytest

from cli import DEFAULT_MAX_NODES, build_parser, main


def test_defaults():
    args = build_parser().parse_args(["x"])
    assert args.depth == 1
    assert args.engines is None
    assert args.max_nodes == DEFAULT_MAX_NODES


def test_prints_deduplicated_tree(capsys):
    assert main(["-e", "utf8", "-e", "latin1", "Clément"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines() == [
        "Clément",
        "├─ UTF-8: 43 6c c3 a9 6d 65 6e 74",
        "│  └─ Latin-1 / Codepage 1252: ClÃ©ment",
        "└─ Latin-1 / Codepage 1252: 43 6c e9 6d 65 6e 74",
        "   └─ UTF-8: Cl\ufffdment",
    ]


def test_one_tree_per_argument(capsys):
    assert main(["-e", "utf8", "Hello", "World"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines() == [
        "Hello",
        "└─ UTF-8: 48 65 6c 6c 6f",
        "World",
        "└─ UTF-8: 57 6f 72 6c 64",
    ]


def test_no_dedup_keeps_everything(capsys):
    assert main(["--no-dedup", "-e", "utf8", "-e", "mixed816le", "Hello"]) == 0
    out = capsys.readouterr().out
    # 2 encoders, each with 2 decoders
    assert len(out.splitlines()) == 1 + 2 + 4


def test_json_output(capsys):
    assert main(["--json", "-e", "utf8", "-e", "latin1", "Clément"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["input"] == "Clément"
    assert [e["name"] for e in data["encoders"]] == ["UTF-8", "Latin-1 / Codepage 1252"]


def test_summary(capsys):
    assert main(["--summary", "-e", "utf8", "-e", "latin1", "Clément"]) == 0
    out = capsys.readouterr().out
    assert "strings (3):" in out
    assert "bytes (2):" in out


def test_list_engines(capsys):
    assert main(["--list-engines"]) == 0
    out = capsys.readouterr().out
    assert "mixed816le   mixed UTF-8/UTF-16LE" in out
    assert len(out.splitlines()) == 9


def test_depth_zero_is_rejected(capsys):
    assert main(["-d", "0", "Hello"]) == 1
    assert capsys.readouterr().out == ""


def test_tree_too_large_is_rejected(capsys):
    assert main(["-d", "3", "--max-nodes", "100", "Hello"]) == 1
    assert capsys.readouterr().out == ""


def test_unknown_engine_is_a_usage_error():
    with pytest.raises(SystemExit) as exc:
        main(["-e", "klingon", "Hello"])
    assert exc.value.code == 2


def test_missing_strings_is_a_usage_error():
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2


def test_huge_depth_is_rejected_quickly(capsys):
    assert main(["-d", "1000000", "x"]) == 1
    assert capsys.readouterr().out == ""
