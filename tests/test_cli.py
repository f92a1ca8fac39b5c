"""Tests for the command-line front end."""
import json
from decimal import Decimal

import pytest

from seedfarm.cli import format_amount, load_game, main


def test_format_amount():
    assert format_amount(Decimal("1200")) == "1,200"
    assert format_amount(Decimal("96.793")) == "96.79"
    assert format_amount(Decimal("0")) == "0"
    assert format_amount(Decimal("2.5e9")) == "2.500e+9"


def test_load_game_without_define_game(capsys):
    with pytest.raises(SystemExit) as exc_info:
        load_game("json")
    assert exc_info.value.code == 1
    assert "no define_game()" in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 0
    assert "usage" in capsys.readouterr().out


def test_run_saves_checkpoint(tmp_path, capsys):
    path = tmp_path / "save.json"
    main(["run", "--steps", "12", "--checkpoint", str(path)])

    out = capsys.readouterr().out
    assert "Advanced 12 steps, produced 1,200" in out
    data = json.loads(path.read_text())
    assert data["step_count"] == 12
    assert data["resource"]["current"] == "1200"

    main(["info", "--checkpoint", str(path)])
    out = capsys.readouterr().out
    assert out.startswith("Seed Farmer")
    assert "Step 12  season 1" in out
    assert "Harvests: 1/3 this season" in out


def test_offline_replays_elapsed_time(tmp_path, capsys):
    path = tmp_path / "save.json"
    main(["offline", "--seconds", "55", "--batch-size", "2", "--checkpoint", str(path)])
    out = capsys.readouterr().out
    assert "Replayed 5/5 steps, gained 500" in out
    assert json.loads(path.read_text())["step_count"] == 5


def test_corrupt_checkpoint_starts_fresh(tmp_path, capsys):
    path = tmp_path / "save.json"
    path.write_text("{not json")
    main(["run", "--steps", "1", "--checkpoint", str(path)])
    assert json.loads(path.read_text())["step_count"] == 1


def test_alternate_catalog(capsys):
    main(["info", "--catalog", "examples.three_tier_example"])
    out = capsys.readouterr().out
    assert out.startswith("Three Tier Example")
    assert "Grain: 0" in out
    assert "Tractor" in out
