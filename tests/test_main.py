"""Tests for the command line care commands."""
from __future__ import annotations

import pytest

from moltmon.__main__ import build_parser, main
from moltmon.models import PetState
from moltmon.store import Store


@pytest.fixture
def data_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("MOLTMON_DATA_DIR", str(tmp_path / "pets"))
    return tmp_path / "pets"


def test_parser_defaults_to_watch():
    args = build_parser().parse_args([])
    assert args.command is None
    args = build_parser().parse_args(["watch", "--dev-mode"])
    assert args.dev_mode is True


def test_status_without_pet_fails(data_dir):
    assert main(["status"]) == 1


def test_hatch_then_status(data_dir):
    store = Store(data_dir)
    store.restore_or_create_state()
    assert main(["hatch", "curious"]) == 0
    [cmd] = store.read_commands()
    assert cmd.personality == "curious"
    assert main(["status"]) == 0
    assert store.read_state().state == PetState.EGG


def test_rejected_care_exits_nonzero(data_dir):
    Store(data_dir).restore_or_create_state()
    assert main(["feed"]) == 1
    assert main(["history"]) == 0
