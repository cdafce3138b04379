"""
Tests for the health map command-line tool.
"""

import json
import logging
from argparse import Namespace
from unittest.mock import patch

import pytest

from healthmap.cli.health_map import (
    add_marker,
    build_parser,
    clear_markers,
    export_health_map,
    list_markers,
    main,
    remove_marker,
    update_note,
)
from healthmap.cli.utils import validate_database_path
from healthmap.core.logging_config import CLI_FORMAT
from healthmap.services.db_service import DatabaseService


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "pets.healthmap"
    service = DatabaseService(str(path))
    service.connect()
    service.insert_pet("pet-1", "Biscuit")
    service.close()
    return str(path)


def make_args(db_path, **kwargs):
    defaults = {
        "database": db_path,
        "pet_id": "pet-1",
        "verbose": False,
        "json": False,
        "note": "",
        "force": True,
        "photo": None,
        "output": None,
    }
    defaults.update(kwargs)
    return Namespace(**defaults)


def stored_markers(db_path):
    service = DatabaseService(db_path)
    service.connect()
    try:
        return service.get_markers("pet-1")
    finally:
        service.close()


def test_validate_database_path(tmp_path, db_path):
    assert validate_database_path(db_path) is True
    assert validate_database_path(str(tmp_path / "missing.db")) is False
    assert validate_database_path(str(tmp_path / "missing.db"), allow_create=True) is True


def test_add_and_list(db_path, capsys):
    assert add_marker(make_args(db_path, x=0.5, y=0.25, note=" Rash ")) == 0
    assert "Placed marker" in capsys.readouterr().out

    assert list_markers(make_args(db_path, json=True)) == 0
    data = json.loads(capsys.readouterr().out)
    assert len(data) == 1
    assert data[0]["note"] == "Rash"
    assert stored_markers(db_path)[0]["x"] == 0.5


def test_add_out_of_range(db_path, capsys):
    assert add_marker(make_args(db_path, x=1.5, y=0.5)) == 1
    assert "✗" in capsys.readouterr().out
    assert stored_markers(db_path) == []


def test_add_for_unknown_pet(db_path, capsys):
    assert add_marker(make_args(db_path, pet_id="ghost", x=0.5, y=0.5)) == 1
    assert "Pet not found" in capsys.readouterr().out


def test_update_and_remove(db_path, capsys):
    add_marker(make_args(db_path, x=0.1, y=0.1))
    marker_id = stored_markers(db_path)[0]["id"]

    assert update_note(make_args(db_path, id=marker_id, note="Healing")) == 0
    assert stored_markers(db_path)[0]["note"] == "Healing"

    assert remove_marker(make_args(db_path, id=marker_id)) == 0
    assert stored_markers(db_path) == []


def test_remove_unknown_marker(db_path, capsys):
    assert remove_marker(make_args(db_path, id="nope")) == 1
    assert "Marker not found" in capsys.readouterr().out


def test_clear_force(db_path, capsys):
    add_marker(make_args(db_path, x=0.1, y=0.1))
    add_marker(make_args(db_path, x=0.2, y=0.2))

    assert clear_markers(make_args(db_path)) == 0
    assert stored_markers(db_path) == []


def test_clear_nothing(db_path, capsys):
    assert clear_markers(make_args(db_path)) == 0
    assert "Nothing to clear." in capsys.readouterr().out


def test_clear_declined(db_path, capsys):
    add_marker(make_args(db_path, x=0.1, y=0.1))

    with patch("builtins.input", return_value="n"):
        assert clear_markers(make_args(db_path, force=False)) == 0

    assert len(stored_markers(db_path)) == 1


def test_export_writes_png(qapp, db_path, tmp_path, capsys):
    add_marker(make_args(db_path, x=0.5, y=0.5))
    output = tmp_path / "out.png"

    assert export_health_map(make_args(db_path, output=str(output))) == 0

    assert output.read_bytes().startswith(b"\x89PNG")
    assert list((tmp_path / "assets" / "images" / "pets" / "pet-1").glob("*.png"))


def test_export_without_markers(qapp, db_path, capsys):
    assert export_health_map(make_args(db_path)) == 1
    assert "Nothing to export" in capsys.readouterr().out


def test_parser_requires_pet_id():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["list", "-d", "x.db"])


def test_main_missing_database(tmp_path, restore_root_logger):
    with pytest.raises(SystemExit) as exc:
        main(["list", "-d", str(tmp_path / "missing.db"), "-p", "pet-1"])

    assert exc.value.code == 1


def test_main_runs_command(db_path, capsys, restore_root_logger):
    with pytest.raises(SystemExit) as exc:
        main(["add", "-d", db_path, "-p", "pet-1", "--x", "0.3", "--y", "0.7"])

    assert exc.value.code == 0
    assert len(stored_markers(db_path)) == 1


def test_main_verbose_logs_terse_debug_lines(db_path, restore_root_logger):
    with pytest.raises(SystemExit):
        main(["-v", "list", "-d", db_path, "-p", "pet-1"])

    (handler,) = restore_root_logger.handlers
    assert restore_root_logger.level == logging.DEBUG
    assert handler.formatter._fmt == CLI_FORMAT
