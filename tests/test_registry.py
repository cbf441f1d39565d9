from __future__ import annotations

import json

import pytest

from aspect_tool.errors import RegistryError
from aspect_tool.registry import deployments_path, load_deployments, record_deployment


def _record(tmp_path, aspect_id):
    return record_deployment({"aspectId": aspect_id}, network="artela", binary="build/index.bin", base_dir=tmp_path)


def test_record_appends(tmp_path):
    _record(tmp_path, "0xA")
    path = _record(tmp_path, "0xB")
    assert path == deployments_path(tmp_path)
    assert [r["aspectId"] for r in load_deployments(path)] == ["0xA", "0xB"]
    assert not list(path.parent.glob(".aspects.json.*"))


def test_unreadable_record_file_is_moved_aside(tmp_path):
    path = deployments_path(tmp_path)
    path.parent.mkdir()
    path.write_text('[{"aspectId": "0xA"}, ')

    _record(tmp_path, "0xB")

    assert [r["aspectId"] for r in json.loads(path.read_text())] == ["0xB"]
    backups = list(path.parent.glob("aspects.json.*.bak"))
    assert len(backups) == 1
    assert backups[0].read_text() == '[{"aspectId": "0xA"}, '


def test_load_rejects_non_list(tmp_path):
    path = tmp_path / "aspects.json"
    path.write_text('{"aspectId": "0xA"}')
    with pytest.raises(RegistryError):
        load_deployments(path)


def test_write_failure_is_a_registry_error(tmp_path):
    # build/ exists as a file, so the record directory cannot be created
    (tmp_path / "build").write_text("")
    with pytest.raises(RegistryError, match="Cannot record deployment"):
        _record(tmp_path, "0xA")
