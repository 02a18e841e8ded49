import os
import stat
import sys

import pytest

from logrotor.ownership import chown


@pytest.fixture
def recorded_chown(monkeypatch):
    calls = []

    def fake_chown(path, uid, gid):
        calls.append((path, uid, gid))

    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setattr(os, "chown", fake_chown, raising=False)
    return calls


def _source_info(tmp_path):
    source = tmp_path / "source.log"
    source.write_text("original contents")
    return source, os.stat(source)


def test_linux_creates_file_and_sets_owner(tmp_path, recorded_chown):
    _, info = _source_info(tmp_path)
    target = tmp_path / "target.log"

    chown(str(target), info)

    assert target.exists()
    assert target.stat().st_size == 0
    assert recorded_chown == [(str(target), info.st_uid, info.st_gid)]


def test_linux_truncates_existing_file(tmp_path, recorded_chown):
    source, info = _source_info(tmp_path)
    target = tmp_path / "target.log"
    target.write_text("stale data that must go")

    chown(target, info)

    assert target.read_bytes() == b""
    assert source.read_text() == "original contents"
    assert len(recorded_chown) == 1


def test_linux_new_file_mode_within_source_mode(tmp_path, recorded_chown):
    _, info = _source_info(tmp_path)
    target = tmp_path / "target.log"

    chown(target, info)

    source_bits = stat.S_IMODE(info.st_mode)
    new_bits = stat.S_IMODE(target.stat().st_mode)
    assert new_bits & ~source_bits == 0


def test_linux_missing_directory_raises(tmp_path, recorded_chown):
    _, info = _source_info(tmp_path)
    target = tmp_path / "missing" / "target.log"

    with pytest.raises(FileNotFoundError):
        chown(target, info)
    assert recorded_chown == []


def test_linux_owner_change_failure_propagates(tmp_path, monkeypatch):
    def refusing_chown(path, uid, gid):
        raise PermissionError("operation not permitted")

    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setattr(os, "chown", refusing_chown, raising=False)
    _, info = _source_info(tmp_path)

    with pytest.raises(PermissionError):
        chown(tmp_path / "target.log", info)


def test_other_platforms_do_nothing(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(sys, "platform", "darwin")
    monkeypatch.setattr(os, "chown", lambda *args: calls.append(args), raising=False)
    _, info = _source_info(tmp_path)
    target = tmp_path / "target.log"

    assert chown(target, info) is None
    assert not target.exists()
    assert calls == []