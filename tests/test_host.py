"""Tests for smarttitle.core.host — file-backed session host."""

import json
import logging

import pytest

from smarttitle.core.host import FileSessionHost, SessionNotFoundError


def _write_session(dirpath, session_id, *, parent=None, title=None, messages=None):
    data = {
        "info": {"id": session_id, "title": title, "parentID": parent},
        "messages": messages if messages is not None else [
            {
                "info": {"id": "m1", "role": "user", "sessionID": session_id,
                         "time": {"created": 1}},
                "parts": [{"type": "text", "text": "Refactor the parser"}],
            },
        ],
    }
    path = dirpath / f"{session_id}.json"
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def host(tmp_path):
    return FileSessionHost(tmp_path)


class TestFileSessionHost:
    def test_get_messages(self, host, tmp_path):
        _write_session(tmp_path, "ses-1")
        msgs = host.get_messages("ses-1")
        assert len(msgs) == 1
        assert msgs[0].session_id == "ses-1"

    def test_parent_id(self, host, tmp_path):
        _write_session(tmp_path, "parent")
        _write_session(tmp_path, "child", parent="parent")
        assert host.get_parent_id("parent") is None
        assert host.get_parent_id("child") == "parent"

    def test_update_title_preserves_messages(self, host, tmp_path):
        path = _write_session(tmp_path, "ses-1", title="Old")
        host.update_title("ses-1", "Refactoring parser")
        data = json.loads(path.read_text())
        assert data["info"]["title"] == "Refactoring parser"
        assert len(data["messages"]) == 1
        assert host.get_title("ses-1") == "Refactoring parser"
        assert not path.with_suffix(".json.tmp").exists()

    def test_missing_session(self, host):
        with pytest.raises(SessionNotFoundError):
            host.get_messages("nope")

    @pytest.mark.parametrize("session_id", ["", "../etc", ".hidden"])
    def test_invalid_session_id(self, host, session_id):
        with pytest.raises(SessionNotFoundError):
            host.session_path(session_id)

    def test_list_sessions(self, host, tmp_path):
        _write_session(tmp_path, "b")
        _write_session(tmp_path, "a")
        assert host.list_sessions() == ["a", "b"]

    def test_list_sessions_missing_dir(self, tmp_path):
        assert FileSessionHost(tmp_path / "absent").list_sessions() == []

    def test_notify_logs(self, host, caplog):
        with caplog.at_level(logging.INFO, logger="smarttitle.core.host"):
            host.notify("Smart Title", "switched model")
        assert "switched model" in caplog.text
