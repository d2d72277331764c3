"""Tests for smarttitle.ingest.loader — session export parsing."""

import json
from pathlib import Path

import pytest

from smarttitle.ingest.loader import load_messages, load_session_file, parse_messages


def _record(role, text, created, msg_id="m1", synthetic=False, session_id="ses-1", **info):
    return {
        "info": {
            "id": msg_id,
            "role": role,
            "sessionID": session_id,
            "time": {"created": created},
            **info,
        },
        "parts": [{"type": "text", "text": text, "synthetic": synthetic}],
    }


def _write(path: Path, data) -> Path:
    path.write_text(json.dumps(data))
    return path


class TestParseMessages:
    def test_basic_fields(self):
        msgs = parse_messages([
            _record("user", "hi", 1000, parentID=None),
            {
                "info": {
                    "id": "a1", "role": "assistant", "sessionID": "ses-1",
                    "time": {"created": 2000, "completed": 2500},
                    "parentID": "m1",
                },
                "parts": [
                    {"type": "text", "text": "hello", "synthetic": True},
                    {"type": "tool"},
                ],
            },
        ])
        assert [m.role for m in msgs] == ["user", "assistant"]
        assert msgs[0].created == 1000
        assert msgs[1].completed == 2500
        assert msgs[1].parent_id == "m1"
        assert msgs[1].parts[0].synthetic is True
        assert msgs[1].parts[1].kind == "tool"
        assert msgs[1].parts[1].text is None

    def test_skips_malformed(self):
        msgs = parse_messages([
            "not a dict",
            {"info": {"role": "robot", "time": {"created": 1}}},
            {"info": {"role": "user", "time": {}}},
            {"info": {"role": "user", "time": {"created": "soon"}}},
            {"info": {"role": "user", "time": 1700000000}, "parts": []},
            {"info": {"role": "user", "time": {"created": 2}}, "parts": 7},
            _record("user", "ok", 5),
        ])
        assert len(msgs) == 1
        assert msgs[0].parts[0].text == "ok"

    def test_session_id_fallback(self):
        record = _record("user", "x", 1)
        del record["info"]["sessionID"]
        msgs = parse_messages([record], session_id="ses-9")
        assert msgs[0].session_id == "ses-9"

    def test_invalid_parts_dropped(self):
        record = _record("user", "x", 1)
        record["parts"].append({"text": "no type"})
        record["parts"].append(None)
        assert len(parse_messages([record])[0].parts) == 1


class TestLoadSessionFile:
    def test_dict_layout(self, tmp_path):
        p = _write(tmp_path / "ses-1.json", {
            "info": {"id": "ses-1", "title": "Old"},
            "messages": [_record("user", "hello", 1)],
        })
        data = load_session_file(p)
        assert data["info"]["title"] == "Old"
        assert len(load_messages(p)) == 1

    def test_list_layout(self, tmp_path):
        p = _write(tmp_path / "s.json", [_record("user", "a", 1), _record("assistant", "b", 2)])
        data = load_session_file(p)
        assert data["info"] == {}
        assert len(load_messages(p)) == 2

    def test_unexpected_layout(self, tmp_path):
        p = _write(tmp_path / "s.json", "just a string")
        with pytest.raises(ValueError):
            load_session_file(p)
