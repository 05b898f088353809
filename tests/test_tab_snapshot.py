import json
import pathlib
import sys
from datetime import date

import pytest

repo_root = pathlib.Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

import tab_snapshot as ts


def _payload(**overrides):
    data = {
        "version": "1.0",
        "exportDate": "2026-10-19T08:00:00.000Z",
        "totalTabs": 2,
        "tabs": [
            {"url": "https://a.example", "title": "A", "pinned": True, "groupId": 7,
             "index": 0, "windowId": 1, "active": True,
             "mutedInfo": {"muted": True, "reason": "user"}, "lastAccessed": 1700000000000},
            {"url": "https://b.example", "title": "B", "pinned": False, "groupId": -1,
             "index": 1, "windowId": 1, "active": False},
        ],
        "groups": [{"id": 7, "title": "Work", "color": "blue", "collapsed": True}],
        "windows": [{"id": 1, "focused": True, "incognito": False, "type": "normal",
                     "state": "maximized"}],
    }
    data.update(overrides)
    return data


def test_deserialize_reads_full_payload():
    snap = ts.deserialize(json.dumps(_payload()).encode("utf-8"))

    assert snap.schema_version == "1.0"
    assert snap.captured_at == "2026-10-19T08:00:00.000Z"
    assert snap.tab_count == 2
    first = snap.tabs[0]
    assert first.pinned and first.active and first.muted
    assert first.group_id == 7
    assert first.last_accessed == 1700000000000
    assert snap.group(7).title == "Work"
    assert snap.group(7).collapsed is True
    assert snap.windows[0].state == "maximized"


def test_deserialize_defaults_missing_optional_fields():
    snap = ts.deserialize(json.dumps({"tabs": [{"url": "https://x.example"}]}))

    tab = snap.tabs[0]
    assert tab.group_id == ts.UNGROUPED
    assert tab.pinned is False
    assert tab.active is False
    assert tab.title == ""
    assert tab.index == 0
    assert tab.muted_info is None
    assert snap.groups == ()
    assert snap.windows == ()
    assert snap.schema_version == ts.SCHEMA_VERSION


def test_deserialize_ignores_unknown_fields_and_bad_colors():
    data = _payload(extra="ignored")
    data["tabs"][0]["discarded"] = True
    data["groups"][0]["color"] = "magenta"

    snap = ts.deserialize(json.dumps(data))

    assert snap.group(7).color == ts.DEFAULT_GROUP_COLOR


def test_deserialize_keeps_first_duplicate_group():
    data = _payload(groups=[
        {"id": 7, "title": "First", "color": "red", "collapsed": False},
        {"id": 7, "title": "Second", "color": "blue", "collapsed": False},
    ])

    snap = ts.deserialize(json.dumps(data))

    assert len(snap.groups) == 1
    assert snap.group(7).title == "First"


@pytest.mark.parametrize("payload", [
    {"version": "1.0"},
    {"tabs": "nope"},
    {"tabs": [{"title": "no url"}]},
    {"tabs": [{"url": "   "}]},
    {"tabs": ["https://a.example"]},
    ["not", "an", "object"],
])
def test_deserialize_rejects_malformed_payloads(payload):
    with pytest.raises(ts.ValidationError):
        ts.deserialize(json.dumps(payload))


def test_deserialize_rejects_invalid_json():
    with pytest.raises(ts.ValidationError, match="not valid JSON"):
        ts.deserialize(b"{tabs: ")


def test_deserialize_rejects_deeply_nested_json():
    with pytest.raises(ts.ValidationError, match="nested too deeply"):
        ts.deserialize(b"[" * 200000)


def test_deserialize_keeps_url_exactly_as_written():
    data = _payload(tabs=[{"url": " https://a.example/ ", "windowId": 1}])

    snap = ts.deserialize(json.dumps(data))

    assert snap.tabs[0].url == " https://a.example/ "


@pytest.mark.parametrize("value, expected", [
    (1700000000000, 1700000000000.0),
    (1.5, 1.5),
    ("yesterday", None),
    (True, None),
    (None, None),
])
def test_as_timestamp(value, expected):
    assert ts.as_timestamp(value) == expected


def test_serialize_writes_extension_field_names_and_recounts():
    snap = ts.deserialize(json.dumps(_payload(totalTabs=99)))

    out = json.loads(ts.serialize(snap).decode("utf-8"))

    assert out["totalTabs"] == 2
    assert out["version"] == "1.0"
    assert out["tabs"][0]["mutedInfo"] == {"muted": True, "reason": "user"}
    assert "favIconUrl" not in out["tabs"][1]
    assert out["groups"] == [{"id": 7, "title": "Work", "color": "blue", "collapsed": True}]
    assert set(out["windows"][0]) == {"id", "focused", "incognito", "type", "state"}


def test_serialize_keeps_non_ascii_titles():
    snap = ts.Snapshot(tabs=(ts.ExportedTab(url="https://x.example", title="Café ☕"),))

    raw = ts.serialize(snap)

    assert "Café ☕".encode("utf-8") in raw


def test_load_snapshot_missing_file_is_validation_error(tmp_path):
    with pytest.raises(ts.ValidationError):
        ts.load_snapshot(str(tmp_path / "missing.json"))


def test_save_snapshot_creates_parent_dirs(tmp_path):
    snap = ts.deserialize(json.dumps(_payload()))
    path = tmp_path / "exports" / "tabs.json"

    ts.save_snapshot(snap, str(path))

    assert ts.load_snapshot(str(path)).tabs == snap.tabs


def test_default_export_name():
    assert ts.default_export_name(date(2026, 10, 19)) == "tabs-export-2026-10-19.json"


def test_summary_counts():
    snap = ts.deserialize(json.dumps(_payload()))

    assert snap.summary() == {"windows": 1, "groups": 1, "tabs": 2, "pinned": 1, "grouped": 1}
