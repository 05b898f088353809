"""
tab_snapshot.py  –  Snapshot schema for exported browser sessions
=================================================================

Schema version "1.0"  (the file format written by the browser extension
export, so files move freely between the two)

Key behaviours
  · Snapshots are frozen: built once by the capturer, read once by the
    reconstructor, never mutated in between.
  · groupId -1 means "ungrouped".  A missing groupId reads as -1.
  · Reading is permissive: unknown fields are ignored, optional fields fall
    back to defaults.  Only a missing/non-list "tabs" or a tab without a url
    is fatal.
  · Writing always recomputes totalTabs from the tab list.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

# ══════════════════════════════════════════════════════════════════════════
#  Constants
# ══════════════════════════════════════════════════════════════════════════
SCHEMA_VERSION = "1.0"
UNGROUPED      = -1
NO_WINDOW      = -1

GROUP_COLORS = (
    "grey", "blue", "red", "yellow", "green",
    "pink", "purple", "cyan", "orange",
)
DEFAULT_GROUP_COLOR = "grey"

WINDOW_STATES = ("normal", "minimized", "maximized", "fullscreen", "locked-fullscreen")


class ValidationError(ValueError):
    """Snapshot payload is malformed and cannot be imported."""


# ══════════════════════════════════════════════════════════════════════════
#  Model
# ══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class ExportedWindow:
    id: int
    focused: bool = False
    incognito: bool = False
    type: str = "normal"
    state: Optional[str] = None


@dataclass(frozen=True)
class ExportedGroup:
    id: int
    title: Optional[str] = None
    color: str = DEFAULT_GROUP_COLOR
    collapsed: bool = False


@dataclass(frozen=True)
class ExportedTab:
    url: str
    title: str = ""
    fav_icon_url: Optional[str] = None
    pinned: bool = False
    group_id: int = UNGROUPED
    index: int = 0
    window_id: int = NO_WINDOW
    active: bool = False
    audible: Optional[bool] = None
    muted_info: Optional[Dict[str, Any]] = None
    last_accessed: Optional[float] = None

    @property
    def grouped(self) -> bool:
        return self.group_id != UNGROUPED

    @property
    def muted(self) -> bool:
        return bool((self.muted_info or {}).get("muted"))


@dataclass(frozen=True)
class Snapshot:
    tabs: Tuple[ExportedTab, ...]
    groups: Tuple[ExportedGroup, ...] = ()
    windows: Tuple[ExportedWindow, ...] = ()
    captured_at: str = ""
    schema_version: str = SCHEMA_VERSION
    _groups_by_id: Dict[int, ExportedGroup] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_groups_by_id", {g.id: g for g in self.groups})

    @property
    def tab_count(self) -> int:
        return len(self.tabs)

    def group(self, group_id: int) -> Optional[ExportedGroup]:
        return self._groups_by_id.get(group_id)

    def summary(self) -> Dict[str, int]:
        window_ids = {t.window_id for t in self.tabs} | {w.id for w in self.windows}
        return {
            "windows": len(window_ids),
            "groups":  len(self.groups),
            "tabs":    len(self.tabs),
            "pinned":  sum(1 for t in self.tabs if t.pinned),
            "grouped": sum(1 for t in self.tabs if t.grouped),
        }


def now_iso() -> str:
    """UTC timestamp in the same shape as JavaScript's toISOString()."""
    ts = datetime.now(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def default_export_name(when: Optional[date] = None) -> str:
    when = when or datetime.now(timezone.utc).date()
    return f"tabs-export-{when.isoformat()}.json"


# ══════════════════════════════════════════════════════════════════════════
#  Serialize
# ══════════════════════════════════════════════════════════════════════════
def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def _tab_to_dict(t: ExportedTab) -> Dict[str, Any]:
    return _drop_none({
        "url":          t.url,
        "title":        t.title,
        "favIconUrl":   t.fav_icon_url,
        "pinned":       t.pinned,
        "groupId":      t.group_id,
        "index":        t.index,
        "windowId":     t.window_id,
        "active":       t.active,
        "audible":      t.audible,
        "mutedInfo":    dict(t.muted_info) if t.muted_info is not None else None,
        "lastAccessed": t.last_accessed,
    })


def to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    return {
        "version":    snapshot.schema_version,
        "exportDate": snapshot.captured_at,
        "totalTabs":  len(snapshot.tabs),
        "tabs":       [_tab_to_dict(t) for t in snapshot.tabs],
        "groups": [
            _drop_none({"id": g.id, "title": g.title, "color": g.color,
                        "collapsed": g.collapsed})
            for g in snapshot.groups
        ],
        "windows": [
            _drop_none({"id": w.id, "focused": w.focused, "incognito": w.incognito,
                        "type": w.type, "state": w.state})
            for w in snapshot.windows
        ],
    }


def serialize(snapshot: Snapshot) -> bytes:
    return json.dumps(to_dict(snapshot), indent=2, ensure_ascii=False).encode("utf-8")


# ══════════════════════════════════════════════════════════════════════════
#  Deserialize
# ══════════════════════════════════════════════════════════════════════════
def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return default


def _as_bool(value: Any, default: bool = False) -> bool:
    return value if isinstance(value, bool) else default


def _as_opt_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def as_timestamp(value: Any) -> Optional[float]:
    """Epoch milliseconds as float, or None for anything non-numeric."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _parse_tab(raw: Any, position: int) -> ExportedTab:
    if not isinstance(raw, dict):
        raise ValidationError(f"Tab #{position} is not an object")
    url = raw.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ValidationError(f"Tab #{position} has no url")

    group_id = _as_int(raw.get("groupId"), UNGROUPED)
    if group_id < 0:
        group_id = UNGROUPED
    muted_info = raw.get("mutedInfo")
    return ExportedTab(
        url=url,
        title=str(raw.get("title") or ""),
        fav_icon_url=_as_opt_str(raw.get("favIconUrl")),
        pinned=_as_bool(raw.get("pinned")),
        group_id=group_id,
        index=_as_int(raw.get("index"), position),
        window_id=_as_int(raw.get("windowId"), NO_WINDOW),
        active=_as_bool(raw.get("active")),
        audible=raw.get("audible") if isinstance(raw.get("audible"), bool) else None,
        muted_info=dict(muted_info) if isinstance(muted_info, dict) else None,
        last_accessed=as_timestamp(raw.get("lastAccessed")),
    )


def _parse_groups(items: Any) -> List[ExportedGroup]:
    out: List[ExportedGroup] = []
    seen = set()
    for raw in items if isinstance(items, list) else []:
        if not isinstance(raw, dict):
            continue
        gid = _as_int(raw.get("id"), UNGROUPED)
        if gid < 0 or gid in seen:
            continue
        seen.add(gid)
        color = raw.get("color")
        out.append(ExportedGroup(
            id=gid,
            title=_as_opt_str(raw.get("title")),
            color=color if color in GROUP_COLORS else DEFAULT_GROUP_COLOR,
            collapsed=_as_bool(raw.get("collapsed")),
        ))
    return out


def _parse_windows(items: Any) -> List[ExportedWindow]:
    out: List[ExportedWindow] = []
    seen = set()
    for raw in items if isinstance(items, list) else []:
        if not isinstance(raw, dict):
            continue
        wid = _as_int(raw.get("id"), NO_WINDOW)
        if wid in seen:
            continue
        seen.add(wid)
        out.append(ExportedWindow(
            id=wid,
            focused=_as_bool(raw.get("focused")),
            incognito=_as_bool(raw.get("incognito")),
            type=str(raw.get("type") or "normal"),
            state=_as_opt_str(raw.get("state")),
        ))
    return out


def from_dict(data: Any) -> Snapshot:
    if not isinstance(data, dict):
        raise ValidationError("Invalid export file format: top level is not an object")
    raw_tabs = data.get("tabs")
    if not isinstance(raw_tabs, list):
        raise ValidationError("Invalid export file format: 'tabs' list is missing")
    tabs = [_parse_tab(raw, i) for i, raw in enumerate(raw_tabs)]
    return Snapshot(
        tabs=tuple(tabs),
        groups=tuple(_parse_groups(data.get("groups"))),
        windows=tuple(_parse_windows(data.get("windows"))),
        captured_at=str(data.get("exportDate") or ""),
        schema_version=str(data.get("version") or SCHEMA_VERSION),
    )


def deserialize(data: Union[bytes, str]) -> Snapshot:
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        parsed = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError(f"Export file is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise ValidationError("Export file is nested too deeply to read") from exc
    return from_dict(parsed)


# ══════════════════════════════════════════════════════════════════════════
#  File helpers
# ══════════════════════════════════════════════════════════════════════════
def load_snapshot(path: str) -> Snapshot:
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as exc:
        raise ValidationError(f"Cannot read export file {path}: {exc}") from exc
    return deserialize(raw)


def save_snapshot(snapshot: Snapshot, path: str) -> str:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "wb") as f:
        f.write(serialize(snapshot))
    return path
