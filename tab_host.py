"""
tab_host.py  –  Browser host boundary
=====================================

Everything the export/import engine needs from a browser, expressed as
coroutines.  Concrete hosts:

  · MemoryHost  – in-process model of a browser.  Used for --dry-run replays
                  and as the test double.
  · CdpHost     – real Chromium-family browser over the DevTools HTTP
                  endpoint (see cdp_host.py).

Tabs, groups and windows cross this boundary as plain dicts using the
browser extension API's key names (id, url, windowId, groupId, mutedInfo ...)
so that a host can hand through whatever its browser returns.
"""

from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional, Sequence, Union

from tab_snapshot import UNGROUPED


class HostOperationError(RuntimeError):
    """A single host call failed.  Recoverable during reconstruction."""


class Host:
    """Capability set consumed by the engine.  Subclasses override what they support."""

    supports_groups  = False
    supports_discard = False
    supports_mute    = False
    supports_windows = False

    # ── inventory ─────────────────────────────────────────────────────────
    async def query_tabs(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def query_groups(self) -> List[Dict[str, Any]]:
        raise HostOperationError("tab groups are not supported by this host")

    async def get_windows(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def get_current_window(self) -> int:
        raise NotImplementedError

    # ── mutation ──────────────────────────────────────────────────────────
    async def create_window(self, focused: bool = False) -> int:
        raise HostOperationError("window creation is not supported by this host")

    async def create_tab(self, window_id: int, url: str,
                         active: bool = False, pinned: bool = False) -> int:
        raise NotImplementedError

    async def remove_tab(self, tab_id: int) -> None:
        raise NotImplementedError

    async def update_tab(self, tab_id: int, muted: Optional[bool] = None) -> None:
        raise HostOperationError("tab updates are not supported by this host")

    async def discard_tab(self, tab_id: int) -> None:
        raise HostOperationError("tab discarding is not supported by this host")

    async def group_tabs(self, tab_ids: Union[int, Sequence[int]],
                         group_id: Optional[int] = None) -> int:
        raise HostOperationError("tab groups are not supported by this host")

    async def update_group(self, group_id: int, title: Optional[str] = None,
                           color: Optional[str] = None,
                           collapsed: Optional[bool] = None) -> None:
        raise HostOperationError("tab groups are not supported by this host")


# ══════════════════════════════════════════════════════════════════════════
#  In-memory host
# ══════════════════════════════════════════════════════════════════════════
class MemoryHost(Host):
    """
    A browser modelled as dicts.

    Every mutating call is appended to `calls` as (name, args...) so replays
    can be inspected afterwards.  Ids come from one shared counter, the way a
    real browser never hands out the same id to a tab and a group.
    """

    supports_groups  = True
    supports_discard = True
    supports_mute    = True
    supports_windows = True

    def __init__(self, windows: Optional[List[Dict[str, Any]]] = None,
                 tabs: Optional[List[Dict[str, Any]]] = None,
                 groups: Optional[List[Dict[str, Any]]] = None) -> None:
        self.windows: Dict[int, Dict[str, Any]] = {}
        self.tabs:    Dict[int, Dict[str, Any]] = {}
        self.groups:  Dict[int, Dict[str, Any]] = {}
        self.calls:   List[tuple] = []

        for w in windows or [{"id": 1, "focused": True}]:
            self.windows[int(w["id"])] = {
                "id": int(w["id"]), "focused": bool(w.get("focused")),
                "incognito": bool(w.get("incognito")),
                "type": w.get("type", "normal"), "state": w.get("state", "normal"),
            }
        for g in groups or []:
            self.groups[int(g["id"])] = dict(g)
        for t in tabs or []:
            self.tabs[int(t["id"])] = dict(t)

        used = list(self.windows) + list(self.tabs) + list(self.groups)
        self._ids = itertools.count(max(used, default=0) + 1)
        focused = [w["id"] for w in self.windows.values() if w["focused"]]
        self.current_window = focused[0] if focused else next(iter(self.windows), 0)

    def _tab(self, tab_id: int) -> Dict[str, Any]:
        try:
            return self.tabs[tab_id]
        except KeyError:
            raise HostOperationError(f"No tab with id {tab_id}") from None

    def _window_tabs(self, window_id: int) -> List[Dict[str, Any]]:
        return sorted((t for t in self.tabs.values() if t["windowId"] == window_id),
                      key=lambda t: t["index"])

    def _reindex(self, window_id: int) -> None:
        for i, t in enumerate(self._window_tabs(window_id)):
            t["index"] = i

    # ── inventory ─────────────────────────────────────────────────────────
    async def query_tabs(self) -> List[Dict[str, Any]]:
        return [dict(t) for t in self.tabs.values()]

    async def query_groups(self) -> List[Dict[str, Any]]:
        return [dict(g) for g in self.groups.values()]

    async def get_windows(self) -> List[Dict[str, Any]]:
        return [dict(w) for w in self.windows.values()]

    async def get_current_window(self) -> int:
        return self.current_window

    # ── mutation ──────────────────────────────────────────────────────────
    async def create_window(self, focused: bool = False) -> int:
        wid = next(self._ids)
        self.windows[wid] = {"id": wid, "focused": focused, "incognito": False,
                             "type": "normal", "state": "normal"}
        self.calls.append(("create_window", wid))
        return wid

    async def create_tab(self, window_id: int, url: str,
                         active: bool = False, pinned: bool = False) -> int:
        if window_id not in self.windows:
            raise HostOperationError(f"No window with id {window_id}")
        tid = next(self._ids)
        self.tabs[tid] = {
            "id": tid, "url": url, "title": "", "pinned": pinned,
            "groupId": UNGROUPED, "index": len(self._window_tabs(window_id)),
            "windowId": window_id, "active": active, "discarded": False,
            "mutedInfo": {"muted": False},
        }
        self.calls.append(("create_tab", window_id, url))
        return tid

    async def remove_tab(self, tab_id: int) -> None:
        tab = self.tabs.pop(tab_id, None)
        if tab is None:
            raise HostOperationError(f"No tab with id {tab_id}")
        self._reindex(tab["windowId"])
        self.calls.append(("remove_tab", tab_id))

    async def update_tab(self, tab_id: int, muted: Optional[bool] = None) -> None:
        tab = self._tab(tab_id)
        if muted is not None:
            tab["mutedInfo"] = {"muted": bool(muted)}
        self.calls.append(("update_tab", tab_id, muted))

    async def discard_tab(self, tab_id: int) -> None:
        self._tab(tab_id)["discarded"] = True
        self.calls.append(("discard_tab", tab_id))

    async def group_tabs(self, tab_ids: Union[int, Sequence[int]],
                         group_id: Optional[int] = None) -> int:
        ids = [tab_ids] if isinstance(tab_ids, int) else list(tab_ids)
        if not ids:
            raise HostOperationError("group_tabs needs at least one tab")
        tabs = [self._tab(i) for i in ids]
        if group_id is None:
            group_id = next(self._ids)
            self.groups[group_id] = {"id": group_id, "title": "", "color": "grey",
                                     "collapsed": False,
                                     "windowId": tabs[0]["windowId"]}
        elif group_id not in self.groups:
            raise HostOperationError(f"No group with id {group_id}")
        for t in tabs:
            t["groupId"] = group_id
        self.calls.append(("group_tabs", tuple(ids), group_id))
        return group_id

    async def update_group(self, group_id: int, title: Optional[str] = None,
                           color: Optional[str] = None,
                           collapsed: Optional[bool] = None) -> None:
        group = self.groups.get(group_id)
        if group is None:
            raise HostOperationError(f"No group with id {group_id}")
        if title is not None:
            group["title"] = title
        if color is not None:
            group["color"] = color
        if collapsed is not None:
            group["collapsed"] = collapsed
        self.calls.append(("update_group", group_id))

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)
