"""
cdp_host.py  –  Chromium DevTools HTTP host
===========================================

Talks to Chrome / Edge / Brave started with --remote-debugging-port.

Key behaviours
  · Only the plain HTTP endpoints are used (/json/version, /json/list,
    /json/new, /json/close).  They can list, open and close page targets and
    nothing else: tab groups, mute, discard and new windows are reported as
    unsupported and the engine skips or falls back accordingly.
  · DevTools target ids are opaque strings.  They are mapped to small ints
    on first sight so the rest of the engine can treat ids uniformly.
  · windowId is only trusted when it's a real positive integer.  Browsers
    that don't report it (most of them) land in a single window 1.
  · Blocking urllib calls run in a worker thread so the event loop can keep
    a whole batch in flight.
  · The debug port can be discovered from running browser processes via
    psutil (the --remote-debugging-port=N switch on the cmdline).
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional

import psutil

from tab_host import Host, HostOperationError
from tab_snapshot import UNGROUPED

log = logging.getLogger(__name__)

DEFAULT_PORT = 9222

_BROWSER_PROCS = ("chrome", "msedge", "brave", "chromium", "vivaldi", "opera")
_SKIP_SCHEMES  = ("chrome://", "edge://", "brave://", "devtools://", "chrome-extension://")
_FALLBACK_WID  = 1


# ══════════════════════════════════════════════════════════════════════════
#  Port discovery
# ══════════════════════════════════════════════════════════════════════════
def _debug_port_from_cmdline(cmdline: List[str]) -> int:
    for arg in cmdline or []:
        if arg.startswith("--remote-debugging-port="):
            val = arg.split("=", 1)[1].strip()
            if val.isdigit() and int(val) > 0:
                return int(val)
    return 0


def find_debug_port() -> Optional[int]:
    """Return the DevTools port of the first running browser that exposes one."""
    for proc in psutil.process_iter(["name", "cmdline"]):
        try:
            name = (proc.info.get("name") or "").lower()
            if not any(b in name for b in _BROWSER_PROCS):
                continue
            port = _debug_port_from_cmdline(proc.info.get("cmdline") or [])
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
        if port:
            log.debug("Found DevTools port %d on %s (pid %s)", port, name, proc.pid)
            return port
    return None


# ══════════════════════════════════════════════════════════════════════════
#  Host
# ══════════════════════════════════════════════════════════════════════════
class CdpHost(Host):
    supports_groups  = False
    supports_discard = False
    supports_mute    = False
    supports_windows = False

    def __init__(self, port: int = DEFAULT_PORT, host: str = "127.0.0.1",
                 timeout: float = 2.0) -> None:
        self.port    = port
        self.host    = host
        self.timeout = timeout
        self._by_target: Dict[str, int] = {}
        self._by_int:    Dict[int, str] = {}
        self._next_id = 1

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    # ── raw HTTP ──────────────────────────────────────────────────────────
    def _request(self, path: str, method: str = "GET") -> bytes:
        req = urllib.request.Request(f"{self.base_url}{path}", method=method)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as r:
                return r.read()
        except OSError as exc:
            raise HostOperationError(f"DevTools {method} {path} failed: {exc}") from exc

    def _request_json(self, path: str, method: str = "GET") -> Any:
        raw = self._request(path, method)
        try:
            return json.loads(raw.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as exc:
            raise HostOperationError(f"DevTools {path} returned invalid JSON") from exc

    def alive(self) -> bool:
        try:
            self._request("/json/version")
            return True
        except HostOperationError:
            return False

    # ── id mapping ────────────────────────────────────────────────────────
    def _int_id(self, target_id: str) -> int:
        if target_id not in self._by_target:
            self._by_target[target_id] = self._next_id
            self._by_int[self._next_id] = target_id
            self._next_id += 1
        return self._by_target[target_id]

    def _target_id(self, tab_id: int) -> str:
        try:
            return self._by_int[tab_id]
        except KeyError:
            raise HostOperationError(f"Unknown tab id {tab_id}") from None

    # ── listing ───────────────────────────────────────────────────────────
    def _list_pages(self) -> List[Dict[str, Any]]:
        items = self._request_json("/json/list")
        if not isinstance(items, list):
            raise HostOperationError("DevTools /json/list did not return a list")
        pages = []
        per_window: Dict[int, int] = {}
        for item in items:
            if not isinstance(item, dict) or item.get("type") != "page":
                continue
            url = str(item.get("url") or "").strip()
            if not url or url.startswith(_SKIP_SCHEMES):
                continue
            raw_wid = item.get("windowId")
            wid = raw_wid if (isinstance(raw_wid, int) and raw_wid > 0) else _FALLBACK_WID
            index = per_window.get(wid, 0)
            per_window[wid] = index + 1
            pages.append({
                "id":         self._int_id(str(item.get("id") or "")),
                "url":        url,
                "title":      str(item.get("title") or "").strip(),
                "favIconUrl": item.get("faviconUrl"),
                "pinned":     False,
                "groupId":    UNGROUPED,
                "index":      index,
                "windowId":   wid,
                "active":     False,
            })
        return pages

    async def query_tabs(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._list_pages)

    async def get_windows(self) -> List[Dict[str, Any]]:
        pages = await asyncio.to_thread(self._list_pages)
        wids = sorted({p["windowId"] for p in pages}) or [_FALLBACK_WID]
        return [{"id": wid, "focused": i == 0, "incognito": False, "type": "normal"}
                for i, wid in enumerate(wids)]

    async def get_current_window(self) -> int:
        windows = await self.get_windows()
        return windows[0]["id"]

    # ── mutation ──────────────────────────────────────────────────────────
    def _new_page(self, url: str) -> int:
        # Recent Chromium refuses GET on /json/new; PUT works everywhere.
        target = self._request_json(f"/json/new?{urllib.parse.quote(url, safe='')}", "PUT")
        if not isinstance(target, dict) or not target.get("id"):
            raise HostOperationError(f"DevTools did not return a target for {url}")
        return self._int_id(str(target["id"]))

    async def create_tab(self, window_id: int, url: str,
                         active: bool = False, pinned: bool = False) -> int:
        # /json/new has no window or pin parameters; the browser picks the
        # last focused window.
        return await asyncio.to_thread(self._new_page, url)

    async def remove_tab(self, tab_id: int) -> None:
        target = self._target_id(tab_id)
        await asyncio.to_thread(self._request, f"/json/close/{target}")
        self._by_int.pop(tab_id, None)
        self._by_target.pop(target, None)
