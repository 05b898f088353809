import asyncio
import json
import pathlib
import sys
import types
import urllib.error

import pytest

repo_root = pathlib.Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

import cdp_host
import tab_session
import tab_snapshot
from tab_host import HostOperationError


class _Response:
    def __init__(self, payload):
        self._raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode()

    def read(self):
        return self._raw

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _fake_browser(monkeypatch, pages):
    requests = []

    def _urlopen(req, timeout=None):
        url = req.full_url
        requests.append((req.get_method(), url))
        if url.endswith("/json/version"):
            return _Response({"Browser": "Chrome/130"})
        if url.endswith("/json/list"):
            return _Response(pages)
        if "/json/new?" in url:
            return _Response({"id": f"T{len(requests)}", "type": "page"})
        if "/json/close/" in url:
            return _Response(b"Target is closing")
        raise urllib.error.URLError("unexpected")

    monkeypatch.setattr(cdp_host.urllib.request, "urlopen", _urlopen)
    return requests


PAGES = [
    {"id": "AAA", "type": "page", "url": "https://a.example", "title": "A"},
    {"id": "BBB", "type": "page", "url": "chrome://newtab/", "title": "New Tab"},
    {"id": "CCC", "type": "service_worker", "url": "https://sw.example"},
    {"id": "DDD", "type": "page", "url": "https://d.example", "title": "D", "windowId": 7},
    {"id": "EEE", "type": "page", "url": "https://e.example", "title": "E", "windowId": -1},
]


def test_query_tabs_keeps_pages_only_and_maps_ids(monkeypatch):
    _fake_browser(monkeypatch, PAGES)
    host = cdp_host.CdpHost(9222)

    tabs = asyncio.run(host.query_tabs())

    assert [t["url"] for t in tabs] == ["https://a.example", "https://d.example",
                                        "https://e.example"]
    assert [t["windowId"] for t in tabs] == [1, 7, 1]
    assert [t["index"] for t in tabs] == [0, 0, 1]
    assert all(t["groupId"] == tab_snapshot.UNGROUPED for t in tabs)
    # stable ids across calls
    assert [t["id"] for t in asyncio.run(host.query_tabs())] == [t["id"] for t in tabs]


def test_get_windows_from_page_window_ids(monkeypatch):
    _fake_browser(monkeypatch, PAGES)
    host = cdp_host.CdpHost(9222)

    windows = asyncio.run(host.get_windows())

    assert [w["id"] for w in windows] == [1, 7]
    assert windows[0]["focused"] is True
    assert asyncio.run(host.get_current_window()) == 1


def test_create_and_remove_tab(monkeypatch):
    requests = _fake_browser(monkeypatch, [])
    host = cdp_host.CdpHost(9222)

    async def go():
        tab_id = await host.create_tab(1, "https://x.example/?q=a b")
        await host.remove_tab(tab_id)
        return tab_id

    tab_id = asyncio.run(go())

    method, url = requests[0]
    assert method == "PUT"
    assert url.startswith("http://127.0.0.1:9222/json/new?https%3A%2F%2Fx.example")
    assert requests[1][1].endswith("/json/close/T1")
    with pytest.raises(HostOperationError):
        asyncio.run(host.remove_tab(tab_id))


def test_unreachable_browser_raises_host_error(monkeypatch):
    def _urlopen(req, timeout=None):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(cdp_host.urllib.request, "urlopen", _urlopen)
    host = cdp_host.CdpHost(9222)

    assert host.alive() is False
    with pytest.raises(HostOperationError, match="connection refused"):
        asyncio.run(host.query_tabs())


def test_unsupported_capabilities():
    host = cdp_host.CdpHost()

    assert not host.supports_groups
    with pytest.raises(HostOperationError):
        asyncio.run(host.create_window())
    with pytest.raises(HostOperationError):
        asyncio.run(host.group_tabs(1))


def test_capture_through_cdp_host(monkeypatch):
    _fake_browser(monkeypatch, PAGES)

    snap = asyncio.run(tab_session.capture(cdp_host.CdpHost(9222)))

    assert snap.tab_count == 3
    assert snap.groups == ()
    assert {w.id for w in snap.windows} == {1, 7}


def test_reconstruct_through_cdp_host_without_windows(monkeypatch):
    requests = _fake_browser(monkeypatch, PAGES)
    snap = asyncio.run(tab_session.capture(cdp_host.CdpHost(9222)))
    host = cdp_host.CdpHost(9222)

    result = asyncio.run(tab_session.reconstruct(
        snap, host, tab_session.ImportOptions(batch_size=2, batch_delay=0)))

    assert result.created == 3
    assert result.windows_created == 0
    assert sum(1 for m, _ in requests if m == "PUT") == 3


def _proc(pid, name, cmdline):
    return types.SimpleNamespace(pid=pid, info={"name": name, "cmdline": cmdline})


def test_find_debug_port_from_browser_cmdline(monkeypatch):
    procs = [
        _proc(1, "python", ["python", "--remote-debugging-port=1111"]),
        _proc(2, "chrome", ["chrome", "--type=renderer"]),
        _proc(3, "msedge.exe", ["msedge.exe", "--remote-debugging-port=9333"]),
    ]
    monkeypatch.setattr(cdp_host.psutil, "process_iter", lambda attrs=None: iter(procs))

    assert cdp_host.find_debug_port() == 9333


def test_find_debug_port_none_running(monkeypatch):
    monkeypatch.setattr(cdp_host.psutil, "process_iter", lambda attrs=None: iter([]))

    assert cdp_host.find_debug_port() is None
