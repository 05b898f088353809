"""
tab_session.py  –  Export & import browser sessions
===================================================

Snapshot file: see tab_snapshot.py  (schema "1.0")

Key behaviours
  · Export reads tabs, tab groups and windows in one pass.  Groups are
    optional: a host without them exports every tab as ungrouped.
  · Import partitions tabs by their original window and replays each
    partition in index order.  The first partition lands in the current
    window, every other one gets a fresh unfocused window.
  · Tab groups are recreated lazily, once per original group id, through a
    throwaway about:blank tab (a group can't exist without a member).
  · Tabs are created in batches: everything in a batch is in flight at
    once, batches run one after the other with a pause in between so the
    browser isn't flooded.
  · One failing tab never stops the import.  Every tab yields a TabOutcome
    and the run reports "N of T" at the end.
  · New tabs are discarded straight away so nothing loads until clicked.
  · Ctrl+C during an import stops at the next batch boundary.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import signal
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import cdp_host
import tab_snapshot
from tab_host import Host, HostOperationError, MemoryHost
from tab_snapshot import (
    NO_WINDOW,
    UNGROUPED,
    ExportedGroup,
    ExportedTab,
    ExportedWindow,
    Snapshot,
    ValidationError,
)

log = logging.getLogger(__name__)

# ══════════════════════════════════════════════════════════════════════════
#  Constants
# ══════════════════════════════════════════════════════════════════════════
CONFIG_PATH     = "config.json"
PLACEHOLDER_URL = "about:blank"
GROUP_SCOPES    = ("import", "window")

DEFAULT_CONFIG: Dict[str, Any] = {
    "batch_size":     10,
    "batch_delay_ms": 100,
    "debug_port":     None,
    "op_timeout":     None,
    "group_scope":    "import",
    "export_dir":     ".",
}


class CaptureError(RuntimeError):
    """Reading browser state failed; no snapshot was produced."""


# ══════════════════════════════════════════════════════════════════════════
#  Host call helper
# ══════════════════════════════════════════════════════════════════════════
async def _call(awaitable, timeout: Optional[float]):
    if not timeout:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        raise HostOperationError(f"host call timed out after {timeout:g}s") from None


# ══════════════════════════════════════════════════════════════════════════
#  Capture
# ══════════════════════════════════════════════════════════════════════════
def _int(value: Any, default: int) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else default


def _capture_tab(raw: Dict[str, Any], group_ids: set) -> ExportedTab:
    gid = _int(raw.get("groupId"), UNGROUPED)
    if gid not in group_ids:
        gid = UNGROUPED
    muted = raw.get("mutedInfo")
    return ExportedTab(
        url=str(raw.get("url") or ""),
        title=str(raw.get("title") or ""),
        fav_icon_url=raw.get("favIconUrl") or None,
        pinned=bool(raw.get("pinned")),
        group_id=gid,
        index=_int(raw.get("index"), 0),
        window_id=_int(raw.get("windowId"), NO_WINDOW),
        active=bool(raw.get("active")),
        audible=raw.get("audible") if isinstance(raw.get("audible"), bool) else None,
        muted_info=dict(muted) if isinstance(muted, dict) else None,
        last_accessed=tab_snapshot.as_timestamp(raw.get("lastAccessed")),
    )


async def capture(host: Host) -> Snapshot:
    """Read the host's windows, groups and tabs into one Snapshot."""
    try:
        raw_tabs    = await host.query_tabs()
        raw_windows = await host.get_windows()
    except Exception as exc:
        raise CaptureError(f"Could not read browser state: {exc}") from exc

    raw_groups: List[Dict[str, Any]] = []
    if host.supports_groups:
        try:
            raw_groups = await host.query_groups()
        except Exception as exc:
            log.warning("Tab groups API not available: %s", exc)
    else:
        log.debug("Host has no tab groups; exporting every tab ungrouped")

    groups = [
        ExportedGroup(
            id=int(g["id"]),
            title=g.get("title"),
            color=g.get("color") if g.get("color") in tab_snapshot.GROUP_COLORS
                  else tab_snapshot.DEFAULT_GROUP_COLOR,
            collapsed=bool(g.get("collapsed")),
        )
        for g in raw_groups if _int(g.get("id"), UNGROUPED) >= 0
    ]
    group_ids = {g.id for g in groups}

    tabs    = [_capture_tab(t, group_ids) for t in raw_tabs]
    kept    = [t for t in tabs if t.url.strip()]
    if len(kept) < len(tabs):
        log.warning("Dropped %d tab(s) without a url", len(tabs) - len(kept))

    windows = [
        ExportedWindow(
            id=_int(w.get("id"), NO_WINDOW),
            focused=bool(w.get("focused")),
            incognito=bool(w.get("incognito")),
            type=str(w.get("type") or "normal"),
            state=w.get("state"),
        )
        for w in raw_windows
    ]
    known = {w.id for w in windows}
    for t in kept:
        if t.window_id not in known:
            known.add(t.window_id)
            windows.append(ExportedWindow(id=t.window_id))

    return Snapshot(
        tabs=tuple(kept),
        groups=tuple(groups),
        windows=tuple(windows),
        captured_at=tab_snapshot.now_iso(),
    )


async def export_session(host: Host, path: Optional[str] = None,
                         directory: str = ".") -> Tuple[str, Snapshot]:
    snapshot = await capture(host)
    path = path or os.path.join(directory, tab_snapshot.default_export_name())
    tab_snapshot.save_snapshot(snapshot, path)
    log.info("Exported %d tabs -> %s", snapshot.tab_count, path)
    return path, snapshot


# ══════════════════════════════════════════════════════════════════════════
#  Group remapping
# ══════════════════════════════════════════════════════════════════════════
class GroupRemapper:
    """
    Original group id -> id of the group recreated for it.

    Each key is written once.  Failures are cached as None so a broken group
    is attempted only once and its tabs come in ungrouped.

    scope="import" shares one mapping across every target window of the
    import.  scope="window" keys by (group, target window), so a group whose
    tabs were spread over several source windows is recreated in each.
    """

    def __init__(self, snapshot: Snapshot, host: Host, scope: str = "import",
                 timeout: Optional[float] = None) -> None:
        if scope not in GROUP_SCOPES:
            raise ValueError(f"group scope must be one of {GROUP_SCOPES}, got {scope!r}")
        self.snapshot = snapshot
        self.host     = host
        self.scope    = scope
        self.timeout  = timeout
        self.table: Dict[Any, Optional[int]] = {}
        self.created  = 0
        self._lock    = asyncio.Lock()

    def _key(self, original_id: int, target_window_id: int):
        return original_id if self.scope == "import" else (original_id, target_window_id)

    async def resolve(self, original_id: int, target_window_id: int) -> Optional[int]:
        if original_id == UNGROUPED or original_id < 0:
            return None
        key = self._key(original_id, target_window_id)
        if key in self.table:
            return self.table[key]
        async with self._lock:
            if key not in self.table:
                self.table[key] = await self._create(original_id, target_window_id)
            return self.table[key]

    async def _create(self, original_id: int, window_id: int) -> Optional[int]:
        group = self.snapshot.group(original_id)
        if group is None:
            log.warning("Group %d is referenced by a tab but missing from the export",
                        original_id)
            return None
        if not self.host.supports_groups:
            return None

        placeholder = None
        new_id: Optional[int] = None
        try:
            placeholder = await _call(
                self.host.create_tab(window_id, PLACEHOLDER_URL, active=False),
                self.timeout,
            )
            new_id = await _call(self.host.group_tabs(placeholder), self.timeout)
            await _call(self.host.update_group(
                new_id, title=group.title, color=group.color, collapsed=group.collapsed,
            ), self.timeout)
        except Exception as exc:
            log.warning("Error creating group %r: %s", group.title or original_id, exc)
            new_id = None

        if placeholder is not None:
            try:
                await _call(self.host.remove_tab(placeholder), self.timeout)
            except Exception as exc:
                log.warning("Could not remove placeholder tab %s: %s", placeholder, exc)

        if new_id is not None:
            self.created += 1
            log.debug("Group %d -> %d in window %d", original_id, new_id, window_id)
        return new_id


# ══════════════════════════════════════════════════════════════════════════
#  Progress
# ══════════════════════════════════════════════════════════════════════════
Progress = Optional[Tuple[int, int]]


class ProgressReporter:
    """(current, total) while an import runs, None otherwise."""

    def __init__(self) -> None:
        self._progress: Progress = None
        self._subscribers: List[Callable[[Progress], None]] = []

    @property
    def progress(self) -> Progress:
        return self._progress

    def subscribe(self, callback: Callable[[Progress], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return _unsubscribe

    def _push(self) -> None:
        for cb in list(self._subscribers):
            try:
                cb(self._progress)
            except Exception:
                log.exception("Progress subscriber failed")

    def start(self, total: int) -> None:
        self._progress = (0, max(0, total))
        self._push()

    def report(self, current: int, total: int) -> None:
        if self._progress is not None and current < self._progress[0]:
            raise ValueError(
                f"progress went backwards: {current} < {self._progress[0]}"
            )
        self._progress = (min(current, total), total)
        self._push()

    def advance(self, n: int) -> None:
        if self._progress is None:
            raise RuntimeError("advance() called with no import in flight")
        current, total = self._progress
        self.report(current + n, total)

    def finish(self) -> None:
        self._progress = None
        self._push()


# ══════════════════════════════════════════════════════════════════════════
#  Reconstruction
# ══════════════════════════════════════════════════════════════════════════
@dataclass
class ImportOptions:
    batch_size: int = 10
    batch_delay: float = 0.1
    group_scope: str = "import"
    op_timeout: Optional[float] = None
    discard: bool = True

    def validate(self) -> None:
        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int) \
                or self.batch_size < 1:
            raise ValueError(f"batch_size must be a positive integer, got {self.batch_size!r}")
        if self.batch_delay < 0:
            raise ValueError(f"batch_delay must be >= 0, got {self.batch_delay!r}")
        if self.group_scope not in GROUP_SCOPES:
            raise ValueError(f"group_scope must be one of {GROUP_SCOPES}")
        if self.op_timeout is not None and self.op_timeout <= 0:
            raise ValueError(f"op_timeout must be > 0, got {self.op_timeout!r}")


@dataclass(frozen=True)
class TabOutcome:
    tab: ExportedTab
    ok: bool
    new_tab_id: Optional[int] = None
    error: Optional[str] = None
    warnings: Tuple[str, ...] = ()


@dataclass
class ImportResult:
    total: int = 0
    created: int = 0
    attempted: int = 0
    failures: List[TabOutcome] = field(default_factory=list)
    groups_created: int = 0
    windows_created: int = 0
    batches: int = 0
    cancelled: bool = False

    def fold(self, outcomes: Sequence[TabOutcome]) -> None:
        for o in outcomes:
            self.attempted += 1
            if o.ok:
                self.created += 1
            else:
                self.failures.append(o)


def partition_tabs(tabs: Sequence[ExportedTab]) -> Dict[int, List[ExportedTab]]:
    """Tabs grouped by original window (first-seen order), each sorted by index."""
    by_window: Dict[int, List[ExportedTab]] = {}
    for t in tabs:
        by_window.setdefault(t.window_id, []).append(t)
    for wtabs in by_window.values():
        wtabs.sort(key=lambda t: t.index)
    return by_window


def batched(items: Sequence[ExportedTab], size: int) -> List[List[ExportedTab]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


async def _target_window(host: Host, first: Optional[int],
                         options: ImportOptions, result: ImportResult) -> Optional[int]:
    if first is None:
        try:
            return await _call(host.get_current_window(), options.op_timeout)
        except Exception as exc:
            log.error("Could not get the current window: %s", exc)
            return None
    if not host.supports_windows:
        log.debug("Host cannot open windows; using window %d", first)
        return first
    try:
        wid = await _call(host.create_window(focused=False), options.op_timeout)
        result.windows_created += 1
        return wid
    except Exception as exc:
        log.warning("Could not create a window (%s); using window %d instead", exc, first)
        return first


async def _create_one(host: Host, tab: ExportedTab, window_id: int,
                      remapper: GroupRemapper, options: ImportOptions) -> TabOutcome:
    timeout = options.op_timeout
    try:
        tab_id = await _call(
            host.create_tab(window_id, tab.url, active=False, pinned=tab.pinned), timeout,
        )
    except Exception as exc:
        log.warning("Error importing tab %s: %s", tab.url, exc)
        return TabOutcome(tab, ok=False, error=str(exc))

    warnings: List[str] = []
    group_id = await remapper.resolve(tab.group_id, window_id) if tab.grouped else None
    if group_id is not None:
        try:
            await _call(host.group_tabs(tab_id, group_id=group_id), timeout)
        except Exception as exc:
            log.warning("Error adding tab %s to group: %s", tab.url, exc)
            warnings.append(f"group: {exc}")

    if tab.muted:
        if host.supports_mute:
            try:
                await _call(host.update_tab(tab_id, muted=True), timeout)
            except Exception as exc:
                log.warning("Error muting tab %s: %s", tab.url, exc)
                return TabOutcome(tab, ok=False, new_tab_id=tab_id, error=f"mute: {exc}")
        else:
            warnings.append("mute: not supported by host")

    if options.discard and host.supports_discard:
        try:
            await _call(host.discard_tab(tab_id), timeout)
        except Exception as exc:
            log.warning("Error discarding tab %s: %s", tab.url, exc)
            warnings.append(f"discard: {exc}")

    return TabOutcome(tab, ok=True, new_tab_id=tab_id, warnings=tuple(warnings))


async def reconstruct(
    snapshot: Snapshot,
    host: Host,
    options: Optional[ImportOptions] = None,
    reporter: Optional[ProgressReporter] = None,
    cancel: Optional[asyncio.Event] = None,
) -> ImportResult:
    """
    Replay a snapshot into `host`.

    Never raises for host failures: every tab is tried, failures are logged
    and collected in the result.  Invalid options raise ValueError before
    anything is touched.
    """
    options  = options or ImportOptions()
    options.validate()
    reporter = reporter or ProgressReporter()
    remapper = GroupRemapper(snapshot, host, scope=options.group_scope,
                             timeout=options.op_timeout)
    result   = ImportResult(total=snapshot.tab_count)

    partitions = list(partition_tabs(snapshot.tabs).items())
    plan = [(wid, wtabs, batched(wtabs, options.batch_size)) for wid, wtabs in partitions]
    last = (len(plan) - 1, len(plan[-1][2]) - 1) if plan else (-1, -1)

    reporter.start(result.total)
    first_window: Optional[int] = None
    try:
        for p, (src_wid, wtabs, batches) in enumerate(plan):
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                break

            target = await _target_window(host, first_window, options, result)
            if target is None:
                result.fold([TabOutcome(t, ok=False, error="no target window")
                             for t in wtabs])
                reporter.advance(len(wtabs))
                continue
            if first_window is None:
                first_window = target

            # Groups first, in the order this window first mentions them.
            for gid in dict.fromkeys(t.group_id for t in wtabs if t.grouped):
                await remapper.resolve(gid, target)

            for b, batch in enumerate(batches):
                if cancel is not None and cancel.is_set():
                    result.cancelled = True
                    break
                outcomes = await asyncio.gather(
                    *(_create_one(host, t, target, remapper, options) for t in batch)
                )
                result.fold(outcomes)
                result.batches += 1
                reporter.advance(len(batch))
                log.debug("Window %d batch %d/%d: %d/%d ok", src_wid, b + 1,
                          len(batches), sum(o.ok for o in outcomes), len(batch))
                if (p, b) != last and options.batch_delay > 0:
                    await asyncio.sleep(options.batch_delay)
            if result.cancelled:
                break
    finally:
        result.groups_created = remapper.created
        reporter.finish()
    return result


async def import_session(
    host: Host,
    path: str,
    options: Optional[ImportOptions] = None,
    reporter: Optional[ProgressReporter] = None,
    cancel: Optional[asyncio.Event] = None,
) -> ImportResult:
    snapshot = tab_snapshot.load_snapshot(path)
    return await reconstruct(snapshot, host, options, reporter, cancel)


# ══════════════════════════════════════════════════════════════════════════
#  Status lines
# ══════════════════════════════════════════════════════════════════════════
def status_line(result: ImportResult) -> str:
    line = f"✅ Imported {result.created} of {result.total} tabs"
    if result.groups_created:
        line += f", {result.groups_created} group(s)"
    if result.cancelled:
        line += " (cancelled)"
    return line


def error_line(exc: BaseException) -> str:
    return f"❌ {exc}"


# ══════════════════════════════════════════════════════════════════════════
#  Config
# ══════════════════════════════════════════════════════════════════════════
def _number(kind: type, value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    if kind is int and isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"expected a whole number, got {value!r}")
        return int(value)
    return kind(value)


def _optional(kind: type) -> Callable[[Any], Any]:
    return lambda value: None if value is None else _number(kind, value)


def _scope(value: Any) -> str:
    if value not in GROUP_SCOPES:
        raise ValueError(f"expected one of {GROUP_SCOPES}, got {value!r}")
    return value


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


_CONFIG_TYPES: Dict[str, Callable[[Any], Any]] = {
    "batch_size":     lambda v: _number(int, v),
    "batch_delay_ms": lambda v: _number(float, v),
    "debug_port":     _optional(int),
    "op_timeout":     _optional(float),
    "group_scope":    _scope,
    "export_dir":     _text,
}


def load_config(path: str = CONFIG_PATH) -> Dict[str, Any]:
    cfg = dict(DEFAULT_CONFIG)
    if not os.path.exists(path):
        return cfg
    try:
        with open(path, encoding="utf-8") as f:
            d = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        log.warning("Ignoring unreadable config %s: %s", path, exc)
        return cfg
    if not isinstance(d, dict):
        log.warning("Ignoring config %s: top level is not an object", path)
        return cfg
    for key, coerce in _CONFIG_TYPES.items():
        if key not in d:
            continue
        try:
            cfg[key] = coerce(d[key])
        except (TypeError, ValueError) as exc:
            log.warning("Config %s: bad %s (%s); using %r", path, key, exc, DEFAULT_CONFIG[key])
    return cfg


def resolve_port(flag: Optional[int], cfg: Dict[str, Any]) -> int:
    if flag:
        return flag
    if cfg.get("debug_port"):
        return int(cfg["debug_port"])
    return cdp_host.find_debug_port() or cdp_host.DEFAULT_PORT


def options_from(args: argparse.Namespace, cfg: Dict[str, Any]) -> ImportOptions:
    delay_ms = args.batch_delay if args.batch_delay is not None else cfg["batch_delay_ms"]
    timeout  = args.timeout if args.timeout is not None else cfg["op_timeout"]
    return ImportOptions(
        batch_size=args.batch_size if args.batch_size is not None else int(cfg["batch_size"]),
        batch_delay=float(delay_ms) / 1000.0,
        group_scope=args.group_scope or cfg["group_scope"],
        op_timeout=float(timeout) if timeout else None,
        discard=not args.no_discard,
    )


# ══════════════════════════════════════════════════════════════════════════
#  CLI
# ══════════════════════════════════════════════════════════════════════════
def _print_progress(progress: Progress) -> None:
    if progress is not None:
        print(f"  [{progress[0]}/{progress[1]}]")


def _live_host(port: int) -> Optional[cdp_host.CdpHost]:
    host = cdp_host.CdpHost(port)
    if host.alive():
        return host
    print(f"No DevTools endpoint on port {port}.")
    print(f"Start the browser with --remote-debugging-port={port} first.")
    return None


async def _run_import(host: Host, snapshot: Snapshot, options: ImportOptions) -> ImportResult:
    cancel   = asyncio.Event()
    reporter = ProgressReporter()
    reporter.subscribe(_print_progress)
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
    except (NotImplementedError, RuntimeError):
        pass  # Windows event loops have no signal handlers
    try:
        return await reconstruct(snapshot, host, options, reporter, cancel)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


def cmd_export(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    host = _live_host(resolve_port(args.port, cfg))
    if host is None:
        return 1
    try:
        path, snapshot = asyncio.run(
            export_session(host, args.json_path, directory=args.dir or cfg["export_dir"])
        )
    except (CaptureError, OSError) as exc:
        print(error_line(exc))
        return 1
    print(f"✅ Exported {snapshot.tab_count} tabs -> {path}")
    return 0


def cmd_import(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    try:
        options  = options_from(args, cfg)
        options.validate()
        snapshot = tab_snapshot.load_snapshot(args.json_path)
    except ValueError as exc:
        print(error_line(exc))
        return 1

    if args.dry_run:
        host: Host = MemoryHost()
    else:
        live = _live_host(resolve_port(args.port, cfg))
        if live is None:
            return 1
        host = live

    s = snapshot.summary()
    print(f"Importing {s['tabs']} tabs from {s['windows']} window(s), "
          f"{s['groups']} group(s)  batch={options.batch_size} "
          f"delay={options.batch_delay * 1000:.0f}ms")
    result = asyncio.run(_run_import(host, snapshot, options))
    print(status_line(result))
    if args.verbose:
        for o in result.failures:
            print(f"  ✗ {o.tab.url}: {o.error}")
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    try:
        snapshot = tab_snapshot.load_snapshot(args.json_path)
    except ValidationError as exc:
        print(error_line(exc))
        return 1
    s = snapshot.summary()
    print(f"{args.json_path}: {s['tabs']} tabs, {s['windows']} window(s), "
          f"{s['groups']} group(s), {s['pinned']} pinned  "
          f"(exported {snapshot.captured_at or 'unknown'})")
    for wid, wtabs in partition_tabs(snapshot.tabs).items():
        print(f"  window {wid}: {len(wtabs)} tab(s)")
        for t in wtabs:
            flags = "".join([
                "P" if t.pinned else "-",
                "M" if t.muted else "-",
            ])
            group = snapshot.group(t.group_id) if t.grouped else None
            label = f" [{group.title or group.color}]" if group else ""
            print(f"    {t.index:>3} {flags} {t.title[:50] or t.url[:50]}{label}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tab-session",
        description="Export/import browser tabs, groups and windows.",
    )
    p.add_argument("--config", default=CONFIG_PATH)
    s = p.add_subparsers(dest="cmd", required=True)

    sp = s.add_parser("export")
    sp.add_argument("json_path", nargs="?")
    sp.add_argument("--port", type=int)
    sp.add_argument("--dir", help="Directory for the default tabs-export-<date>.json name")
    sp.add_argument("--verbose", "-v", action="store_true")

    sp = s.add_parser("import")
    sp.add_argument("json_path")
    sp.add_argument("--port", type=int)
    sp.add_argument("--batch-size",  type=int, help="Tabs per batch (default 10)")
    sp.add_argument("--batch-delay", type=int, help="Pause between batches in ms (default 100)")
    sp.add_argument("--group-scope", choices=GROUP_SCOPES,
                    help="Share recreated groups across the import or per window")
    sp.add_argument("--timeout",     type=float, help="Per host call timeout in seconds")
    sp.add_argument("--no-discard",  action="store_true",
                    help="Leave new tabs loaded instead of discarding them")
    sp.add_argument("--dry-run",     action="store_true",
                    help="Replay into an in-memory browser")
    sp.add_argument("--verbose", "-v", action="store_true")

    sp = s.add_parser("inspect")
    sp.add_argument("json_path")
    sp.add_argument("--verbose", "-v", action="store_true")

    sp = s.add_parser("help")
    sp.add_argument("--full", action="store_true")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    p    = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    cfg = load_config(args.config)

    if args.cmd == "export":
        return cmd_export(args, cfg)
    if args.cmd == "import":
        return cmd_import(args, cfg)
    if args.cmd == "inspect":
        return cmd_inspect(args)
    if args.full:
        p.print_help()
    else:
        print("""
Quick reference
  export:   tab-session export [tabs.json] [--port 9222]
  import:   tab-session import tabs.json [--batch-size 10] [--batch-delay 100]
  dry run:  tab-session import tabs.json --dry-run -v
  inspect:  tab-session inspect tabs.json
""")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
