"""File watching and live-reload fan-out for the dev server.

``FileWatcher`` polls the project tree in a background thread and pushes
``FileChange`` events onto a queue. ``pump_changes`` drains that queue and
asks the ``ReloadBroadcaster`` to tell every connected browser to reload the
whole page. There is no dependency tracking between pages, layout and
components, so every change triggers a full reload.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

FULL_RELOAD = {"type": "full-reload", "path": "*"}
DEFAULT_IGNORED_DIRS = frozenset({".git", "node_modules", "__pycache__", ".venv"})


@dataclass(frozen=True)
class FileChange:
    kind: str  # "add", "change", "unlink"
    path: Path


def should_reload(path: Path | str, extensions: Iterable[str]) -> bool:
    return str(path).lower().endswith(tuple(e.lower() for e in extensions))


class FileWatcher:
    """Polls mtimes under ``root`` for files with a watched extension.

    ``ignored_dirs`` are directory names skipped at any depth;
    ``ignored_paths`` are exact directories, such as the build output.
    """

    def __init__(
        self,
        root: Path,
        extensions: Iterable[str],
        events: queue.Queue,
        *,
        interval: float = 0.5,
        ignored_dirs: Iterable[str] = (),
        ignored_paths: Iterable[Path] = (),
    ) -> None:
        self.root = Path(root)
        self.extensions = tuple(extensions)
        self.events = events
        self.interval = interval
        self.ignored_dirs = DEFAULT_IGNORED_DIRS | frozenset(ignored_dirs)
        self.ignored_paths = frozenset(Path(p) for p in ignored_paths)
        self._mtimes: dict[Path, float] = {}
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def snapshot(self) -> dict[Path, float]:
        mtimes: dict[Path, float] = {}
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = [
                d for d in dirnames
                if d not in self.ignored_dirs and Path(dirpath, d) not in self.ignored_paths
            ]
            for fn in filenames:
                if not should_reload(fn, self.extensions):
                    continue
                path = Path(dirpath) / fn
                try:
                    mtimes[path] = path.stat().st_mtime
                except OSError:
                    continue  # removed between walk and stat
        return mtimes

    def poll(self) -> list[FileChange]:
        """Compare against the previous snapshot and queue the differences."""
        current = self.snapshot()
        changes = [
            FileChange("add", p) for p in current if p not in self._mtimes
        ]
        changes += [
            FileChange("change", p) for p, m in current.items()
            if p in self._mtimes and self._mtimes[p] != m
        ]
        changes += [
            FileChange("unlink", p) for p in self._mtimes if p not in current
        ]
        self._mtimes = current
        for change in changes:
            self.events.put(change)
        return changes

    def start(self) -> None:
        self._mtimes = self.snapshot()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        logger.info("Watching %s for %s", self.root, ", ".join(self.extensions))

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.poll()


class ReloadBroadcaster:
    """Fans reload messages out to one queue per connected client."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._clients: set[queue.Queue] = set()

    def subscribe(self) -> queue.Queue:
        q: queue.Queue = queue.Queue()
        with self._lock:
            self._clients.add(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._clients.discard(q)

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    def broadcast(self, message: dict) -> int:
        """Send ``message`` to every client; returns how many received it."""
        with self._lock:
            clients = list(self._clients)
        for q in clients:
            q.put(message)
        return len(clients)


def pump_changes(
    events: queue.Queue,
    broadcaster: ReloadBroadcaster,
    stop_event: threading.Event,
    *,
    timeout: float = 0.5,
) -> None:
    """Turn every queued file change into a full-reload broadcast."""
    while not stop_event.is_set():
        try:
            change = events.get(timeout=timeout)
        except queue.Empty:
            continue
        sent = broadcaster.broadcast(FULL_RELOAD)
        logger.info("%s %s -> full reload (%d client(s))", change.kind, change.path, sent)
