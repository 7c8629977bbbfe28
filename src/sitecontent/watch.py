"""
Rebuild manifests when the content tree changes.

Any create/modify/delete/move below the posts root reruns the post pipeline;
below the books root, the book pipeline. Each run rescans the whole tree.

Events are debounced per kind: every event restarts a short timer, and the
pipeline runs once the tree has been quiet for rebuild_delay seconds, so the
last change of a burst is always picked up. Runs of different kinds are not
serialized against each other.
"""

import threading
import time
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .books import build_books_manifest
from .config import SiteConfig
from .posts import build_posts_manifest

REBUILD_DELAY = 1.0  # seconds of quiet before a rebuild


class ContentChangeHandler(FileSystemEventHandler):
    """Maps file events onto 'posts' / 'books' rebuilds."""

    def __init__(self, config: SiteConfig,
                 on_rebuild: Optional[Callable[[str], None]] = None,
                 rebuild_delay: float = REBUILD_DELAY):
        self.config = config
        self.on_rebuild = on_rebuild
        self.rebuild_delay = rebuild_delay
        self._timers = {}
        self._lock = threading.Lock()
        self._builders = {
            'posts': build_posts_manifest,
            'books': build_books_manifest,
        }

    def classify(self, path) -> Optional[str]:
        """'posts', 'books' or None for a changed path."""
        path = Path(path)
        template_dir = self.config.posts_dir / self.config.post_template
        if path.is_relative_to(template_dir):
            return None
        if path.is_relative_to(self.config.posts_dir):
            return 'posts'
        if path.is_relative_to(self.config.books_dir):
            return 'books'
        return None

    def on_any_event(self, event: FileSystemEvent):
        if event.event_type not in ('created', 'modified', 'deleted', 'moved'):
            return
        if event.is_directory and event.event_type == 'modified':
            return

        paths = [event.src_path]
        if getattr(event, 'dest_path', None):
            paths.append(event.dest_path)
        for kind in dict.fromkeys(self.classify(p) for p in paths):
            if kind:
                self.schedule(kind, reason=event.src_path)

    def schedule(self, kind: str, reason: str = ''):
        """(Re)start the quiet-period timer for one pipeline."""
        with self._lock:
            previous = self._timers.get(kind)
            if previous is not None:
                previous.cancel()
            timer = threading.Timer(self.rebuild_delay, self._fire, args=(kind, reason))
            timer.daemon = True
            self._timers[kind] = timer
            timer.start()

    def _fire(self, kind: str, reason: str):
        with self._lock:
            # A newer event or flush() may have replaced this timer already
            if self._timers.get(kind) is not threading.current_thread():
                return
            del self._timers[kind]
        self.rebuild(kind, reason)

    @property
    def pending(self) -> list[str]:
        with self._lock:
            return list(self._timers)

    def flush(self):
        """Run every pending rebuild now instead of waiting for its timer."""
        with self._lock:
            timers = list(self._timers.items())
            self._timers.clear()
        for kind, timer in timers:
            timer.cancel()
            self.rebuild(kind, reason=timer.args[1])

    def cancel(self):
        """Drop pending rebuilds without running them."""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def rebuild(self, kind: str, reason: str = ''):
        """Rerun one pipeline and notify on_rebuild."""
        print(f"\nChange detected ({kind}): {reason}")
        self._builders[kind](self.config, quiet=True)
        if self.on_rebuild:
            self.on_rebuild(kind)


def start_observer(config: SiteConfig,
                   on_rebuild: Optional[Callable[[str], None]] = None,
                   ) -> tuple[Observer, ContentChangeHandler]:
    """Schedule a watchdog observer on the posts and books roots and start it."""
    handler = ContentChangeHandler(config, on_rebuild=on_rebuild)
    observer = Observer()
    for directory in (config.posts_dir, config.books_dir):
        if directory.is_dir():
            observer.schedule(handler, str(directory), recursive=True)
            print(f"Watching {directory} for changes...")
    observer.start()
    return observer, handler


def stop_observer(observer: Observer, handler: ContentChangeHandler):
    observer.stop()
    observer.join()
    handler.cancel()


def watch(config: SiteConfig, on_rebuild: Optional[Callable[[str], None]] = None):
    """Build once, then rebuild on changes until interrupted."""
    build_posts_manifest(config)
    build_books_manifest(config)

    observer, handler = start_observer(config, on_rebuild=on_rebuild)
    print("File watcher started. Press Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nStopping file watcher...")
    finally:
        stop_observer(observer, handler)
