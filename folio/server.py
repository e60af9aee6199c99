"""Preview server for Folio.

Serves the built site locally and rebuilds it when posts, the about page,
the theme or the configuration change:
- Rejects directory listings and missing paths with a 404 (serving 404.html).
- Builds into a staging directory and swaps it in, so the output folder is
  never half-written while being served.

Key classes:
- PreviewServer: Builds, serves and watches a project.
- _PreviewHandler: HTTP request handler that enforces 404s and disables caching.
- _ChangeHandler: File system event handler for triggering rebuilds.
"""

from __future__ import annotations

import functools
import logging
import os
import shutil
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import CONFIG_FILENAME, BuildError, build_site, load_config

logger = logging.getLogger(__name__)


class _PreviewHandler(SimpleHTTPRequestHandler):
    """Static file handler that never lists directories."""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._serve_404()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

    def _serve_404(self):
        """Serve 404.html (when present) with a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            encoded = error_page.read_bytes()
            self.send_response(404)
            self.send_header("Content-type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)
            return None
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir():
            if not (path_obj / "index.html").exists():
                return self._serve_404()
        elif not path_obj.exists():
            return self._serve_404()
        return super().send_head()


class PreviewServer:
    """Local preview server with rebuild-on-change.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        output_dir: Directory where the built site is served from.
        http_port: Port for the HTTP server.
    """

    def __init__(self, project_root: Path, http_port: int | None = None):
        """Initialize the preview server.

        Args:
            project_root: Root directory of the project.
            http_port: Optional override for the configured port.
        """
        self.project_root = project_root
        self.config = load_config(project_root)
        self.output_dir = project_root / self.config["output_dir"]
        self._staging_dir = self.output_dir.with_name(self.output_dir.name + ".staging")
        self.http_port = int(http_port or self.config.get("port", 4000))
        self._root_url = f"http://localhost:{self.http_port}"
        self._observer: Observer | None = None
        self._lock = threading.Lock()
        self._last_signature: tuple | None = None

    def watched_paths(self) -> list[Path]:
        """Return the folders whose changes trigger a rebuild."""
        candidates = [
            self.project_root / self.config["content_dir"],
            (self.project_root / self.config["about_file"]).parent,
            self.project_root / self.config["theme_dir"],
        ]
        seen: list[Path] = []
        for path in candidates:
            if path.exists() and path not in seen:
                seen.append(path)
        return seen

    def start(self, include_drafts: bool = False) -> None:  # pragma: no cover - integration path
        self.rebuild(include_drafts, force=True)
        threading.Thread(target=self._start_http, daemon=True).start()
        self._start_watcher(include_drafts)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler = functools.partial(_PreviewHandler, directory=str(self.output_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        logger.info("Serving %s at %s", self.output_dir, self._root_url)
        httpd.serve_forever()

    def _start_watcher(self, include_drafts: bool) -> None:
        handler = _ChangeHandler(self, include_drafts)
        observer = Observer()
        for path in self.watched_paths():
            observer.schedule(handler, str(path), recursive=True)
        observer.schedule(handler, str(self.project_root), recursive=False)
        observer.start()
        self._observer = observer

    def rebuild(self, include_drafts: bool, force: bool = False) -> bool:
        """Rebuild the site if sources changed since the last build.

        Build errors are logged and leave the previous output in place.

        Returns:
            True if a new build was activated.
        """
        if not self._lock.acquire(blocking=False):
            return False
        try:
            signature = self._compute_signature()
            if not force and signature == self._last_signature:
                return False
            staging = self._prepare_staging_dir()
            try:
                result = build_site(
                    self.project_root,
                    include_drafts=include_drafts,
                    root_url=self._root_url,
                    output_dir_override=staging,
                )
            except BuildError as exc:
                logger.error("Build failed: %s", exc)
                shutil.rmtree(staging, ignore_errors=True)
                return False
            self._activate_staging(staging)
            self._last_signature = signature
            logger.info("Rebuilt %d pages", len(result.pages))
            return True
        finally:
            self._lock.release()

    def _compute_signature(self) -> tuple:
        entries: list[tuple] = []
        config_path = self.project_root / CONFIG_FILENAME
        roots = [config_path] if config_path.exists() else []
        for root in self.watched_paths():
            roots.extend(sorted(p for p in root.rglob("*") if p.is_file()))
        for path in roots:
            try:
                stat = path.stat()
            except OSError:
                continue
            entries.append((str(path), stat.st_mtime_ns, stat.st_size))
        return tuple(entries)

    def _prepare_staging_dir(self) -> Path:
        staging = self._staging_dir
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True, exist_ok=True)
        return staging

    def _activate_staging(self, staging: Path) -> None:
        if self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        os.replace(staging, self.output_dir)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: PreviewServer, include_drafts: bool):
        super().__init__()
        self.server = server
        self.include_drafts = include_drafts

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(os.fsdecode(event.src_path))
        for ignored in (self.server.output_dir, self.server._staging_dir):
            if path == ignored or ignored in path.parents:
                return
        self.server.rebuild(self.include_drafts)
