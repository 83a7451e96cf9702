"""Development server — assembles pages on request and live-reloads browsers.

Request mapping:
  /                 -> <pages_dir>/home/page.html
  /index.html       -> <pages_dir>/home/page.html
  /<name>.html      -> <pages_dir>/<name>/page.html
  anything else     -> static file under the project root, except hidden
                       files, secrets (.env*, *.pem, ...) and pageforge.yaml

Assembly failures never escape a request: the error is logged and the
untouched fragment is served instead.
"""

from __future__ import annotations

import fnmatch
import json
import logging
import queue
import re
import threading
from typing import Optional

from flask import Flask, Response, abort, send_from_directory

from pageforge.assembler import assemble_page
from pageforge.config import CONFIG_FILENAME, ConfigTree, SiteConfig
from pageforge.dev.watcher import FileWatcher, ReloadBroadcaster, pump_changes
from pageforge.models import Page
from pageforge.registry import make_page

logger = logging.getLogger(__name__)

RELOAD_PATH = "/__pageforge/reload"
KEEPALIVE_SECONDS = 15.0
_HTML_PATH = re.compile(r"^/(.+)\.html$")
DENIED_STATIC_PATTERNS = (".env", ".env.*", "*.pem", "*.crt", "*.key", CONFIG_FILENAME)

RELOAD_CLIENT = (
    "<script>"
    f'new EventSource("{RELOAD_PATH}").onmessage = function (e) {{'
    ' if (JSON.parse(e.data).type === "full-reload") location.reload(); };'
    "</script>"
)


def _sanitize_path(path: str) -> str:
    """Drop empty, ``.`` and ``..`` segments so a path cannot escape its root."""
    segments = [s for s in path.split("/") if s not in ("", ".", "..")]
    return "/".join(segments)


def is_denied_static(path: str) -> bool:
    """Hidden files and directories, secrets and the site config are never served."""
    segments = path.split("/")
    if any(s.startswith(".") for s in segments):
        return True
    name = segments[-1].lower()
    return any(fnmatch.fnmatch(name, p) for p in DENIED_STATIC_PATTERNS)


def map_request_path(path: str, site: SiteConfig) -> Optional[Page]:
    """Return the page a request path renders, or None for static files."""
    if path in ("/", "/index.html"):
        return make_page(site.home_page, site)
    m = _HTML_PATH.match(path)
    if m:
        name = _sanitize_path(m.group(1))
        if name:
            return make_page(name, site)
    return None


def inject_reload_client(html: str) -> str:
    if "</body>" in html:
        return html.replace("</body>", f"{RELOAD_CLIENT}\n</body>", 1)
    return html + RELOAD_CLIENT


def render_page(page: Page, site: SiteConfig, tree: ConfigTree) -> Optional[str]:
    """Assemble a page for the browser; None when the fragment does not exist."""
    try:
        fragment = page.fragment_path.read_text(encoding="utf-8")
    except OSError:
        return None
    try:
        html = assemble_page(fragment, page.name, site, tree)
    except Exception:
        logger.exception("Assembly failed for %s; serving raw fragment", page.fragment_path)
        html = fragment
    return inject_reload_client(html)


def create_app(
    site: SiteConfig,
    tree: ConfigTree,
    broadcaster: Optional[ReloadBroadcaster] = None,
) -> Flask:
    """Build the Flask app serving one project."""
    app = Flask(__name__, static_folder=None)
    broadcaster = broadcaster or ReloadBroadcaster()

    @app.route(RELOAD_PATH, methods=["GET"])
    def reload_events():
        client = broadcaster.subscribe()

        def generate():
            try:
                yield ": connected\n\n"
                while True:
                    try:
                        message = client.get(timeout=KEEPALIVE_SECONDS)
                    except queue.Empty:
                        yield ": keepalive\n\n"
                        continue
                    yield f"data: {json.dumps(message)}\n\n"
            finally:
                broadcaster.unsubscribe(client)

        return Response(
            generate(),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache"},
        )

    @app.route("/", defaults={"path": ""}, methods=["GET", "HEAD"])
    @app.route("/<path:path>", methods=["GET", "HEAD"])
    def serve(path: str):
        page = map_request_path("/" + path, site)
        if page is not None:
            html = render_page(page, site, tree)
            if html is not None:
                return Response(html, status=200, mimetype="text/html")
            logger.debug("No fragment at %s; falling through to static", page.fragment_path)

        clean = _sanitize_path(path)
        if not clean:
            abort(404)
        if is_denied_static(clean):
            logger.debug("Refusing to serve %s", clean)
            abort(404)
        return send_from_directory(site.root, clean)

    return app


def run_dev_server(
    site: SiteConfig,
    tree: ConfigTree,
    *,
    host: Optional[str] = None,
    port: Optional[int] = None,
    watch: bool = True,
) -> None:
    """Serve the project until interrupted."""
    broadcaster = ReloadBroadcaster()
    app = create_app(site, tree, broadcaster)

    events: queue.Queue = queue.Queue()
    stop_event = threading.Event()
    watcher = None
    if watch:
        watcher = FileWatcher(
            site.root,
            site.reload_extensions,
            events,
            ignored_paths=(site.out_root, site.tmp_root),
        )
        watcher.start()
        threading.Thread(
            target=pump_changes, args=(events, broadcaster, stop_event), daemon=True
        ).start()

    host = host or site.dev_host
    port = port or site.dev_port
    logger.info("Dev server on http://%s:%d/", host, port)
    try:
        app.run(host=host, port=port, threaded=True, use_reloader=False)
    finally:
        stop_event.set()
        if watcher:
            watcher.stop()
