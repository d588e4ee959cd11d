"""Development server for inkpress.

Serves the built site with live reload for local authoring:
- Serves the output directory over HTTP on the configured dev port.
- Rejects directory listings and missing paths with a 404 (serving 404.html when present).
- When watching, injects a reload script into HTML responses, watches the
  input directory, rebuilds after a short debounce window and broadcasts a
  ``RELOAD`` message to every connected websocket client.

Key classes:
- DevServer: Main class for running the development server.
- _ReloadHandler: HTTP request handler that injects reload script and enforces 404s.
- _ChangeHandler: File system event handler for triggering rebuilds.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import Worker

logger = logging.getLogger(__name__)

RELOAD_MESSAGE = "RELOAD"


class _ReloadHandler(SimpleHTTPRequestHandler):
    """HTTP request handler that injects live reload script into HTML pages.

    Attributes:
        reload_script: JavaScript snippet connecting to the reload websocket,
            or an empty string when live reload is off.
    """

    reload_script_template = """
    <script type="module">
      const socket = new WebSocket('ws://' + location.hostname + ':{ws_port}');
      socket.onmessage = (event) => {{
        if (event.data === '{message}') window.location.reload();
      }};
    </script>
    """
    reload_script = ""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def log_message(self, format, *args):  # noqa: A002 - signature from base class
        logger.debug("%s - %s", self.address_string(), format % args)

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        # Never expose directory listings; treat as missing content.
        return self._serve_404()

    def _inject(self, content: str) -> str:
        if not self.reload_script:
            return content
        if "</body>" in content:
            return content.replace("</body>", f"{self.reload_script}</body>")
        return content + self.reload_script

    def _send_html(self, status: int, content: str) -> None:
        encoded = self._inject(content).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def _serve_404(self):
        """Serve 404.html (when present) with a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            self._send_html(404, error_page.read_text(encoding="utf-8"))
            return None
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir():
            index_path = path_obj / "index.html"
            if not index_path.exists():
                return self._serve_404()
            path_obj = index_path
        elif not path_obj.exists():
            return self._serve_404()

        if path_obj.suffix == ".html":
            self._send_html(200, path_obj.read_text(encoding="utf-8"))
            return None
        return super().send_head()


class DevServer:
    """Development server with live reload functionality.

    Attributes:
        worker: Worker used for every (re)build.
        output_dir: Directory where built site is served.
        http_port: Port for HTTP server.
        ws_port: Port for WebSocket connections.
        _observer: File system observer for changes.
        _ws_clients: Set of connected WebSocket clients.
        _loop: Event loop for WebSocket handling.
    """

    def __init__(
        self,
        worker: Worker,
        http_port: int | None = None,
        ws_port: int | None = None,
        debounce_seconds: float = 1.0,
    ):
        """Initialize the development server.

        Args:
            worker: Worker building the site.
            http_port: Optional override for the HTTP port.
            ws_port: Optional override for the websocket port.
            debounce_seconds: Quiet period before a batch of changes rebuilds.
        """
        self.worker = worker
        self.output_dir = worker.output_dir
        dev = worker.load_settings().dev
        self.http_port = int(http_port or dev.port)
        self.ws_port = int(ws_port or dev.ws_port)
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._debounce_seconds = debounce_seconds
        self._timer: threading.Timer | None = None
        self._timer_lock = threading.Lock()
        self._build_lock = threading.Lock()

    def start(self, watch: bool = False) -> None:  # pragma: no cover - integration path
        threading.Thread(target=self._start_http, args=(watch,), daemon=True).start()
        if watch:
            threading.Thread(target=self._start_ws, daemon=True).start()
            self._start_watcher()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self._observer:
            self._observer.stop()
            self._observer.join()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _start_http(self, live_reload: bool) -> None:  # pragma: no cover - integration path
        script = ""
        if live_reload:
            script = _ReloadHandler.reload_script_template.format(
                ws_port=self.ws_port, message=RELOAD_MESSAGE
            )
        handler_cls = type(
            "_ReloadHandlerWithPort",
            (_ReloadHandler,),
            {"reload_script": script},
        )
        handler = functools.partial(handler_cls, directory=str(self.output_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        logger.info("Dev server started on -> http://localhost:%d", self.http_port)
        httpd.serve_forever()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            logger.error("WebSocket server failed to start (port %d): %s", self.ws_port, exc)
            return

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            await asyncio.Future()  # Run forever

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self) -> None:
        if not self._loop.is_running():
            return
        asyncio.run_coroutine_threadsafe(self._async_broadcast(RELOAD_MESSAGE), self._loop)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)

    def _start_watcher(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        observer.schedule(handler, str(self.worker.input_dir), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching for changes in -> %s", self.worker.input_dir)

    def schedule_rebuild(self) -> None:
        """Rebuild once no change has been seen for the debounce window."""
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce_seconds, self.rebuild)
            self._timer.daemon = True
            self._timer.start()

    def rebuild(self) -> bool:
        """Rebuild the site and notify browsers on success.

        Returns:
            True if the build succeeded.
        """
        with self._build_lock:
            logger.info("Changes detected, rebuilding...")
            try:
                result = self.worker.build()
            except Exception as exc:
                logger.error("Build failed -> %s", exc)
                return False
            if result.failures:
                logger.warning("%d page(s) failed to render", len(result.failures))
            logger.info("Build successful, reloading...")
            self._broadcast_reload()
            return True


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(event.src_path).resolve()
        # Skip changes in the output directory
        try:
            path.relative_to(self.server.output_dir.resolve())
            return
        except ValueError:
            pass
        self.server.schedule_rebuild()
