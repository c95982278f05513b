import http.server
import logging
import queue
import threading
from collections.abc import Callable
from http import HTTPStatus
from typing import TYPE_CHECKING, Optional
from urllib.parse import urlsplit

from jinja2 import Template

from haul.events import BuildEvent, BuildFinished, BuildStarting

if TYPE_CHECKING:
    from haul.compiler import Compiler, Stats
    from haul.config import ResolvedConfig

logger = logging.getLogger(__name__)


STATUS_PATH = "/status"
LIVE_PATH = "/__haul_live"
PACKAGER_STATUS = "packager-status:running"
BUILD_WAIT_TIMEOUT = 60.0
KEEPALIVE_INTERVAL = 15.0

INDEX_HTML = Template("""<!doctype html>
<html>
<head><title>haul - {{ config.platform }}</title></head>
<body>
<h1>haul dev server</h1>
<p>Platform: {{ config.platform }} ({{ config.mode }})</p>
<p>Bundle: <a href="/{{ config.filename }}">{{ config.bundle_url }}</a></p>
<p>Status: {{ status }}</p>
{% if stats %}
<ul>
{% for asset in stats.assets %}
<li><a href="/{{ asset }}">{{ asset }}</a></li>
{% endfor %}
</ul>
{% endif %}
</body>
</html>
""")


class BuildState:
    """Whether the output directory holds a finished build, plus live subscribers."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._valid = False
        self._closed = False
        self._subscribers: list[queue.Queue] = []
        self.stats: Optional["Stats"] = None

    @property
    def status(self) -> str:
        if not self._valid:
            return "compiling"
        assert self.stats is not None
        return "failed" if self.stats.has_errors() else "done"

    def _broadcast(self, item: Optional[tuple[str, str]]) -> None:
        for subscriber in list(self._subscribers):
            subscriber.put(item)

    def invalidate(self) -> None:
        with self._cond:
            self._valid = False
            self._broadcast(("compiling", ""))

    def finish(self, stats: "Stats") -> None:
        with self._cond:
            self.stats = stats
            self._valid = True
            self._cond.notify_all()
            self._broadcast((self.status, stats.hash))

    def wait_valid(self, timeout: float) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._valid or self._closed, timeout) and self._valid

    def subscribe(self) -> queue.Queue:
        subscriber: queue.Queue = queue.Queue()
        with self._cond:
            self._subscribers.append(subscriber)
        return subscriber

    def unsubscribe(self, subscriber: queue.Queue) -> None:
        with self._cond:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()
            # None tells live streams to end
            self._broadcast(None)


def _create_handler(config: "ResolvedConfig", state: BuildState) -> type[http.server.SimpleHTTPRequestHandler]:
    """Create a request handler serving the bundler's output directory."""
    class Handler(http.server.SimpleHTTPRequestHandler):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, directory=str(config.output_path), **kwargs)

        def _send_text(self, body: str, content_type: str) -> None:
            data = body.encode()
            self.send_response(HTTPStatus.OK)
            self.send_header("Content-Type", f"{content_type}; charset=utf-8")
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        def _stream_events(self) -> None:
            self.send_response(HTTPStatus.OK)
            self.send_header("Content-Type", "text/event-stream")
            self.send_header("Cache-Control", "no-cache")
            self.end_headers()

            events = state.subscribe()
            try:
                data = "" if state.status == "compiling" else state.stats.hash
                self.wfile.write(f"event: {state.status}\ndata: {data}\n\n".encode())
                self.wfile.flush()
                while True:
                    try:
                        item = events.get(timeout=KEEPALIVE_INTERVAL)
                    except queue.Empty:
                        payload = ": keepalive\n\n"
                    else:
                        if item is None:
                            break
                        name, data = item
                        payload = f"event: {name}\ndata: {data}\n\n"
                    self.wfile.write(payload.encode())
                    self.wfile.flush()
            except (BrokenPipeError, ConnectionResetError):
                logger.debug("Live client %s disconnected", self.address_string())
            finally:
                state.unsubscribe(events)

        def do_GET(self) -> None:
            path = urlsplit(self.path).path
            if path == "/":
                self._send_text(INDEX_HTML.render(config=config, status=state.status, stats=state.stats), "text/html")
            elif path == STATUS_PATH:
                self._send_text(PACKAGER_STATUS, "text/plain")
            elif path == LIVE_PATH:
                self._stream_events()
            elif not state.wait_valid(BUILD_WAIT_TIMEOUT):
                self.send_error(HTTPStatus.SERVICE_UNAVAILABLE, "Build in progress")
            else:
                super().do_GET()

        def log_message(self, format, *args):
            logger.debug("%s - %s", self.address_string(), format % args)

    return Handler


class DevServer:
    """Serves the compiler's output and forwards its build notifications."""

    def __init__(
        self,
        compiler: "Compiler",
        on_invalid: Callable[[bool], None],
        on_compile: Callable[["Stats"], None],
    ) -> None:
        self.compiler = compiler
        self.state = BuildState()
        self._on_invalid = on_invalid
        self._on_compile = on_compile
        self._stop_event = threading.Event()
        self._httpd: Optional[http.server.ThreadingHTTPServer] = None
        self._watcher: Optional[threading.Thread] = None

    @property
    def server_address(self) -> tuple[str, int]:
        assert self._httpd is not None, "Server is not listening"
        host, port = self._httpd.server_address[:2]
        return str(host), int(port)

    def handle_event(self, event: BuildEvent) -> None:
        if isinstance(event, BuildStarting):
            self.state.invalidate()
            self._on_invalid(event.had_issues)
        elif isinstance(event, BuildFinished):
            self.state.finish(event.stats)
            self._on_compile(event.stats)
        else:
            raise TypeError(f"Unexpected build event {event!r}")

    def listen(self, port: int, host: str, callback: Optional[Callable[[], None]] = None) -> None:
        """Bind the HTTP listener and start watching; doesn't serve requests yet."""
        handler = _create_handler(self.compiler.config, self.state)
        self._httpd = http.server.ThreadingHTTPServer((host, port), handler)

        self._watcher = threading.Thread(
            target=self.compiler.watch,
            args=(self.handle_event, self._stop_event),
            name="haul-watcher",
            daemon=True,
        )
        self._watcher.start()

        if callback is not None:
            callback()

    def serve_forever(self) -> None:
        assert self._httpd is not None, "listen() must be called before serve_forever()"
        self._httpd.serve_forever()

    def shutdown(self) -> None:
        """Stop a serve_forever() loop running in another thread."""
        assert self._httpd is not None, "Server is not listening"
        self._httpd.shutdown()

    def close(self) -> None:
        self._stop_event.set()
        self.state.close()
        if self._httpd is not None:
            self._httpd.server_close()
        if self._watcher is not None:
            self._watcher.join(timeout=5)


def create_server(
    compiler: "Compiler",
    on_invalid: Callable[[bool], None],
    on_compile: Callable[["Stats"], None],
) -> DevServer:
    return DevServer(compiler, on_invalid, on_compile)
