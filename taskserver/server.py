"""TCP server that routes GET requests to per-route worker pools."""

from __future__ import annotations

import argparse
import json
import logging
import socket
import threading
import time
from pathlib import Path
from typing import Mapping

from taskserver.handlers import handle_request
from taskserver.pool import Request, WorkerPool
from taskserver.protocol import Response, json_response, parse_request_line, parse_route, text_response

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080
_READ_SIZE = 1024
_POLL_INTERVAL = 0.2

POOL_SIZES: dict[str, int] = {
    "/help": 2,
    "/timestamp": 2,
    "/fibonacci": 3,
    "/reverse": 2,
    "/toupper": 2,
    "/hash": 2,
    "/random": 2,
    "/simulate": 3,
    "/sleep": 3,
    "/loadtest": 3,
    "/createfile": 3,
    "/deletefile": 3,
}


def _format_duration(seconds: int) -> str:
    """Format whole seconds as ``1h2m3s``, ``2m3s`` or ``3s``."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


def _send(conn: socket.socket, response: Response) -> None:
    try:
        conn.sendall(response.to_bytes())
    except OSError as exc:
        logger.warning("Error enviando respuesta: %s", exc)


class Server:
    """Accepts connections and hands each request to its route's pool."""

    def __init__(
        self,
        files_dir: str | Path = "files",
        pool_sizes: Mapping[str, int] | None = None,
    ) -> None:
        self.server_id = 1
        self.files_dir = Path(files_dir)
        sizes = POOL_SIZES if pool_sizes is None else pool_sizes
        self.pools: dict[str, WorkerPool] = {
            route: WorkerPool(size, self._process) for route, size in sizes.items()
        }
        self.started_at = time.monotonic()
        self.total_requests = 0
        self.address: tuple[str, int] | None = None
        self.ready = threading.Event()
        self._lock = threading.Lock()
        self._stop = threading.Event()

    def start(self) -> None:
        """Start every worker pool."""
        for pool in self.pools.values():
            pool.start()

    def _process(self, request: Request) -> None:
        response = handle_request(request.route, request.params, self.files_dir)
        _send(request.conn, response)

    def handle_connection(self, conn: socket.socket) -> None:
        """Read one request from ``conn``, answer it and close the connection."""
        with conn:
            try:
                data = conn.recv(_READ_SIZE)
            except OSError as exc:
                logger.warning("Error leyendo: %s", exc)
                return
            if not data:
                return

            method, path = parse_request_line(data.decode("utf-8", "replace"))
            if method != "GET":
                _send(conn, text_response("405 Method Not Allowed", "Solo se permite GET"))
                return

            route, params = parse_route(path)
            with self._lock:
                self.total_requests += 1
                request_id = self.total_requests + 1
            request = Request(request_id, route, params, conn)
            logger.info("Request ID: %d Ruta: %s", request.id, request.route)

            if route == "/status":
                _send(conn, self.status())
                return
            pool = self.pools.get(route)
            if pool is None:
                _send(conn, text_response("404 Not Found", "Ruta no encontrada"))
                return
            try:
                pool.submit(request)
            except RuntimeError:
                logger.warning("Pool for %s is not running", route)
                return
            request.done.wait()

    def status(self) -> Response:
        """Describe uptime, request count and every worker as JSON."""
        with self._lock:
            uptime = _format_duration(int(time.monotonic() - self.started_at))
            total_requests = self.total_requests

        total_workers = 0
        workers_by_route: dict[str, list[dict[str, object]] | None] = {}
        for route, pool in self.pools.items():
            entries = []
            for worker in pool.workers:
                current = worker.current
                entries.append(
                    {
                        "pid": worker.id,
                        "task": current.route if current is not None else "ninguna",
                        "state": worker.status,
                    }
                )
            total_workers += len(entries)
            workers_by_route[route] = entries or None

        data = {
            "uptime": uptime,
            "main_pid": self.server_id,
            "total_connections": total_requests,
            "total_workers": total_workers,
            "workers": workers_by_route,
        }
        body = json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)
        return json_response("200 OK", body)

    def serve_forever(self, host: str = "", port: int = DEFAULT_PORT) -> None:
        """Listen on ``host:port`` and serve connections until shut down."""
        self._stop.clear()
        with socket.create_server((host, port)) as listener:
            listener.settimeout(_POLL_INTERVAL)
            self.address = listener.getsockname()[:2]
            self.ready.set()
            logger.info("Servidor escuchando en %s:%d", *self.address)
            try:
                while not self._stop.is_set():
                    try:
                        conn, _ = listener.accept()
                    except TimeoutError:
                        continue
                    except OSError as exc:
                        if self._stop.is_set():
                            break
                        logger.warning("Error aceptando conexión: %s", exc)
                        continue
                    conn.settimeout(None)
                    threading.Thread(
                        target=self.handle_connection, args=(conn,), daemon=True
                    ).start()
            finally:
                self.ready.clear()

    def shutdown(self) -> None:
        """Stop accepting connections and stop every worker pool."""
        self._stop.set()
        for pool in self.pools.values():
            pool.shutdown()


def main(argv: list[str] | None = None) -> int:
    """Run the server from the command line."""
    parser = argparse.ArgumentParser(
        prog="taskserver", description="Serve task routes over HTTP/1.0."
    )
    parser.add_argument("--host", default="", help="address to bind (default: all)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    parser.add_argument("--files-dir", default="files", help="directory for created files")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    server = Server(files_dir=args.files_dir)
    server.start()
    try:
        server.serve_forever(args.host, args.port)
    except KeyboardInterrupt:
        pass
    except OSError as exc:
        logger.error("Error al iniciar servidor: %s", exc)
        return 1
    finally:
        server.shutdown()
    return 0