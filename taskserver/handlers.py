"""Route handlers and the dispatcher that turns a route into a response."""

from __future__ import annotations

import hashlib
import logging
import random
import re
import threading
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Mapping

from taskserver.protocol import Response, text_response

logger = logging.getLogger(__name__)

_FILES_LOCK = threading.Lock()

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_HELP = (
    "\n"
    "    Rutas disponibles:\n"
    "    - /help\n"
    "    - /fibonacci?num=N\n"
    "    - /createfile?name=filename&content=text&repeat=x\n"
    "    - /deletefile?name=filename\n"
    "    - /status\n"
    "    - /reverse?text=abcdef\n"
    "    - /toupper?text=abcd\n"
    "    - /random?count=n&min=a&max=b\n"
    "    - /timestamp\n"
    "    - /hash?text=someinput\n"
    "    - /simulate?seconds=s&task=name\n"
    "    - /sleep?seconds=s\n"
    "    - /loadtest?tasks=n&sleep=x\n"
    "    "
)

_IO_ERRORS = {
    "/createfile": "No se pudo crear el archivo\n",
    "/deletefile": "Error al eliminar el archivo (puede que no exista)\n",
}


class BadRequest(Exception):
    """The request's parameters are missing or invalid."""


def _to_int(text: str | None) -> int:
    """Parse a signed decimal 64-bit integer strictly; raise ValueError otherwise."""
    if text is None or not _INT_PATTERN.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    value = int(text)
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def _int_or_none(text: str | None) -> int | None:
    try:
        return _to_int(text)
    except ValueError:
        return None


def _rfc1123(moment: datetime) -> str:
    return (
        f"{_DAYS[moment.weekday()]}, {moment.day:02d} {_MONTHS[moment.month - 1]} "
        f"{moment.year} {moment:%H:%M:%S} {moment.tzname()}"
    )


def _now() -> datetime:
    return datetime.now().astimezone()


def fib(n: int) -> int:
    """Return the n-th Fibonacci number, with fib(0) == 0 and fib(1) == 1."""
    if n <= 1:
        return n
    previous, current = 0, 1
    for _ in range(n - 1):
        previous, current = current, previous + current
    return current


def help_text() -> str:
    """Return the list of available routes."""
    return _HELP


def timestamp() -> str:
    """Return the current local time as a small RFC 3339 JSON document."""
    now = _now().replace(microsecond=0)
    stamp = now.isoformat()
    if now.utcoffset() == timedelta(0):
        stamp = stamp[:-6] + "Z"
    return '{"timestamp":"' + stamp + '"}\n'


def fibonacci(params: Mapping[str, str]) -> str:
    """Handle ``/fibonacci?num=N``."""
    if "num" not in params:
        raise BadRequest("Falta el parámetro 'num'")
    n = _int_or_none(params["num"])
    if n is None or n < 0:
        raise BadRequest("El parámetro 'num' debe ser un entero positivo")
    return f"{fib(n)}\n"


def create_file(params: Mapping[str, str], files_dir: str | Path = "files") -> str:
    """Handle ``/createfile``: write ``content`` ``repeat`` times, one per line."""
    if not all(key in params for key in ("name", "content", "repeat")):
        raise BadRequest("Faltan parámetros: name, content, repeat")
    repeat = _int_or_none(params["repeat"])
    if repeat is None or repeat <= 0:
        raise BadRequest("'repeat' debe ser un entero positivo")
    data = ((params["content"] + "\n") * repeat).encode("utf-8")
    target = Path(files_dir) / params["name"].lstrip("/")
    with _FILES_LOCK:
        target.write_bytes(data)
    return "Archivo creado exitosamente\n"


def delete_file(params: Mapping[str, str], files_dir: str | Path = "files") -> str:
    """Handle ``/deletefile``: remove the named file (or empty directory)."""
    if "name" not in params:
        raise BadRequest("Falta el parámetro 'name'")
    target = Path(files_dir) / params["name"].lstrip("/")
    with _FILES_LOCK:
        try:
            target.unlink()
        except IsADirectoryError:
            target.rmdir()
    return "Archivo eliminado exitosamente\n"


def _required_text(params: Mapping[str, str]) -> str:
    text = params.get("text")
    if text is None or not text.strip():
        raise BadRequest("Falta el parámetro 'text'")
    return text


def reverse(params: Mapping[str, str]) -> str:
    """Handle ``/reverse?text=...`` by reversing the characters."""
    return _required_text(params)[::-1] + "\n"


def to_upper(params: Mapping[str, str]) -> str:
    """Handle ``/toupper?text=...``."""
    return _required_text(params).upper() + "\n"


def random_numbers(min_value: str, max_value: str, count: str) -> str:
    """Handle ``/random``: a table of ``count`` integers in ``[min, max]``."""
    amount = _int_or_none(count)
    if amount is None:
        raise BadRequest("Cantidad debe ser un numero valido")
    low = _int_or_none(min_value)
    if low is None:
        raise BadRequest("El numero minimo debe ser un numero valido")
    high = _int_or_none(max_value)
    if high is None:
        raise BadRequest("El numero maximo debe ser un numero valido")
    if amount <= 0:
        raise BadRequest("La cantidad debe ser un numero entero positivo")
    if low >= high:
        raise BadRequest("El minimo debe ser menor al maximo")

    numbers = [random.randint(low, high) for _ in range(amount)]
    lines = [
        f"Se generaron {amount} numeros aleatorios entre {low} y {high}:\n\n",
        "Indice\tNumero\n",
        "------\t------\n",
    ]
    lines.extend(f"{index}\t{number}\n" for index, number in enumerate(numbers, 1))
    return "".join(lines)


def hash_text(text: str | None) -> str:
    """Handle ``/hash?text=...`` with a SHA-256 hex digest."""
    if text is None or not text.strip():
        raise BadRequest("Texto no puede ser vacio")
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return "El hash SHA-256 del texto es:\n\n" + digest + "\n"


def simulate(seconds: str, task: str) -> str:
    """Handle ``/simulate``: wait, then report the task and finish time."""
    duration = _int_or_none(seconds)
    if duration is None or duration <= 0:
        raise BadRequest("Seconds debe ser un numero valido, entero y positivo")
    time.sleep(duration)
    return (
        "Simulacion completada\n\n"
        f"Nombre de la tarea: {task}\n"
        f"Duracion: {seconds} segundos\n"
        f"Hora de finalizacion: {_rfc1123(_now())}\n"
    )


def sleep(seconds: str) -> str:
    """Handle ``/sleep?seconds=s``."""
    logger.info("Sleep handler called")
    duration = _int_or_none(seconds)
    if duration is None or duration <= 0:
        raise BadRequest("Seconds debe ser un numero valido, entero y postivo")
    time.sleep(duration)
    return f"Sleep realizado durante {seconds} segundos\n"


def loadtest(tasks: str, sleep: str) -> str:
    """Handle ``/loadtest``: run ``tasks`` concurrent sleeps and time them."""
    task_count = _int_or_none(tasks)
    if task_count is None or task_count < 1:
        raise BadRequest("El parametro 'tasks' debe ser un número valido mayor que 0")
    delay = _int_or_none(sleep)
    if delay is None or delay < 0:
        raise BadRequest("El parametro 'sleep' debe ser un numero valido")

    def work(number: int) -> None:
        logger.info("Comenzando tarea %d", number)
        time.sleep(delay)
        logger.info("Tarea %d finalizada", number)

    started_at = _now()
    clock = time.perf_counter()
    threads = [
        threading.Thread(target=work, args=(number,), daemon=True)
        for number in range(1, task_count + 1)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    elapsed = time.perf_counter() - clock
    finished_at = _now()

    return (
        f"Se ejecutaron {task_count} tareas concurrentes con {delay} segundos "
        "de espera cada una.\n"
        f"Inicio: {_rfc1123(started_at)}\n"
        f"Fin: {_rfc1123(finished_at)}\n"
        f"Duracion total: {elapsed:.2f} segundos"
    )


def handle_request(
    route: str, params: Mapping[str, str], files_dir: str | Path = "files"
) -> Response:
    """Run the handler for ``route`` and return the response it produces."""

    def get(key: str) -> str:
        return params.get(key, "")

    routes: dict[str, Callable[[], str]] = {
        "/help": help_text,
        "/timestamp": timestamp,
        "/fibonacci": lambda: fibonacci(params),
        "/createfile": lambda: create_file(params, files_dir),
        "/deletefile": lambda: delete_file(params, files_dir),
        "/reverse": lambda: reverse(params),
        "/toupper": lambda: to_upper(params),
        "/random": lambda: random_numbers(get("min"), get("max"), get("count")),
        "/hash": lambda: hash_text(get("text")),
        "/simulate": lambda: simulate(get("seconds"), get("task")),
        "/sleep": lambda: sleep(get("seconds")),
        "/loadtest": lambda: loadtest(get("tasks"), get("sleep")),
    }

    handler = routes.get(route)
    if handler is None:
        return text_response("404 Not Found", "Ruta no encontrada")
    try:
        return text_response("200 OK", handler())
    except BadRequest as exc:
        return text_response("400 Bad Request", f"{exc}\n")
    except OSError:
        if route not in _IO_ERRORS:
            raise
        logger.exception("File operation failed for %s", route)
        return text_response("500 Internal Server Error", _IO_ERRORS[route])