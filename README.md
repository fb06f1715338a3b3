# taskserver

A small HTTP/1.0 server that answers `GET` requests by running simple tasks.
Each route has its own pool of worker threads. The `/status` route reports
the uptime, the number of connections served and what every worker is doing.

## Installation

```
pip install .
```

## Running

```
taskserver
```

Options:

- `--host` sets the address to bind. The default is all interfaces.
- `--port` sets the port to listen on. The default is 8080.
- `--files-dir` sets the directory that `/createfile` and `/deletefile` work
  in. The default is `files`, relative to the current working directory. The
  directory must already exist.

The server runs until it is interrupted with Ctrl+C.

## Routes

| Route | Parameters | Result |
|-------|------------|--------|
| `/help` | none | the list of routes |
| `/timestamp` | none | the current local time as RFC 3339 JSON |
| `/fibonacci` | `num` | the `num`-th Fibonacci number |
| `/createfile` | `name`, `content`, `repeat` | writes `content` on `repeat` lines |
| `/deletefile` | `name` | removes the file |
| `/reverse` | `text` | the text reversed |
| `/toupper` | `text` | the text in upper case |
| `/random` | `count`, `min`, `max` | `count` random integers in `[min, max]`; `min` must be less than `max` |
| `/hash` | `text` | the SHA-256 digest of the text in hex |
| `/simulate` | `seconds`, `task` | waits, then reports that the task is done and when it finished |
| `/sleep` | `seconds` | waits for the given number of seconds |
| `/loadtest` | `tasks`, `sleep` | runs `tasks` concurrent waits of `sleep` seconds and reports the total time |
| `/status` | none | server and worker state as JSON |

Only `GET` is accepted. Any other method gets `405 Method Not Allowed`.
Unknown routes get `404 Not Found`. Missing or invalid parameters get
`400 Bad Request`. If a file cannot be created or removed, the response is
`500 Internal Server Error`.

Example:

```
curl 'http://localhost:8080/fibonacci?num=10'
55
```

## Using it from Python

```python
from taskserver.server import Server

server = Server(files_dir="files")
server.start()                       # start the worker pools
server.serve_forever("127.0.0.1", 8080)
```

`serve_forever` blocks the thread that calls it. To stop the server, call
`Server.shutdown()` from another thread. `Server.status()` returns the same
JSON response that the `/status` route sends.

You can also call the handlers directly:

```python
from taskserver.handlers import handle_request

response = handle_request("/reverse", {"text": "abc"}, "files")
print(response.status, response.body)   # 200 OK b'cba\n'
```

The package has three modules:

- `taskserver.protocol` holds the request-line and route parsing and the
  `Response` type.
- `taskserver.handlers` holds one function per route and `handle_request`.
- `taskserver.pool` holds `WorkerPool`, `Worker` and `Request`.

## Limitations

- Each connection carries exactly one request. The server reads at most the
  first 1024 bytes of it, answers, and then closes the connection.
- Query values are used exactly as they arrive and are not URL-decoded.
  Any pair that does not contain exactly one `=` is ignored.
- There is no TLS, no keep-alive, and no support for request bodies.

## Tests

```
pip install .[test]
pytest
```