# reactorhttp

A small multi-threaded TCP server built on a reactor design, with HTTP
request routing and an echo server on top. It runs one event loop per
thread, hands connections to worker loops in turn, and uses a timing wheel
to release idle connections.

## Install

```
pip install .
```

Install with the test extra to run the test suite:

```
pip install ".[test]"
pytest
```

## Echo server

The echo server sends back what a client writes and then closes the
connection:

```
reactorhttp-echo
reactorhttp-echo --port 9000 --threads 4
```

It listens on port 8100 with two worker threads unless `--port` and
`--threads` say otherwise. From Python, `reactorhttp.echo.EchoServer(port,
thread_count)` offers `start()`, `stop()` and a `port` property.

## TCP layer

`reactorhttp.tcpserver.TcpServer(port, thread_count)` listens through an
`Acceptor` on its base loop and gives each accepted connection to the next
worker loop (or to the base loop when `thread_count` is 0). Set the
callbacks `on_connect`, `on_message`, `on_any` and `on_close` on the server
before calling `start()`; each new `reactorhttp.connection.Connection` gets
them. `on_message` receives the connection and its input `Buffer`.
`enable_inactive_release(seconds)` releases connections that see no event
for that many seconds. `start()` serves in the calling thread; `stop()`
ends the base loop and every worker loop.

A `Connection` offers `send(data)`, `shutdown()` (deliver pending input,
flush pending output, then close), `release()`, `add_timer_task(delay,
task)` and `cancel_timer_task(task_id)`, plus a free `context` attribute.

`reactorhttp.eventloop` holds the reactor itself: `EventLoop`
(`run_in_loop`, `queue_in_loop`, `start`, `stop`, and timers through
`add_timer`, `refresh_timer`, `cancel_timer`, `has_timer`), `Channel`,
`LoopThread` and `LoopThreadPool`. A running loop advances its timing wheel
once a second.

## HTTP routing

`reactorhttp.httpserver.HttpServer(name, base_dir)` decides how a request is
answered. A GET or HEAD request whose path stays inside `base_dir` and names
a regular file there (`/` means `/index.html`) is served as a static file,
with its MIME type taken from the extension. Every other request goes to the
handlers registered for its method; each pattern must match the whole path:

```python
from reactorhttp.httpmessage import HttpRequest, HttpResponse
from reactorhttp.httpserver import HttpServer

server = HttpServer("demo", "WWWROOT")

def hello(request, response):
    response.set_body("hello\n", "text/plain")

server.get("/hello", hello)

request = HttpRequest(method="GET", path="/hello")
response = HttpResponse()
server.route(request, response)
raw = server.build_response(request, response)
```

A path with no matching handler gets status 404; a method other than GET,
POST, PUT, DELETE or HEAD gets 405. `error_page(response)` fills in an HTML
page naming the status. `build_response` adds Content-Length, Content-Type,
Connection and Location headers where needed and returns the bytes to send.

`build_demo_server(base_dir)` returns a server with sample routes: GET
`/GET`, POST `/POST` and DELETE `/DELETE` echo the request back as text
(see `request_text(request)`), PUT `/1234.txt` stores the body under
`base_dir`, and HEAD `/Head` only logs.

## Utilities

`reactorhttp.utils` provides `encode_url`, `decode_url`, `status_text`,
`mime_type`, `valid_path`, `split`, `read_file`, `write_file`,
`is_regular` and `is_directory`.

`reactorhttp.buffer.Buffer` is a byte buffer whose capacity doubles on
demand up to a limit, raising `BufferOverflowError` beyond it.
`reactorhttp.timewheel.TimeWheel` is a timing wheel advanced one slot per
`tick()`; a task runs once no slot holds it any more, so `refresh()` pushes
it back.

## What it does not do

The HTTP routing is not wired to the TCP layer: the package does not parse
HTTP requests from a socket, so there is no runnable HTTP server and no
command for one. You build `HttpRequest` objects yourself, pass them to
`HttpServer.route`, and send the bytes from `build_response` over whatever
transport you choose. The only command is the echo server.