"""Tutorial — every routing and middleware feature in one app.

Demonstrates:
- Path parameters (``/user/:name``) and query defaults (``/users``)
- URL-encoded forms, query + form together, bracketed-key maps
- Redirects and internal re-dispatch (``/goindex`` serves ``/``)
- Route groups sharing a handler, plus a group with its own middleware
- Single and multiple file uploads
- Template rendering with kida
- Global middleware: request id, access log, recovery

Run:
    cd examples/tutorial && python app.py
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from wren import App, AppConfig, Context, Key, Template
from wren.http.response import Response
from wren.middleware import Next, RequestID

TEMPLATES_DIR = Path(__file__).parent / "templates"

log = logging.getLogger("wren.tutorial")

GREETING: Key[str] = Key("geektutu")

app = App.default(AppConfig(template_dir=TEMPLATES_DIR))
app.use(RequestID())


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


async def latency(ctx: Context, next: Next) -> Response:
    """Store a value for the handler, then log how long the request took."""
    start = time.perf_counter()
    ctx.set(GREETING, "1111")
    response = await next()
    log.info("%s took %.3fms", ctx.path, (time.perf_counter() - start) * 1000)
    return response


# ---------------------------------------------------------------------------
# Basics
# ---------------------------------------------------------------------------


@app.get("/")
def index(ctx: Context) -> None:
    ctx.string(200, "Hello, World")


@app.get("/user/:name")
def user(ctx: Context) -> None:
    ctx.string(200, "Hello, %s", ctx.param("name"))


# GET /users?name=xxx&role=xxx, role is optional
@app.get("/users")
def users(ctx: Context) -> None:
    name = ctx.query("name")
    role = ctx.query("role", "engineer")
    ctx.string(200, "%s is a %s", name, role)


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


@app.post("/form")
async def form(ctx: Context) -> None:
    username = await ctx.post_form("username")
    password = await ctx.post_form("password", "000000")
    ctx.json(200, {"username": username, "password": password})


@app.post("/posts")
async def posts(ctx: Context) -> None:
    """Query string and form body in one request."""
    ctx.json(
        200,
        {
            "id": ctx.query("id"),
            "page": ctx.query("page", "0"),
            "username": await ctx.post_form("username"),
            "password": await ctx.post_form("password", "000000"),
        },
    )


@app.post("/post")
async def post(ctx: Context) -> None:
    """``?ids[a]=1&ids[b]=2`` and ``names[x]=...`` decoded into maps."""
    ctx.json(
        200,
        {
            "ids": ctx.query_map("ids"),
            "names": await ctx.post_form_map("names"),
        },
    )


# ---------------------------------------------------------------------------
# Redirects
# ---------------------------------------------------------------------------


@app.get("/redirect")
def redirect(ctx: Context) -> None:
    ctx.redirect(301, "/index")


@app.get("/goindex")
async def goindex(ctx: Context) -> None:
    await ctx.reroute("/")


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------


def default_handler(ctx: Context) -> dict[str, str]:
    return {"path": ctx.full_path}


v1 = app.group("/v1")
v1.get("/posts", default_handler)
v1.get("/series", default_handler)

v2 = app.group("/v2")
v2.get("/posts", default_handler)
v2.get("/series", default_handler)

# Not part of the original tour: a group with its own middleware
timed = app.group("/timed", latency)


@timed.get("/greeting")
def greeting(ctx: Context) -> dict[str, str]:
    return {"geektutu": ctx.get(GREETING)}


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


@app.post("/upload1")
async def upload1(ctx: Context) -> None:
    file = await ctx.form_file("file")
    ctx.string(200, "%s uploaded!", file.filename)


@app.post("/upload2")
async def upload2(ctx: Context) -> None:
    form = await ctx.multipart_form()
    files = form.files.get("upload[]", [])
    for file in files:
        log.info("received %s (%d bytes)", file.filename, file.size)
    ctx.string(200, "%d files uploaded!", len(files))


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Student:
    name: str
    age: int


STUDENTS = (Student("Karen", 25), Student("Mickey", 18))


@app.get("/arr")
def arr(ctx: Context) -> None:
    ctx.html(200, "arr.tmpl", {"title": "Guest", "students": STUDENTS})


@app.get("/arr2")
def arr2(ctx: Context) -> Template:
    """Same page, returned as a value instead of written to the context."""
    return Template("arr.tmpl", title="Guest", students=STUDENTS)


if __name__ == "__main__":
    app.run()
