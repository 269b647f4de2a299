# flowmvc

A small, convention-driven toolkit for building WSGI web applications in an
MVC style. It provides:

- **A router** (`flowmvc.router`) with `:param` path segments, named routes,
  URL building, per-route middleware and a `resources` helper for RESTful
  controllers. A `Router` is itself a WSGI application.
- **Field specifications** (`flowmvc.fields`) parsed from short strings such
  as `price:decimal(10,2),default=0,nullable`.
- **Code generators** (`flowmvc.generator`) that write controllers, models,
  views and timestamped SQL migrations into a project directory.
- **A migration runner** (`flowmvc.migrations`) that applies and rolls back
  `*.up.sql` / `*.down.sql` files against a SQLite connection and records
  what has been applied in a `flow_migrations` table.
- **A SQLite adapter** (`flowmvc.orm`) that opens a connection from a DSN and
  closes it explicitly or as a context manager.

The package has no runtime dependencies beyond the standard library.

## Installation

```
pip install flowmvc
```

For running the test suite:

```
pip install "flowmvc[test]"
```

## Routing

Handlers are plain WSGI callables. Path parameters are read from the request
environ with `param` (or all at once with `params_from_environ`).

```python
from wsgiref.simple_server import make_server

from flowmvc.router import Router, param


def show_user(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain; charset=utf-8")])
    return [f"user {param(environ, 'id')}".encode()]


router = Router()
router.get_named("user_show", "/users/:id", show_user)

print(router.url("user_show", {"id": "42"}))   # /users/42

make_server("", 3000, router).serve_forever()
```

Routes are tried in registration order. Trailing slashes are ignored when
matching (`/users/` matches `/users`). A path that matches a route but with
the wrong method answers `405 Method Not Allowed`; an unknown path answers
`404 Not Found`. Either response can be replaced by assigning a WSGI app to
`router.method_not_allowed` or `router.not_found`.

Registration methods: `handle`, `get`, `post`, `put`, `patch`, `delete`;
named variants `handle_named`, `get_named`, …, `delete_named`; and
middleware variants `handle_with`, `get_with`, …, `delete_with`,
`handle_named_with`.

Errors:

- a pattern that does not begin with `/` raises `ValueError`;
- an empty or duplicate route name raises `ValueError`;
- `url` raises `KeyError` for an unknown route name or a missing parameter.
  Parameter values are percent-escaped.

### Per-route middleware

Middleware is a function that takes a WSGI app and returns a WSGI app. The
first middleware given is the outermost.

```python
def logged(app):
    def wrapper(environ, start_response):
        print(environ["REQUEST_METHOD"], environ["PATH_INFO"])
        return app(environ, start_response)
    return wrapper

router.get_with("/health", health_handler, logged)
```

### Resources

A controller provides the `ResourceController` actions `index`, `new`,
`create`, `show`, `edit`, `update` and `destroy`, each a WSGI callable.
Register it with:

```python
router.resources("users", UsersController())
```

This registers the conventional routes and names (an empty base raises
`ValueError`):

| Method | Path              | Name            |
|--------|-------------------|-----------------|
| GET    | `/users`          | `users_index`   |
| GET    | `/users/new`      | `users_new`     |
| POST   | `/users`          | `users_create`  |
| GET    | `/users/:id`      | `users_show`    |
| GET    | `/users/:id/edit` | `users_edit`    |
| PUT    | `/users/:id`      | `users_update`  |
| PATCH  | `/users/:id`      | `users_patch`   |
| DELETE | `/users/:id`      | `users_destroy` |

## Field specifications

A field is written `name`, `name:type` or `name:type,option,option=value`.
Types: `string`/`text`, `int`/`integer`/`int64`, `bool`/`boolean`,
`float`/`float64`, `datetime`/`time`/`timestamp`, `decimal(p,s)` /
`numeric(p,s)` and `varchar(n)` / `char(n)`; anything else is treated as
text. Options: `nullable`, `unique`, `index`, `default=<value>`,
`ref=<table>` (or `references=<table>`).

```python
from flowmvc.fields import parse_field_spec, table_name

spec = parse_field_spec("price:decimal(10,2),default=0,nullable")
print(spec.sql_type)   # DECIMAL(10,2)
print(spec.py_type)    # float | None
print(spec.default)    # 0

print(table_name("post"))   # posts
```

`parse_fields` parses a sequence of specifications, `title` title-cases a
name and `timestamp_now` gives the current UTC time as `YYYYMMDDHHMMSS`.

## Generators

```python
from flowmvc.generator import GenOptions, generate_scaffold

created = generate_scaffold(
    "myproject", "post", "title:string", "published_at:datetime",
    options=GenOptions(),
)
for path in created:
    print("created", path)
```

A scaffold writes:

- `app/controllers/<name>_controller.py` — a controller class with `index`
  and `show` actions answering JSON (`generate_controller`);
- `app/models/<name>.py` — a dataclass model with the given fields plus
  `id`, `created_at` and `updated_at`, and `save`/`delete` methods that take
  a DB-API connection (`generate_model`);
- `app/views/<name>/index.html`, `show.html`, `new.html`, `edit.html`;
- `db/migrate/<timestamp>_create_<table>.up.sql` and `.down.sql`, with a
  `CREATE INDEX` for every field marked `index`.

`GenOptions` has three switches: `force` overwrites existing files (without
it an existing controller, model or migration raises `FileExistsError`;
an existing view is left as it is), `skip_migrations` and `no_views`.
`generate_scaffold` pauses one second before returning so that consecutive
scaffolds get distinct migration timestamps.

## Migrations

```python
import sqlite3

from flowmvc.migrations import MigrationRunner

db = sqlite3.connect("app.db")
runner = MigrationRunner()
print(runner.pending_migrations("db/migrate", db))
runner.apply_all("db/migrate", db)
print(runner.applied_migrations(db))
runner.rollback_last("db/migrate", db)
```

Up migrations run in ascending file-name order, each inside a transaction.
Applying is idempotent: migrations already recorded in `flow_migrations` are
skipped. `apply_single` runs one file and `list_migrations` lists every up
and down file below a directory. A missing directory, a failing script or
nothing to roll back raises `MigrationError`.

## Database adapter

```python
from flowmvc.orm import connect

with connect("file:app.db?_foreign_keys=1") as adapter:
    adapter.ping()
    adapter.connection.execute("SELECT 1")
```

DSNs starting with `file:` are opened as SQLite URIs; a true
`_foreign_keys` parameter turns on foreign-key enforcement. `close` may be
called more than once; `ping` on a closed adapter raises `ConnectionError`.

## What this package does not do

- It has no command-line tool: generators and migrations are called from
  Python as shown above.
- It has no development server of its own and no file watcher that restarts
  a server on changes; serve a `Router` with any WSGI server, such as
  `wsgiref.simple_server`.
- The migration runner and the adapter work with SQLite only.