"""Generators for controllers, models, views and migrations of a project."""

from __future__ import annotations

import contextlib
import os
import time
from dataclasses import dataclass
from pathlib import Path
from string import Template

from flowmvc.fields import FieldSpec, parse_fields, table_name, timestamp_now, title


@dataclass(frozen=True)
class GenOptions:
    """Switches that control what the generators write."""

    force: bool = False
    skip_migrations: bool = False
    no_views: bool = False


_CONTROLLER_TEMPLATE = Template('''\
"""Controller generated by flowmvc generate; do not edit."""

from __future__ import annotations

import json

from flowmvc.router import param


def _json(start_response, status, payload):
    body = json.dumps(payload).encode("utf-8")
    start_response(
        status,
        [
            ("Content-Type", "application/json; charset=utf-8"),
            ("Content-Length", str(len(body))),
        ],
    )
    return [body]


class $controller:
    """A simple controller generated by flowmvc."""

    def __init__(self, app=None):
        self.app = app

    def index(self, environ, start_response):
        return _json(start_response, "200 OK", {"action": "index"})

    def show(self, environ, start_response):
        return _json(start_response, "200 OK", {"id": param(environ, "id")})
''')

_MODEL_TEMPLATE = Template('''\
"""Model generated by flowmvc generate; do not edit."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field, fields


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class $model:
    """A generated model stored in the ``$table`` table."""

    __tablename__ = "$table"

$fields    id: int = 0
    created_at: datetime.datetime = field(default_factory=_now)
    updated_at: datetime.datetime = field(default_factory=_now)

    def _columns(self) -> list[str]:
        return [f.name for f in fields(self) if f.name != "id"]

    def save(self, db) -> None:
        """Insert the row when ``id`` is 0, update it otherwise."""
        self.updated_at = _now()
        columns = self._columns()
        values = [getattr(self, name) for name in columns]
        if self.id == 0:
            placeholders = ", ".join("?" for _ in columns)
            cursor = db.execute(
                f"INSERT INTO {self.__tablename__} ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
            self.id = cursor.lastrowid
        else:
            assignments = ", ".join(f"{name} = ?" for name in columns)
            db.execute(
                f"UPDATE {self.__tablename__} SET {assignments} WHERE id = ?",
                [*values, self.id],
            )

    def delete(self, db) -> None:
        """Remove the row from the database."""
        db.execute(f"DELETE FROM {self.__tablename__} WHERE id = ?", (self.id,))
''')

_MIGRATION_UP_TEMPLATE = Template("""\
-- Migration: ${timestamp}_create_${table}.up.sql
-- Generated by flowmvc
CREATE TABLE IF NOT EXISTS $table (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
$columns
);
$extras
""")

_MIGRATION_DOWN_TEMPLATE = Template("""\
-- Migration: ${timestamp}_create_${table}.down.sql
-- Generated by flowmvc
$extras
DROP TABLE IF EXISTS $table;
""")

_VIEWS = {
    "index.html": """<h1>{{ title }} index</h1>
<ul>
{% for item in items %}  <li>{{ item }}</li>
{% endfor %}</ul>""",
    "show.html": """<h1>{{ title }} show</h1>
<p>ID: {{ id }}</p>""",
    "new.html": """<h1>New {{ title }}</h1>
<form method="post" action="">
    <!-- fields -->
    <button type="submit">Create</button>
</form>""",
    "edit.html": """<h1>Edit {{ title }}</h1>
<form method="post" action="">
    <!-- fields -->
    <button type="submit">Save</button>
</form>""",
}

_ZERO_VALUES = {
    "str": '""',
    "int": "0",
    "bool": "False",
    "float": "0.0",
    "datetime.datetime": "field(default_factory=_now)",
}


def _write_file(path: Path, content: str, overwrite: bool) -> None:
    if not overwrite and path.exists():
        raise FileExistsError(f"file exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _column_sql(spec: FieldSpec) -> str:
    line = f"    {spec.name} {spec.sql_type}"
    if not spec.nullable:
        line += " NOT NULL"
    if spec.default is not None:
        line += " DEFAULT " + spec.default
    if spec.unique:
        line += " UNIQUE"
    return line


def _model_field_line(spec: FieldSpec) -> str:
    default = "None" if spec.nullable else _ZERO_VALUES.get(spec.py_type, '""')
    return f"    {spec.name}: {spec.py_type} = {default}\n"


def generate_controller(
    project_root: str | os.PathLike, name: str, options: GenOptions | None = None
) -> Path:
    """Write ``app/controllers/<name>_controller.py`` and return its path."""
    options = options or GenOptions()
    dst = Path(project_root) / "app" / "controllers" / f"{name}_controller.py"
    content = _CONTROLLER_TEMPLATE.substitute(controller=title(name) + "Controller")
    _write_file(dst, content, options.force)
    return dst


def generate_model(
    project_root: str | os.PathLike, name: str, *args: str, options: GenOptions | None = None
) -> Path:
    """Write ``app/models/<name>.py`` with the given fields and return its path."""
    options = options or GenOptions()
    dst = Path(project_root) / "app" / "models" / f"{name.lower()}.py"
    specs = parse_fields(args)
    content = _MODEL_TEMPLATE.substitute(
        model=title(name),
        table=table_name(name),
        fields="".join(_model_field_line(spec) for spec in specs),
    )
    _write_file(dst, content, options.force)
    return dst


def _generate_views(project_root: Path, name: str, options: GenOptions) -> list[Path]:
    views_dir = project_root / "app" / "views" / name
    views_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for filename, content in _VIEWS.items():
        path = views_dir / filename
        # A view that cannot be written does not stop the scaffold.
        with contextlib.suppress(OSError):
            _write_file(path, content, options.force)
        written.append(path)
    return written


def _generate_migrations(
    project_root: Path, name: str, fields: tuple[str, ...], options: GenOptions
) -> list[Path]:
    mig_dir = project_root / "db" / "migrate"
    mig_dir.mkdir(parents=True, exist_ok=True)
    ts = timestamp_now()
    table = table_name(name)
    up_path = mig_dir / f"{ts}_create_{table}.up.sql"
    down_path = mig_dir / f"{ts}_create_{table}.down.sql"

    specs = parse_fields(fields)
    columns = "".join(",\n" + _column_sql(spec) for spec in specs)

    indexed = [spec for spec in specs if spec.index]
    extras_up = "".join(
        f"CREATE INDEX IF NOT EXISTS idx_{table}_{spec.name} ON {table}({spec.name});\n"
        for spec in indexed
    )
    extras_down = "".join(f"DROP INDEX IF EXISTS idx_{table}_{spec.name};\n" for spec in indexed)

    up = _MIGRATION_UP_TEMPLATE.substitute(
        timestamp=ts, table=table, columns=columns, extras=extras_up
    )
    down = _MIGRATION_DOWN_TEMPLATE.substitute(timestamp=ts, table=table, extras=extras_down)
    _write_file(up_path, up, options.force)
    _write_file(down_path, down, options.force)
    return [up_path, down_path]


def generate_scaffold(
    project_root: str | os.PathLike, name: str, *args: str, options: GenOptions | None = None
) -> list[Path]:
    """Generate controller, model, views and migrations; return the paths written."""
    options = options or GenOptions()
    root = Path(project_root)
    created = [
        generate_controller(root, name, options),
        generate_model(root, name, *args, options=options),
    ]
    if not options.no_views:
        created.extend(_generate_views(root, name, options))
    if not options.skip_migrations:
        created.extend(_generate_migrations(root, name, args, options))

    # Keeps timestamps of consecutive scaffolds distinct.
    time.sleep(1)
    return created