"""Field specifications used by the code generators.

A field is written as ``name``, ``name:type`` or ``name:type,opt,opt=val``,
for example ``price:decimal(10),default=0,nullable,index``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

_WORD = re.compile(r"\w+(?:['.:]\w+)*")
_INTEGER = re.compile(r"[+-]?[0-9]+")

_SIMPLE_TYPES: dict[str, tuple[str, str]] = {
    "string": ("str", "TEXT"),
    "text": ("str", "TEXT"),
    "int": ("int", "INTEGER"),
    "integer": ("int", "INTEGER"),
    "int64": ("int", "INTEGER"),
    "bool": ("bool", "BOOLEAN"),
    "boolean": ("bool", "BOOLEAN"),
    "float": ("float", "REAL"),
    "float64": ("float", "REAL"),
    "datetime": ("datetime.datetime", "DATETIME"),
    "time": ("datetime.datetime", "DATETIME"),
    "timestamp": ("datetime.datetime", "DATETIME"),
}


@dataclass
class FieldSpec:
    """A parsed field specification."""

    name: str = ""
    label: str = ""
    base_type: str = ""
    py_type: str = ""
    sql_type: str = ""
    nullable: bool = False
    default: str | None = None
    unique: bool = False
    index: bool = False
    references: str = ""
    size: int = 0
    precision: int = 0
    scale: int = 0


def timestamp_now() -> str:
    """Return the current UTC time formatted as ``YYYYMMDDHHMMSS``."""
    return datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")


def table_name(name: str) -> str:
    """Return a naively pluralised, lower-cased table name for a resource."""
    name = name.lower()
    return name if name.endswith("s") else name + "s"


def title(text: str) -> str:
    """Title-case every word: first letter upper case, the rest lower case."""
    return _WORD.sub(lambda m: m.group(0).capitalize(), text)


def _atoi(text: str) -> int | None:
    text = text.strip()
    if _INTEGER.fullmatch(text):
        return int(text)
    return None


def _parenthesised(base: str) -> str | None:
    left = base.find("(")
    right = base.rfind(")")
    if left != -1 and right != -1 and right > left + 1:
        return base[left + 1 : right]
    return None


def _resolve_type(spec: FieldSpec, base: str) -> None:
    low = base.lower()
    if low in _SIMPLE_TYPES:
        spec.py_type, spec.sql_type = _SIMPLE_TYPES[low]
        return

    if low.startswith(("decimal", "numeric")):
        spec.py_type = "float"
        spec.sql_type = "DECIMAL"
        inner = _parenthesised(base)
        if inner is None:
            return
        parts = inner.split(",", 1)
        precision = _atoi(parts[0])
        if precision is not None:
            spec.precision = precision
        if len(parts) == 2:
            scale = _atoi(parts[1])
            if scale is not None:
                spec.scale = scale
        if spec.precision > 0:
            if spec.scale > 0:
                spec.sql_type = f"DECIMAL({spec.precision},{spec.scale})"
            else:
                spec.sql_type = f"DECIMAL({spec.precision})"
        return

    if low.startswith(("varchar", "char")):
        spec.py_type = "str"
        spec.sql_type = base.upper()
        inner = _parenthesised(base)
        if inner is not None:
            size = _atoi(inner)
            if size is not None:
                spec.size = size
                spec.sql_type = f"VARCHAR({size})"
        return

    spec.py_type = "str"
    spec.sql_type = "TEXT"


def _apply_options(spec: FieldSpec, options: str) -> None:
    for token in options.split(","):
        token = token.strip()
        if token == "nullable":
            spec.nullable = True
        elif token == "unique":
            spec.unique = True
        elif token == "index":
            spec.index = True
        elif token.startswith("default="):
            spec.default = token[len("default=") :]
        elif token.startswith(("ref=", "references=")):
            spec.references = token.split("=", 1)[1]


def parse_field_spec(spec: str) -> FieldSpec:
    """Parse one field specification; an empty string gives an empty spec."""
    spec = spec.strip()
    if not spec:
        return FieldSpec()

    name, _, rest = spec.partition(":")
    name = name.strip()
    rest = rest.strip()
    result = FieldSpec(name=name, label=title(name))

    base = "string"
    options = ""
    if rest:
        if "," in rest:
            head, _, tail = rest.partition(",")
            base, options = head.strip(), tail.strip()
        else:
            base = rest
    result.base_type = base

    _resolve_type(result, base)
    if options:
        _apply_options(result, options)
    if result.nullable:
        result.py_type = f"{result.py_type} | None"
    return result


def parse_fields(specs) -> list[FieldSpec]:
    """Parse several field specifications, keeping their order."""
    return [parse_field_spec(s) for s in specs]