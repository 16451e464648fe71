"""
FluentModel Table Metadata - introspects record types into table metadata.

Records are dataclasses. Persistence tags live in the field metadata
and are written with ``column()``:

    @dataclass
    class User:
        __table__ = "users"

        id: int = column(primary=True, auto=True, default=0)
        name: str = ""
        age: int = 0
        created_at: Optional[datetime] = column(read_only=True, default=None)

A class that is not a dataclass may instead provide a ``describe()``
classmethod returning a ``Table`` template (name + columns).
"""

from __future__ import annotations

import dataclasses
import decimal
import re
import types
from dataclasses import MISSING, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union, get_args, get_origin, get_type_hints

from ..faults.domains import InvalidModelFault, InvalidParamsFault

__all__ = [
    "Column",
    "Table",
    "column",
    "model_data",
    "is_record",
    "record_of_sequence",
    "is_zero",
    "set_value",
    "bind_row",
]

TAG_KEY = "fluentmodel"

_NO_ZERO = object()

_TYPE_ZEROS: Dict[Any, Any] = {
    int: 0,
    float: 0.0,
    str: "",
    bool: False,
    bytes: b"",
    decimal.Decimal: decimal.Decimal(0),
}

_CONTAINER_TYPES = (list, dict, set, frozenset, tuple)


@dataclass(frozen=True)
class ColumnTag:
    name: Optional[str] = None
    primary: bool = False
    read_only: bool = False
    auto: bool = False
    ignore: bool = False


@dataclass
class Column:
    """One persisted field of a record."""

    name: str
    attr: str = ""
    primary: bool = False
    read_only: bool = False
    auto: bool = False
    has_value: bool = False

    def __post_init__(self):
        if not self.attr:
            self.attr = self.name


@dataclass
class Table:
    """Table metadata plus the current field values of one record."""

    name: str
    columns: List[Column] = field(default_factory=list)
    primaries: List[Column] = field(default_factory=list)
    values: Dict[str, Any] = field(default_factory=dict)
    has_data: bool = False

    @property
    def primary_key(self) -> Optional[str]:
        """Name of the first declared primary column, or None."""
        return self.primaries[0].name if self.primaries else None

    def can_column_be_add_or_update(self, column: Column) -> bool:
        return not (column.read_only or column.auto)

    def column_by(self, key: str) -> Optional[Column]:
        """Look a column up by attribute name, then by column name."""
        for col in self.columns:
            if col.attr == key:
                return col
        for col in self.columns:
            if col.name == key:
                return col
        return None


def column(
    name: Optional[str] = None,
    *,
    primary: bool = False,
    read_only: bool = False,
    auto: bool = False,
    ignore: bool = False,
    **kwargs: Any,
) -> Any:
    """
    ``dataclasses.field`` carrying persistence tags.

    Args:
        name: Column name (defaults to the attribute name)
        primary: Part of the primary key
        read_only: Never written by update
        auto: Generated by the database, never written by update
        ignore: Not persisted at all
        **kwargs: Passed to ``dataclasses.field`` (default, default_factory, ...)
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = ColumnTag(name, primary, read_only, auto, ignore)
    return field(metadata=metadata, **kwargs)


# ── Schema (per class, cached) ───────────────────────────────────────────────


@dataclass
class _ColumnSpec:
    column: Column
    zero: Any = _NO_ZERO
    factory: Any = None

    def zero_value(self) -> Any:
        if self.factory is not None:
            return self.factory()
        return None if self.zero is _NO_ZERO else self.zero

    def is_zero(self, value: Any) -> bool:
        if self.zero is _NO_ZERO:
            return is_zero(value)
        if self.zero is None:
            return value is None
        return type(value) is type(self.zero) and value == self.zero


_schemas: Dict[type, Tuple[str, List[_ColumnSpec]]] = {}


def _snake_case(name: str) -> str:
    s = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s).lower()


def _type_zero(hint: Any) -> Any:
    origin = get_origin(hint)
    if origin is Union or origin is types.UnionType:
        # Optional[X] and other unions: nothing set means None
        return None
    if origin in _CONTAINER_TYPES:
        return origin()
    if hint in _CONTAINER_TYPES:
        return hint()
    return _TYPE_ZEROS.get(hint, _NO_ZERO)


def _describe_dataclass(cls: type) -> List[_ColumnSpec]:
    try:
        hints = get_type_hints(cls)
    except (NameError, TypeError):
        hints = {}

    specs: List[_ColumnSpec] = []
    for f in dataclasses.fields(cls):
        tag = f.metadata.get(TAG_KEY) or ColumnTag()
        if tag.ignore:
            continue
        col = Column(
            name=tag.name or f.name,
            attr=f.name,
            primary=tag.primary,
            read_only=tag.read_only,
            auto=tag.auto,
        )
        # Zero comes from the annotation; the declared default only stands
        # in for types with no known zero.
        zero = _type_zero(hints.get(f.name, f.type))
        if zero is _NO_ZERO:
            if f.default is not MISSING:
                zero = f.default
            elif f.default_factory is not MISSING:
                zero = f.default_factory()
        factory = type(zero) if isinstance(zero, _CONTAINER_TYPES) else None
        specs.append(_ColumnSpec(col, zero=zero, factory=factory))
    return specs


def _schema(cls: type) -> Tuple[str, List[_ColumnSpec]]:
    cached = _schemas.get(cls)
    if cached is not None:
        return cached

    describe = getattr(cls, "describe", None)
    if dataclasses.is_dataclass(cls):
        name = getattr(cls, "__table__", None) or _snake_case(cls.__name__)
        specs = _describe_dataclass(cls)
    elif callable(describe):
        template = describe()
        name = template.name
        specs = [_ColumnSpec(dataclasses.replace(c, has_value=False)) for c in template.columns]
    else:
        raise InvalidModelFault(cls, "a dataclass record or a class with describe()")

    _schemas[cls] = (name, specs)
    return name, specs


# ── Shape checks ─────────────────────────────────────────────────────────────


def is_record(obj: Any) -> bool:
    """True for a record class or record instance."""
    cls = obj if isinstance(obj, type) else type(obj)
    if dataclasses.is_dataclass(cls):
        return True
    return callable(getattr(cls, "describe", None))


def record_of_sequence(target: Any) -> Optional[Type[Any]]:
    """Resolve ``list[Record]`` / ``List[Record]`` to ``Record``."""
    if get_origin(target) is not list:
        return None
    args = get_args(target)
    if len(args) == 1 and isinstance(args[0], type) and is_record(args[0]):
        return args[0]
    return None


def is_zero(value: Any) -> bool:
    """Zero value check for values with no declared default."""
    if value is None:
        return True
    if isinstance(value, (bool, int, float, str, bytes, decimal.Decimal) + _CONTAINER_TYPES):
        return not value
    return False


# ── Extraction / binding ─────────────────────────────────────────────────────


def model_data(model: Any) -> Table:
    """
    Build ``Table`` metadata for a record class or instance.

    Values are read from the instance without calling any of its
    methods. A class yields zero values and ``has_data=False``.

    Raises:
        InvalidModelFault: model is not a record
    """
    if not is_record(model):
        raise InvalidModelFault(model, "a record class or record instance")

    instance = None if isinstance(model, type) else model
    cls = model if instance is None else type(model)
    name, specs = _schema(cls)

    table = Table(name=name)
    for spec in specs:
        if instance is None:
            value = spec.zero_value()
            has_value = False
        else:
            value = getattr(instance, spec.column.attr, None)
            has_value = not spec.is_zero(value)

        col = dataclasses.replace(spec.column, has_value=has_value)
        table.columns.append(col)
        if col.primary:
            table.primaries.append(col)
        table.values[col.name] = value
        table.has_data = table.has_data or has_value

    return table


def set_value(model: Any, key: str, value: Any) -> None:
    """
    Assign ``value`` onto the field named ``key`` (attribute or column name).

    Raises:
        InvalidParamsFault: no such field
    """
    table = model_data(model)
    col = table.column_by(key)
    if col is None:
        raise InvalidParamsFault(
            "update", f"'{type(model).__name__}' has no field or column {key!r}"
        )
    setattr(model, col.attr, value)


def bind_row(target: Any, row: Mapping[str, Any]) -> Any:
    """
    Copy a result row onto a record.

    An instance is updated in place; a class is instantiated without
    running ``__init__``. Row keys that match no column are ignored.
    """
    if not is_record(target):
        raise InvalidModelFault(target, "a record class or record instance")

    if isinstance(target, type):
        cls = target
        instance = cls.__new__(cls)
        assign = object.__setattr__
        if dataclasses.is_dataclass(cls):
            for f in dataclasses.fields(cls):
                if f.default is not MISSING:
                    assign(instance, f.name, f.default)
                elif f.default_factory is not MISSING:
                    assign(instance, f.name, f.default_factory())
                else:
                    assign(instance, f.name, None)
        _, specs = _schema(cls)
        for spec in specs:
            if not hasattr(instance, spec.column.attr):
                assign(instance, spec.column.attr, spec.zero_value())
    else:
        cls = type(target)
        instance = target
        assign = setattr

    _, specs = _schema(cls)
    for spec in specs:
        col = spec.column
        if col.name in row:
            assign(instance, col.attr, row[col.name])
        elif col.attr in row:
            assign(instance, col.attr, row[col.attr])
    return instance
