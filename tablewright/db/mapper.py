from __future__ import annotations

import dataclasses
import typing
from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any, Iterable, Optional

from .models import ColumnSpec, FieldMap


def _is_namedtuple(record: Any) -> bool:
    return isinstance(record, tuple) and hasattr(record, "_asdict")


def _is_pair_sequence(record: Any) -> bool:
    if isinstance(record, (str, bytes)) or not isinstance(record, Sequence):
        return False
    return all(
        isinstance(item, (tuple, list)) and len(item) == 2 and isinstance(item[0], str)
        for item in record
    )


def _unwrap_optional(tp: Any) -> Any:
    # Optional[X] / X | None -> X; other unions are left alone
    args = typing.get_args(tp)
    if args and type(None) in args:
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1:
            return rest[0]
    return tp


class RecordMapper:
    """
    Normalizes records of any supported shape into a FieldMap.

    Supported inputs:
    - any Mapping (including an existing FieldMap)
    - a sequence of ``(name, value)`` pairs
    - dataclass instances, in field declaration order
    - named tuples
    - plain objects, via their public instance attributes

    When a schema (``ColumnSpec``s) is given, only schema columns present on
    the record are emitted, in schema order.
    """

    def __init__(self, schema: Iterable[ColumnSpec] = ()) -> None:
        self.schema = tuple(schema)

    def to_field_map(self, record: Any) -> FieldMap:
        fields = self._raw_fields(record)
        if not self.schema:
            return fields
        return {col.name: fields[col.name] for col in self.schema if col.name in fields}

    def _raw_fields(self, record: Any) -> FieldMap:
        if isinstance(record, Mapping):
            return dict(record)
        if dataclasses.is_dataclass(record) and not isinstance(record, type):
            return {f.name: getattr(record, f.name) for f in dataclasses.fields(record)}
        if _is_namedtuple(record):
            return dict(record._asdict())
        if _is_pair_sequence(record):
            return {name: value for name, value in record}
        if hasattr(record, "__dict__") and not isinstance(record, type):
            return {k: v for k, v in vars(record).items() if not k.startswith("_")}
        raise TypeError(f"Can't map a {type(record).__name__} to table fields")

    def has_key(self, record: Any, key_name: str) -> bool:
        return self.get_key(record, key_name) is not None

    def get_key(self, record: Any, key_name: str) -> Any:
        return self._raw_fields(record).get(key_name)

    def set_key(self, record: Any, key_name: str, value: Any) -> None:
        """
        Write a database-generated key back onto ``record``.

        Mutable mappings are assigned as-is. Typed records get the value
        coerced to the schema column type if one is declared, otherwise to
        the attribute's type annotation.

        Raises:
            TypeError: If the record is immutable (named tuple, pair sequence,
                frozen dataclass, read-only mapping)
        """
        if isinstance(record, MutableMapping):
            record[key_name] = value
            return
        if isinstance(record, (Mapping, Sequence)):
            raise TypeError(f"Can't set {key_name!r} on an immutable {type(record).__name__}")

        value = self._coerce(record, key_name, value)
        try:
            setattr(record, key_name, value)
        except dataclasses.FrozenInstanceError as exc:
            raise TypeError(f"Can't set {key_name!r} on a frozen {type(record).__name__}") from exc

    def with_key(self, record: Any, key_name: str, value: Any) -> Any:
        """
        Like ``set_key``, but immutable records are copied instead of rejected.

        Frozen dataclasses and named tuples are replaced with a copy carrying
        the key; read-only mappings and pair sequences become a new dict.
        """
        if isinstance(record, MutableMapping):
            record[key_name] = value
            return record
        if _is_namedtuple(record):
            return record._replace(**{key_name: self._coerce(record, key_name, value)})
        if isinstance(record, (Mapping, Sequence)):
            fields = self._raw_fields(record)
            fields[key_name] = value
            return fields
        if dataclasses.is_dataclass(record) and type(record).__dataclass_params__.frozen:
            return dataclasses.replace(record, **{key_name: self._coerce(record, key_name, value)})
        self.set_key(record, key_name, value)
        return record

    def _coerce(self, record: Any, key_name: str, value: Any) -> Any:
        target = self._key_type(record, key_name)
        if value is not None and isinstance(target, type) and not isinstance(value, target):
            return target(value)
        return value

    def _key_type(self, record: Any, key_name: str) -> Optional[type]:
        for col in self.schema:
            if col.name == key_name and col.type is not None:
                return col.type
        try:
            hints = typing.get_type_hints(type(record))
        except (NameError, TypeError):
            return None
        if key_name not in hints:
            return None
        return _unwrap_optional(hints[key_name])

    def from_row(self, row: Mapping[str, Any], record_type: Optional[type] = None) -> Any:
        """
        Materialize a result row as a dict or as an instance of ``record_type``.

        Only the row fields the record type declares are passed to it; column
        names are matched case-insensitively.
        """
        data = dict(row)
        if record_type is None:
            return data
        if dataclasses.is_dataclass(record_type):
            names = [f.name for f in dataclasses.fields(record_type) if f.init]
        elif hasattr(record_type, "_fields"):
            names = list(record_type._fields)
        else:
            return record_type(**data)
        by_lower = {k.lower(): v for k, v in data.items()}
        kwargs = {name: by_lower[name.lower()] for name in names if name.lower() in by_lower}
        return record_type(**kwargs)
