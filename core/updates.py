"""
core/updates.py -- Turns a validated field map into a single-row UPDATE.

The planner is the last step between the validators and the database:

  validated {FieldEnum: value}  ->  UpdatePlan  ->  sqlalchemy Update

Guarantees:
  - Column names come only from closed Enum classes (UserField, MemberField,
    ...). A plain string key is refused, so caller-supplied JSON keys can
    never reach the SET clause.
  - Values are bound parameters. SQLAlchemy renders "col = ?" and passes the
    value separately; nothing is interpolated into the statement text.
  - Exactly one predicate: key_column == key.
  - A "password" column is refused outright. Validators replace it with
    password_hash before planning.

Layer rule: no imports from api/, auth/, or gym/.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from sqlalchemy import Column, Table
from sqlalchemy.sql.dml import Update

from core.database import now_timestamp
from core.errors import ValidationError


@dataclass(frozen=True)
class UpdatePlan:
    """An ordered, parameterized mutation of one row.

    values preserves submission order so the rendered SET clause is stable.
    """

    table: Table
    key_column: Column
    key: int
    values: tuple[tuple[str, Any], ...]

    @property
    def columns(self) -> list[str]:
        return [name for name, _ in self.values]

    def as_dict(self) -> dict[str, Any]:
        return dict(self.values)

    def statement(self) -> Update:
        """Return the UPDATE statement, scoped to the single primary key."""
        return self.table.update().where(self.key_column == self.key).values(**self.as_dict())


def plan_update(
    table: Table,
    key_column: Column,
    key: int,
    fields: Mapping[Enum, Any],
    touch: Optional[str] = None,
) -> UpdatePlan:
    """Build an UpdatePlan for one row of table.

    Args:
        table:      Target table.
        key_column: The table's primary-key column.
        key:        Primary key of the row to update.
        fields:     Validated values keyed by a field Enum member whose value
                    is the column name.
        touch:      Optional timestamp column set to "now" on every update
                    (users.updated_at).

    Raises:
        ValidationError: fields is empty.
        TypeError:       a key is not an Enum member.
        ValueError:      a key names a column that is not on the table, or
                         names the raw password column.
    """
    if not fields:
        raise ValidationError("no fields to update", code="no_fields")
    if key_column.table is not table:
        raise ValueError(f"{key_column} is not a column of {table.name}")

    values: list[tuple[str, Any]] = []
    for field, value in fields.items():
        if not isinstance(field, Enum):
            raise TypeError(f"update keys must be field enum members, got {field!r}")
        column = field.value
        if column == "password":
            raise ValueError("plaintext password cannot be written; hash it into password_hash first")
        if column not in table.c:
            raise ValueError(f"{table.name} has no column {column!r}")
        if column == key_column.name:
            raise ValueError("the primary key cannot be updated")
        values.append((column, value))

    if touch is not None:
        if touch not in table.c:
            raise ValueError(f"{table.name} has no column {touch!r}")
        values = [(name, value) for name, value in values if name != touch]
        values.append((touch, now_timestamp()))

    return UpdatePlan(table=table, key_column=key_column, key=key, values=tuple(values))
