"""
Generic record accessor.

`Model` offers insert / update / delete / find operations over a single table.
Concrete models declare which columns may be written (`fillable`) and
optionally a validator:

    class Product(Model):
        fillable = ("name", "description")
        validator = staticmethod(required("name", "Name is required"))

Only fillable columns ever reach the generated SQL. Identifiers are quoted
with `psycopg.sql.Identifier`, values are always bound as parameters.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import (
    Any,
    ClassVar,
    Dict,
    Generator,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
)

from psycopg import Connection, Cursor, sql
from psycopg.rows import dict_row

from recordkit.binding import bind_id, bind_values
from recordkit.exceptions import ModelConfigurationError
from recordkit.utils.logging import get_logger
from recordkit.validation import Validator

Row = Dict[str, Any]


class DatabaseProvider(Protocol):
    """Anything that can hand out a live psycopg connection."""

    def get_connection(self) -> Connection:
        ...


@dataclass(frozen=True)
class WriteResult:
    """
    Outcome of an insert or update.

    Truthy when the statement ran; `errors` holds the validation failures of
    this call only.
    """

    ok: bool
    errors: Dict[str, str] = field(default_factory=dict)
    rowcount: int = 0

    def __bool__(self) -> bool:
        return self.ok


class Model:
    """
    Base class for table accessors.

    Attributes
    ----------
    table : str, optional
        Explicit table name. Defaults to the lower-cased class name.
    fillable : tuple of str
        Columns that may be mass-assigned by insert/update. Required.
    validator : Validator, optional
        Default validation hook; can be replaced per instance.
    """

    table: ClassVar[Optional[str]] = None
    fillable: ClassVar[Tuple[str, ...]] = ()
    validator: ClassVar[Optional[Validator]] = None

    def __init_subclass__(cls, abstract: bool = False, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if isinstance(cls.fillable, (str, bytes)):
            raise ModelConfigurationError(
                f"Property 'fillable' in {cls.__module__}.{cls.__qualname__} must be "
                f"a sequence of column names, not a string: {cls.fillable!r}"
            )
        # ordered set
        cls.fillable = tuple(dict.fromkeys(cls.fillable))
        if not abstract and not cls.fillable:
            raise _missing_fillable(cls)

    def __init__(
        self,
        database: DatabaseProvider,
        *,
        table: Optional[str] = None,
        validator: Optional[Validator] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not self.fillable:
            raise _missing_fillable(type(self))
        self.database = database
        self.table_name: str = table or type(self).table or type(self).__name__.lower()
        self._validator: Optional[Validator] = (
            validator if validator is not None else type(self).validator
        )
        self._log = logger or get_logger(__name__)
        self._errors: Dict[str, str] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table={self.table_name!r})"

    # -- validation -----------------------------------------------------

    def validate(self, data: Mapping[str, Any]) -> Dict[str, str]:
        """
        Run the validation hook against `data` and return this call's errors.

        Overrides register failures with `add_error()`; insert and update
        start each call from an empty error set and only write when
        nothing was registered.
        """
        if self._validator is not None:
            for name, message in self._validator(data).items():
                self.add_error(name, message)
        return dict(self._errors)

    def _run_validation(self, data: Mapping[str, Any]) -> Dict[str, str]:
        # gate on what was registered, whatever an overridden validate() returns
        self._errors = {}
        self.validate(data)
        return self.get_errors()

    def add_error(self, field_name: str, message: str) -> None:
        """Register a validation error for the call in progress."""
        self._errors[field_name] = message

    def get_errors(self) -> Dict[str, str]:
        """Errors reported by the most recent insert or update."""
        return dict(self._errors)

    # -- writes ---------------------------------------------------------

    def insert(self, data: Mapping[str, Any]) -> WriteResult:
        """
        Insert a row built from the fillable columns of `data`.

        Returns a falsy `WriteResult` carrying the errors when validation
        fails; nothing is executed in that case.
        """
        payload = self._filter_columns(data)
        errors = self._run_validation(payload)
        if errors:
            return WriteResult(ok=False, errors=errors)

        table = sql.Identifier(self.table_name)
        if payload:
            query = sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
                table,
                sql.SQL(", ").join(sql.Identifier(name) for name in payload),
                sql.SQL(", ").join(sql.Placeholder() for _ in payload),
            )
        else:
            query = sql.SQL("INSERT INTO {} DEFAULT VALUES").format(table)

        with self._cursor() as cur:
            cur.execute(query, bind_values(payload.values()))
            rowcount = cur.rowcount
        self._log_statement("insert", rowcount)
        return WriteResult(ok=True, rowcount=rowcount)

    def update(self, record_id: Any, data: Mapping[str, Any]) -> WriteResult:
        """
        Update the row with `record_id` using the fillable columns of `data`.

        An `id` key in `data` is always ignored: the primary key cannot be
        mass-assigned.
        """
        payload = self._filter_columns(data)
        errors = self._run_validation(payload)
        if errors:
            return WriteResult(ok=False, errors=errors)

        payload.pop("id", None)
        if not payload:
            self.add_error("_payload", "No fillable columns supplied")
            return WriteResult(ok=False, errors=self.get_errors())

        key = bind_id(record_id)
        query = sql.SQL("UPDATE {} SET {} WHERE id = {}").format(
            sql.Identifier(self.table_name),
            sql.SQL(", ").join(
                sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder())
                for name in payload
            ),
            sql.Placeholder(),
        )
        params = bind_values(payload.values())
        params.append(key)

        with self._cursor() as cur:
            cur.execute(query, params)
            rowcount = cur.rowcount
        self._log_statement("update", rowcount)
        return WriteResult(ok=True, rowcount=rowcount)

    def delete(self, record_id: Any) -> bool:
        """Delete the row with `record_id`. Returns False when no row matched."""
        query = sql.SQL("DELETE FROM {} WHERE id = {}").format(
            sql.Identifier(self.table_name), sql.Placeholder("id")
        )
        with self._cursor() as cur:
            cur.execute(query, {"id": bind_id(record_id)})
            rowcount = cur.rowcount
        self._log_statement("delete", rowcount)
        return rowcount > 0

    # -- reads ----------------------------------------------------------

    def find(self, record_id: Any) -> Optional[Row]:
        """Return the row with `record_id` as a dict, or None."""
        query = sql.SQL("SELECT * FROM {} WHERE id = {}").format(
            sql.Identifier(self.table_name), sql.Placeholder("id")
        )
        with self._cursor() as cur:
            cur.execute(query, {"id": bind_id(record_id)})
            return cur.fetchone()

    def find_all(self) -> List[Row]:
        """Return every row of the table. No ordering is applied."""
        query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(self.table_name))
        with self._cursor() as cur:
            cur.execute(query)
            return cur.fetchall()

    def get_insert_id(self) -> int:
        """Id generated by the most recent insert on this connection."""
        with self._cursor() as cur:
            cur.execute("SELECT lastval() AS id")
            row = cur.fetchone()
        return int(row["id"])

    # -- internals ------------------------------------------------------

    @contextmanager
    def _cursor(self) -> Generator[Cursor[Row], None, None]:
        conn = self.database.get_connection()
        with conn.cursor(row_factory=dict_row) as cur:
            yield cur

    def _filter_columns(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Keep only fillable keys, logging whatever was dropped."""
        allowed = set(self.fillable)
        filtered = {key: value for key, value in data.items() if key in allowed}
        ignored = [key for key in data if key not in allowed]
        if ignored:
            self._log.warning(
                "Ignored non-fillable columns in %s: %s",
                type(self).__name__,
                ", ".join(map(str, ignored)),
                extra={
                    "model": type(self).__name__,
                    "table": self.table_name,
                    "ignored_columns": ignored,
                },
            )
        return filtered

    def _log_statement(self, operation: str, rowcount: int) -> None:
        self._log.debug(
            "%s on %s affected %d row(s)",
            operation,
            self.table_name,
            rowcount,
            extra={"table": self.table_name, "operation": operation, "rowcount": rowcount},
        )


def _missing_fillable(cls: type) -> ModelConfigurationError:
    return ModelConfigurationError(
        f"Property 'fillable' must be defined in {cls.__module__}.{cls.__qualname__} "
        "to prevent mass-assignment of arbitrary columns"
    )


__all__ = ["DatabaseProvider", "Model", "Row", "WriteResult"]
