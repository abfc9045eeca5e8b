"""Schema describing important fields for CLI table rendering."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

Row = Mapping[str, Any]
ValueFormatter = Callable[[Any], str]
SortKey = Callable[[Row], Any]


@dataclass(frozen=True)
class Column:
    """Describe how to pull and format a column for Rich tables."""

    header: str
    keys: tuple[str, ...] = ()
    formatter: ValueFormatter | None = None
    justify: str = "left"

    def render(self, row: Row) -> str:
        value: Any | None = None
        if self.keys:
            for key in self.keys:
                if key in row:
                    value = row.get(key)
                    if value is not None:
                        break
        if value is None:
            return ""
        if self.formatter:
            formatted = self.formatter(value)
            return "" if formatted is None else str(formatted)
        return str(value)


@dataclass(frozen=True)
class TableView:
    """Describe a Rich table for a CLI command.

    ``collection`` names the key of the API result holding the rows, e.g.
    ``products`` inside the result of ``product/all``.
    """

    title: str
    collection: str
    columns: tuple[Column, ...]
    sort_key: SortKey | None = None


def _numeric_id(row: Row) -> int:
    try:
        return int(row.get("id") or 0)
    except (TypeError, ValueError):
        return 0


def _truncate(max_chars: int) -> ValueFormatter:
    def _formatter(value: Any) -> str:
        text = str(value)
        return text if len(text) <= max_chars else text[: max_chars - 1] + "…"

    return _formatter


CLI_TABLE_VIEWS: dict[str, TableView] = {
    "products.list": TableView(
        title="Products",
        collection="products",
        sort_key=_numeric_id,
        columns=(
            Column("ID", keys=("id",), justify="right"),
            Column("Name", keys=("name",), formatter=_truncate(40)),
            Column("Code", keys=("code",)),
            Column("Status", keys=("status",)),
            Column("Owner", keys=("PO",)),
        ),
    ),
    "projects.list": TableView(
        title="Projects",
        collection="projects",
        sort_key=_numeric_id,
        columns=(
            Column("ID", keys=("id",), justify="right"),
            Column("Name", keys=("name",), formatter=_truncate(40)),
            Column("Code", keys=("code",)),
            Column("Status", keys=("status",)),
            Column("Begin", keys=("begin",)),
            Column("End", keys=("end",)),
        ),
    ),
    "tasks.list": TableView(
        title="Tasks",
        collection="tasks",
        sort_key=_numeric_id,
        columns=(
            Column("ID", keys=("id",), justify="right"),
            Column("Name", keys=("name",), formatter=_truncate(48)),
            Column("Pri", keys=("pri",), justify="right"),
            Column("Status", keys=("status",)),
            Column("Assigned To", keys=("assignedToRealName", "assignedTo")),
            Column("Left", keys=("left",), justify="right"),
        ),
    ),
    "bugs.list": TableView(
        title="Bugs",
        collection="bugs",
        sort_key=_numeric_id,
        columns=(
            Column("ID", keys=("id",), justify="right"),
            Column("Title", keys=("title",), formatter=_truncate(48)),
            Column("Severity", keys=("severity",), justify="right"),
            Column("Pri", keys=("pri",), justify="right"),
            Column("Status", keys=("status",)),
            Column("Assigned To", keys=("assignedTo",)),
        ),
    ),
    "users.list": TableView(
        title="Users",
        collection="users",
        sort_key=_numeric_id,
        columns=(
            Column("ID", keys=("id",), justify="right"),
            Column("Account", keys=("account",)),
            Column("Name", keys=("realname",)),
            Column("Role", keys=("role",)),
            Column("Email", keys=("email",)),
        ),
    ),
}


__all__ = ["CLI_TABLE_VIEWS", "Column", "TableView"]
