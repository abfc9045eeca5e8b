"""Command-line interface for interacting with ZenTao servers."""
from __future__ import annotations

import inspect
import json
import logging
import os
from collections.abc import Mapping, Sequence
from typing import Any

import typer

try:  # pragma: no cover - exercised in runtime environments
    from rich import box
    from rich.console import Console
    from rich.logging import RichHandler
    from rich.table import Table
except ImportError as exc:  # pragma: no cover - optional dependency guard
    raise RuntimeError(
        "The CLI requires Rich for table rendering. Install the CLI extras via "
        "'pip install zentao-client[cli]' to enable this command."
    ) from exc

from . import ZentaoClient
from .catalog import resolve_operation, snake_case_params
from .cli_schema import CLI_TABLE_VIEWS, TableView
from .config import ApiResult
from .exceptions import ApiNotFoundError, ZentaoError

app = typer.Typer(help="ZenTao project management CLI.", no_args_is_help=True)

products_app = typer.Typer(help="Product operations.")
projects_app = typer.Typer(help="Project operations.")
tasks_app = typer.Typer(help="Task operations.")
bugs_app = typer.Typer(help="Bug operations.")
users_app = typer.Typer(help="User operations.")
app.add_typer(products_app, name="products")
app.add_typer(projects_app, name="projects")
app.add_typer(tasks_app, name="tasks")
app.add_typer(bugs_app, name="bugs")
app.add_typer(users_app, name="users")


def _configure_logging(debug: bool) -> None:
    if not debug:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_client(
    url: str,
    account: str | None,
    password: str | None,
    access_mode: str | None,
    session_name: str | None,
    preserve_token: bool,
    verify_ssl: bool,
    timeout: float,
    debug: bool,
) -> ZentaoClient:
    if not account or not password:
        raise typer.BadParameter("--account and --password are required.")
    if access_mode and access_mode.upper() not in {"GET", "PATH_INFO"}:
        raise typer.BadParameter("--access-mode must be either 'GET' or 'PATH_INFO'.")

    _configure_logging(debug)
    return ZentaoClient(
        url=url,
        account=account,
        password=password,
        access_mode=access_mode,
        session_name=session_name,
        preserve_token=preserve_token,
        verify_ssl=verify_ssl,
        timeout=timeout,
        debug=debug,
    )


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


console = Console(force_terminal=False, color_system=None)


def _render_rich_table(view: TableView, rows: Sequence[Mapping[str, Any]]) -> None:
    table = Table(
        title=view.title,
        box=box.SIMPLE,
        show_lines=False,
        header_style="bold cyan",
    )
    for column in view.columns:
        table.add_column(column.header, justify=column.justify)
    ordered_rows = list(rows)
    if view.sort_key:
        ordered_rows.sort(key=view.sort_key)
    for row in ordered_rows:
        table.add_row(*(column.render(row) for column in view.columns))
    console.print(table)


def _collection_rows(payload: Any, collection: str) -> list[Mapping[str, Any]]:
    if not isinstance(payload, Mapping):
        return []
    items = payload.get(collection)
    # ZenTao keys most collections by record id.
    if isinstance(items, Mapping):
        items = list(items.values())
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def _present_output(result: ApiResult, *, view_id: str | None, json_output: bool) -> None:
    if not result.ok:
        _echo_json(result.to_dict())
        raise typer.Exit(code=1)
    view = CLI_TABLE_VIEWS.get(view_id) if view_id else None
    if json_output or view is None:
        _echo_json(result.to_dict())
        return
    rows = _collection_rows(result.result, view.collection)
    if not rows:
        _echo_json(result.to_dict())
        return
    _render_rich_table(view, rows)


def _handle_error(exc: ZentaoError) -> None:
    message = f"Request failed: {exc}"
    if exc.status_code:
        message = f"Request failed (status {exc.status_code}): {exc}"
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _coerce_simple(value: str):
    v = value.strip()
    if not v:
        return ""
    low = v.lower()
    if low in {"true", "yes", "on"}:
        return True
    if low in {"false", "no", "off"}:
        return False
    if low in {"null", "none"}:
        return None
    try:
        if "." in v:
            return float(v)
        return int(v)
    except ValueError:
        return v


def parse_param_pairs(entries: Sequence[str]) -> list[Any]:
    """Parse ``key=value`` entries into pairs; entries without ``=`` stay positional."""
    pairs: list[Any] = []
    for entry in entries:
        if "=" in entry:
            key, value = entry.split("=", 1)
            pairs.append((key.strip(), value))
        else:
            pairs.append(entry)
    return pairs


def parse_form_fields(entries: Sequence[str]) -> dict[str, Any]:
    """Parse ``key=value`` entries into form data; repeated keys become lists."""
    form: dict[str, Any] = {}
    for entry in entries:
        if "=" not in entry:
            raise typer.BadParameter("Form data must be provided as key=value pairs.")
        key, value = entry.split("=", 1)
        key = key.strip()
        if key in form:
            existing = form[key]
            form[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            form[key] = value
    return form


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _shared_options() -> dict[str, Any]:  # pragma: no cover - helper indirection
    return {
        "url": typer.Option(..., "--url", envvar="ZENTAO_URL", help="ZenTao server URL."),
        "account": typer.Option(
            None,
            "--account",
            "-u",
            envvar="ZENTAO_ACCOUNT",
            help="ZenTao login account.",
        ),
        "password": typer.Option(
            None,
            "--password",
            "-p",
            envvar="ZENTAO_PASSWORD",
            help="ZenTao login password.",
            hide_input=True,
        ),
        "access_mode": typer.Option(
            None,
            "--access-mode",
            envvar="ZENTAO_ACCESS_MODE",
            help="Force the request type (GET or PATH_INFO) instead of the server's.",
        ),
        "session_name": typer.Option(
            None,
            "--session-name",
            envvar="ZENTAO_SESSION_NAME",
            help="Name under which the session token is stored.",
        ),
        "preserve_token": typer.Option(
            _env_flag("ZENTAO_PRESERVE_TOKEN", True),
            "--preserve-token/--no-preserve-token",
            help="Persist the session token between invocations.",
            show_default=True,
        ),
        "verify_ssl": typer.Option(
            _env_flag("ZENTAO_VERIFY_SSL", True),
            "--verify/--no-verify",
            help="Enable or disable TLS certificate verification.",
            show_default=True,
        ),
        "timeout": typer.Option(30.0, help="Request timeout (seconds).", show_default=True),
        "debug": typer.Option(
            _env_flag("ZENTAO_DEBUG", False),
            "--debug",
            help="Log a detailed trace of every request.",
        ),
        "output_json": typer.Option(
            False,
            "--json",
            "-j",
            help="Return raw JSON instead of rendering a table.",
        ),
    }


_SHARED_OPTIONS = _shared_options()


@app.command("login")
def login(
    url: str = _SHARED_OPTIONS["url"],
    account: str | None = _SHARED_OPTIONS["account"],
    password: str | None = _SHARED_OPTIONS["password"],
    access_mode: str | None = _SHARED_OPTIONS["access_mode"],
    session_name: str | None = _SHARED_OPTIONS["session_name"],
    preserve_token: bool = _SHARED_OPTIONS["preserve_token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    debug: bool = _SHARED_OPTIONS["debug"],
) -> None:
    """Log in and print the current user."""

    with _build_client(
        url, account, password, access_mode, session_name, preserve_token, verify_ssl, timeout, debug
    ) as client:
        try:
            result = client.login()
        except ZentaoError as exc:
            _handle_error(exc)
            return
    _present_output(result, view_id=None, json_output=True)


@app.command("config")
def show_config(
    url: str = _SHARED_OPTIONS["url"],
    account: str | None = _SHARED_OPTIONS["account"],
    password: str | None = _SHARED_OPTIONS["password"],
    access_mode: str | None = _SHARED_OPTIONS["access_mode"],
    session_name: str | None = _SHARED_OPTIONS["session_name"],
    preserve_token: bool = _SHARED_OPTIONS["preserve_token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    debug: bool = _SHARED_OPTIONS["debug"],
) -> None:
    """Fetch and print the server dispatch configuration."""

    with _build_client(
        url, account, password, access_mode, session_name, preserve_token, verify_ssl, timeout, debug
    ) as client:
        try:
            config = client.fetch_config()
        except ZentaoError as exc:
            _handle_error(exc)
            return
    snapshot = config.to_snapshot()
    snapshot["mainVersion"] = config.main_version
    snapshot["edition"] = config.edition
    _echo_json(snapshot)


@app.command("request")
def raw_request(
    module_name: str = typer.Argument(..., metavar="MODULE", help="Server module, e.g. product."),
    method_name: str = typer.Argument("index", metavar="METHOD", help="Module method, e.g. all."),
    param: list[str] = typer.Option([], "--param", help="Request parameter as key=value (repeatable)."),
    data: list[str] = typer.Option([], "--data", help="Form field as key=value (repeatable)."),
    field: list[str] = typer.Option([], "--field", help="Only keep this result field (repeatable)."),
    post: bool = typer.Option(False, "--post", help="Send a POST request."),
    url: str = _SHARED_OPTIONS["url"],
    account: str | None = _SHARED_OPTIONS["account"],
    password: str | None = _SHARED_OPTIONS["password"],
    access_mode: str | None = _SHARED_OPTIONS["access_mode"],
    session_name: str | None = _SHARED_OPTIONS["session_name"],
    preserve_token: bool = _SHARED_OPTIONS["preserve_token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    debug: bool = _SHARED_OPTIONS["debug"],
) -> None:
    """Call any MODULE/METHOD pair and print the normalized result."""

    form = parse_form_fields(data) if data else None
    with _build_client(
        url, account, password, access_mode, session_name, preserve_token, verify_ssl, timeout, debug
    ) as client:
        builder = client.module(module_name, method_name, parse_param_pairs(param))
        if field:
            builder.filter_fields(field)
        try:
            result = builder.post(form) if post or form else builder.get()
        except ZentaoError as exc:
            _handle_error(exc)
            return
    _present_output(result, view_id=None, json_output=True)


@app.command("call")
def call_operation(
    api_name: str = typer.Argument(..., metavar="NAME", help="Catalog operation, e.g. getProductList."),
    param: list[str] = typer.Option([], "--param", help="Operation argument as key=value (repeatable)."),
    url: str = _SHARED_OPTIONS["url"],
    account: str | None = _SHARED_OPTIONS["account"],
    password: str | None = _SHARED_OPTIONS["password"],
    access_mode: str | None = _SHARED_OPTIONS["access_mode"],
    session_name: str | None = _SHARED_OPTIONS["session_name"],
    preserve_token: bool = _SHARED_OPTIONS["preserve_token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    debug: bool = _SHARED_OPTIONS["debug"],
) -> None:
    """Invoke a catalog operation by name."""

    arguments: dict[str, Any] = {}
    for entry in param:
        if "=" not in entry:
            raise typer.BadParameter("Operation arguments must be provided as key=value pairs.")
        key, value = entry.split("=", 1)
        arguments[key.strip()] = _coerce_simple(value)

    with _build_client(
        url, account, password, access_mode, session_name, preserve_token, verify_ssl, timeout, debug
    ) as client:
        try:
            handler = resolve_operation(client, api_name)
        except ApiNotFoundError as exc:
            typer.secho(str(exc), err=True, fg=typer.colors.RED)
            raise typer.Exit(code=2) from exc
        try:
            inspect.signature(handler).bind(**snake_case_params(arguments))
        except TypeError as exc:
            raise typer.BadParameter(f"Invalid arguments for {api_name}: {exc}") from exc
        try:
            result = client.call(api_name, arguments)
        except ZentaoError as exc:
            _handle_error(exc)
            return
    _present_output(result, view_id=None, json_output=True)


@products_app.command("list")
def products_list(
    status: str = typer.Option("noclosed", "--status", help="noclosed, closed, involved or all."),
    url: str = _SHARED_OPTIONS["url"],
    account: str | None = _SHARED_OPTIONS["account"],
    password: str | None = _SHARED_OPTIONS["password"],
    access_mode: str | None = _SHARED_OPTIONS["access_mode"],
    session_name: str | None = _SHARED_OPTIONS["session_name"],
    preserve_token: bool = _SHARED_OPTIONS["preserve_token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    debug: bool = _SHARED_OPTIONS["debug"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List products."""

    with _build_client(
        url, account, password, access_mode, session_name, preserve_token, verify_ssl, timeout, debug
    ) as client:
        try:
            result = client.products.list(status=status)
        except ZentaoError as exc:
            _handle_error(exc)
            return
    _present_output(result, view_id="products.list", json_output=output_json)


@projects_app.command("list")
def projects_list(
    status: str = typer.Option("undone", "--status", help="undone, wait, doing, suspended, closed or all."),
    url: str = _SHARED_OPTIONS["url"],
    account: str | None = _SHARED_OPTIONS["account"],
    password: str | None = _SHARED_OPTIONS["password"],
    access_mode: str | None = _SHARED_OPTIONS["access_mode"],
    session_name: str | None = _SHARED_OPTIONS["session_name"],
    preserve_token: bool = _SHARED_OPTIONS["preserve_token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    debug: bool = _SHARED_OPTIONS["debug"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List projects."""

    with _build_client(
        url, account, password, access_mode, session_name, preserve_token, verify_ssl, timeout, debug
    ) as client:
        try:
            result = client.projects.list(status=status)
        except ZentaoError as exc:
            _handle_error(exc)
            return
    _present_output(result, view_id="projects.list", json_output=output_json)


@tasks_app.command("list")
def tasks_list(
    project_id: int = typer.Option(..., "--project-id", help="Project whose tasks are listed."),
    status: str = typer.Option("unclosed", "--status", help="Task filter, e.g. unclosed or all."),
    url: str = _SHARED_OPTIONS["url"],
    account: str | None = _SHARED_OPTIONS["account"],
    password: str | None = _SHARED_OPTIONS["password"],
    access_mode: str | None = _SHARED_OPTIONS["access_mode"],
    session_name: str | None = _SHARED_OPTIONS["session_name"],
    preserve_token: bool = _SHARED_OPTIONS["preserve_token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    debug: bool = _SHARED_OPTIONS["debug"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List the tasks of a project."""

    with _build_client(
        url, account, password, access_mode, session_name, preserve_token, verify_ssl, timeout, debug
    ) as client:
        try:
            result = client.tasks.list(project_id, status=status)
        except ZentaoError as exc:
            _handle_error(exc)
            return
    _present_output(result, view_id="tasks.list", json_output=output_json)


@bugs_app.command("list")
def bugs_list(
    product_id: int = typer.Option(..., "--product-id", help="Product whose bugs are listed."),
    browse_type: str = typer.Option("unclosed", "--browse-type", help="Bug filter, e.g. unclosed or all."),
    url: str = _SHARED_OPTIONS["url"],
    account: str | None = _SHARED_OPTIONS["account"],
    password: str | None = _SHARED_OPTIONS["password"],
    access_mode: str | None = _SHARED_OPTIONS["access_mode"],
    session_name: str | None = _SHARED_OPTIONS["session_name"],
    preserve_token: bool = _SHARED_OPTIONS["preserve_token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    debug: bool = _SHARED_OPTIONS["debug"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List the bugs of a product."""

    with _build_client(
        url, account, password, access_mode, session_name, preserve_token, verify_ssl, timeout, debug
    ) as client:
        try:
            result = client.bugs.list(product_id, browse_type=browse_type)
        except ZentaoError as exc:
            _handle_error(exc)
            return
    _present_output(result, view_id="bugs.list", json_output=output_json)


@users_app.command("list")
def users_list(
    dept_id: int = typer.Option(0, "--dept-id", help="Only list users of this department."),
    url: str = _SHARED_OPTIONS["url"],
    account: str | None = _SHARED_OPTIONS["account"],
    password: str | None = _SHARED_OPTIONS["password"],
    access_mode: str | None = _SHARED_OPTIONS["access_mode"],
    session_name: str | None = _SHARED_OPTIONS["session_name"],
    preserve_token: bool = _SHARED_OPTIONS["preserve_token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    debug: bool = _SHARED_OPTIONS["debug"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List users."""

    with _build_client(
        url, account, password, access_mode, session_name, preserve_token, verify_ssl, timeout, debug
    ) as client:
        try:
            result = client.users.list(dept_id=dept_id)
        except ZentaoError as exc:
            _handle_error(exc)
            return
    _present_output(result, view_id="users.list", json_output=output_json)
