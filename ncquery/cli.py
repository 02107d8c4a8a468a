"""
ncq 命令行：保存一次连接信息，之后直接执行查询块或列目录。
"""

from __future__ import annotations

import getpass
import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import httpx
import typer

from ncquery.client import WebDAVClient
from ncquery.config import ConnectionSettings, clear_config, load_config, save_config
from ncquery.errors import NCQueryError, ServerError
from ncquery.executor import render_block
from ncquery.filters import filter_records
from ncquery.formatter import format_record
from ncquery.models import FilterCriterion

app = typer.Typer(
    name="ncq",
    help="Query and list files on a Nextcloud / WebDAV server",
    no_args_is_help=True,
)


@app.callback()
def _main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Print debug logs to stderr")] = False,
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _format_size(n: int) -> str:
    """将字节数格式化为人类可读（KiB/MiB/GiB）。"""
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f} KiB"
    if n < 1024 * 1024 * 1024:
        return f"{n / (1024 * 1024):.1f} MiB"
    return f"{n / (1024 * 1024 * 1024):.1f} GiB"


def _connection_error_message(exc: Exception) -> str:
    """把连接测试的失败转换为提示语。"""
    if isinstance(exc, ServerError):
        if exc.status_code == 401:
            return "Authentication failed. Check username and app password."
        if exc.status_code == 404:
            return "URL not found. Check your Nextcloud URL."
    if isinstance(exc, httpx.TransportError):
        return "Network error. Check URL and server availability."
    return f"Connection failed: {exc}"


def _require_settings() -> ConnectionSettings:
    settings = ConnectionSettings.from_config(load_config())
    if not settings.is_complete:
        typer.echo("error: no saved credentials. run 'ncq login'", err=True)
        raise typer.Exit(1)
    return settings


def _client(settings: ConnectionSettings) -> WebDAVClient:
    return WebDAVClient(settings.base_url, settings.username, settings.password)


# ------------------------- login / logout / auth -------------------------


@app.command("login", help="Save connection settings to local config")
def login(
    base_url: Annotated[Optional[str], typer.Option("--base-url", "-b", help="WebDAV URL of the user's files")] = None,
    username: Annotated[Optional[str], typer.Option("--username", "-u", help="Username")] = None,
    password: Annotated[Optional[str], typer.Option("--password", "-p", help="Password or app password (unsafe in shell)")] = None,
) -> None:
    base_url = base_url or input("WebDAV URL (e.g. https://cloud.example.com/remote.php/dav/files/alice/): ").strip()
    if not base_url:
        typer.echo("error: base URL required", err=True)
        raise typer.Exit(1)
    username = username or input("Username: ").strip() or None
    if username and password is None:
        password = getpass.getpass("Password: ")
    save_config(base_url, username, password)
    typer.echo("Saved.")


@app.command("logout", help="Clear saved connection settings")
def logout() -> None:
    if clear_config():
        typer.echo("Cleared.")
    else:
        typer.echo("No saved credentials.")


auth_app = typer.Typer(help="Auth subcommands")
app.add_typer(auth_app, name="auth")


@auth_app.command("status", help="Show whether credentials are saved")
def auth_status() -> None:
    cfg = load_config()
    if not cfg:
        typer.echo("Not logged in.")
        return
    settings = ConnectionSettings.from_config(cfg)
    typer.echo(f"base_url: {settings.base_url}")
    typer.echo(f"username: {settings.username or '-'}")
    typer.echo(f"auth: {'yes' if settings.is_complete else 'no'}")


@app.command("test", help="Verify the saved URL and credentials")
def test_cmd() -> None:
    settings = _require_settings()
    try:
        with _client(settings) as client:
            client.check_connection()
    except (ServerError, httpx.HTTPError, httpx.InvalidURL) as e:
        typer.echo(_connection_error_message(e), err=True)
        raise typer.Exit(1)
    typer.echo("Connection successful!")


# ------------------------- run -------------------------


def _read_query(source: Optional[Path], query: Optional[str]) -> str:
    if query is not None:
        # 命令行中 \n 写作字面量时也按换行处理
        return query.replace("\\n", "\n")
    if source is None or str(source) == "-":
        return sys.stdin.read()
    if not source.is_file():
        typer.echo(f"error: not found: {source}", err=True)
        raise typer.Exit(1)
    return source.read_text(encoding="utf-8")


@app.command("run", help="Run a query block (from file, stdin or --query)")
def run_cmd(
    source: Annotated[Optional[Path], typer.Argument(help="File holding the query block ('-' for stdin)")] = None,
    query: Annotated[Optional[str], typer.Option("--query", "-q", help="Query text; '\\n' separates lines")] = None,
) -> None:
    text = _read_query(source, query)
    result = render_block(text, ConnectionSettings.from_config(load_config()))
    if result.is_error:
        typer.echo(result.message, err=True)
        raise typer.Exit(1)
    if result.message:
        typer.echo(result.message)
        return
    prefix = "" if result.no_bullets else "- "
    for item in result.items:
        typer.echo(f"{prefix}{item}")


# ------------------------- list / ls -------------------------


def _parse_filters(pairs: list[str] | None) -> list[FilterCriterion]:
    criteria: list[FilterCriterion] = []
    for pair in pairs or []:
        if "=" not in pair:
            typer.echo(f"error: expected KEY=VALUE: {pair}", err=True)
            raise typer.Exit(1)
        k, v = pair.split("=", 1)
        criteria.append(FilterCriterion(k.strip(), v.strip()))
    return criteria


def _cmd_list_impl(folder: str, fmt: Optional[str], filters: list[str] | None) -> None:
    criteria = _parse_filters(filters)
    settings = _require_settings()
    try:
        with _client(settings) as client:
            records = client.list_records(folder or "/")
    except (NCQueryError, httpx.HTTPError, httpx.InvalidURL) as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)
    for r in filter_records(records, criteria):
        if fmt:
            typer.echo(format_record(fmt, r))
        else:
            name = f"{r.name}/" if r.is_folder else r.name
            typer.echo(f"  {name}  {_format_size(r.size)}  {r.last_modified or '-'}")


@app.command("list", help="List a folder")
def list_cmd(
    folder: Annotated[str, typer.Argument(help="Folder path (default: /)")] = "/",
    fmt: Annotated[Optional[str], typer.Option("--format", "-f", help="Output template, e.g. '{{name}} {{sizekb}} KB'")] = None,
    filters: Annotated[Optional[list[str]], typer.Option("--filter", "-F", help="KEY=VALUE filter, repeatable")] = None,
) -> None:
    _cmd_list_impl(folder, fmt, filters)


@app.command("ls", help="Alias for list")
def ls_cmd(
    folder: Annotated[str, typer.Argument(help="Folder path (default: /)")] = "/",
    fmt: Annotated[Optional[str], typer.Option("--format", "-f", help="Output template, e.g. '{{name}} {{sizekb}} KB'")] = None,
    filters: Annotated[Optional[list[str]], typer.Option("--filter", "-F", help="KEY=VALUE filter, repeatable")] = None,
) -> None:
    _cmd_list_impl(folder, fmt, filters)


# ------------------------- info -------------------------


@app.command("info", help="Show saved base_url and auth status")
def info_cmd() -> None:
    cfg = load_config()
    if not cfg:
        typer.echo("Not logged in. Run 'ncq login' first.")
        return
    typer.echo(f"base_url: {cfg.get('base_url')}")
    typer.echo(f"auth: {'yes' if (cfg.get('username') and cfg.get('password')) else 'no'}")


# ------------------------- main -------------------------


def main() -> None:
    app()


if __name__ == "__main__":
    main()
