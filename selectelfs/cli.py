"""
selectelfs CLI：认证信息保存一次，之后所有命令通过 selectel 驱动访问容器。
"""

from __future__ import annotations

import getpass
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Optional

import typer

from selectelfs import registry
from selectelfs.cli_config import clear_config, load_config, save_config
from selectelfs.contracts import Config, FilesystemAdapter
from selectelfs.exceptions import FilesystemError, SelectelError
from selectelfs.models import entry_is_dir


def _format_size(n: int) -> str:
    """将字节数格式化为人类可读（KiB/MiB/GiB）。"""
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f} KiB"
    if n < 1024 * 1024 * 1024:
        return f"{n / (1024 * 1024):.1f} MiB"
    return f"{n / (1024 * 1024 * 1024):.1f} GiB"


def _format_timestamp(ts: int | None) -> str:
    if not ts:
        return "-"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


app = typer.Typer(
    name="selectel",
    help="Selectel Cloud Storage CLI. Auth once and save; use saved auth for all commands.",
)

# 可选参数：覆盖已保存的容器
_container_option: type = Annotated[
    Optional[str],
    typer.Option("--container", "-c", help="Override saved container"),
]


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log requests to stderr")] = False,
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _get_adapter(container: str | None) -> FilesystemAdapter | None:
    cfg = load_config()
    if not cfg:
        return None
    if container:
        cfg = {**cfg, "container": container}
    registry.boot()
    return registry.build(cfg)


def _require_adapter(container: str | None) -> FilesystemAdapter:
    try:
        adapter = _get_adapter(container)
    except (SelectelError, ValueError) as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)
    if adapter is None:
        typer.echo("error: no saved credentials. run 'selectel login'", err=True)
        raise typer.Exit(1)
    return adapter


def _close(adapter: FilesystemAdapter) -> None:
    adapter.close()


def _fail(e: Exception) -> typer.Exit:
    typer.echo(f"error: {e}", err=True)
    return typer.Exit(1)


# ------------------------- login / logout / auth -------------------------


@app.command("login", help="Save credentials to local config")
def login(
    username: Annotated[Optional[str], typer.Option("--username", "-u", help="Storage username")] = None,
    password: Annotated[Optional[str], typer.Option("--password", "-p", help="Password (unsafe in shell)")] = None,
    container: Annotated[Optional[str], typer.Option("--container", "-c", help="Container name")] = None,
    container_url: Annotated[Optional[str], typer.Option("--container-url", help="Public base URL of the container")] = None,
) -> None:
    username = username or input("Username: ").strip()
    if not username:
        typer.echo("error: username required", err=True)
        raise typer.Exit(1)
    if password is None:
        password = getpass.getpass("Password: ")
    container = container or input("Container: ").strip()
    if not password or not container:
        typer.echo("error: password and container required", err=True)
        raise typer.Exit(1)
    save_config(username, password, container, container_url)
    typer.echo("Saved.")


@app.command("logout", help="Clear saved credentials")
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
    typer.echo(f"username: {cfg.get('username')}")
    typer.echo(f"container: {cfg.get('container')}")


@app.command("info", help="Show saved container and URL settings")
def info_cmd() -> None:
    cfg = load_config()
    if not cfg:
        typer.echo("Not logged in. Run 'selectel login'.")
        return
    typer.echo(f"username: {cfg.get('username')}")
    typer.echo(f"container: {cfg.get('container')}")
    typer.echo(f"container_url: {cfg.get('container_url') or '-'}")


# ------------------------- list / ls -------------------------


def _cmd_list_impl(prefix: str, container: str | None) -> None:
    adapter = _require_adapter(container)
    try:
        entries = adapter.list_contents(prefix.lstrip("/"))
    except (FilesystemError, SelectelError) as e:
        raise _fail(e)
    finally:
        _close(adapter)
    for e in entries:
        name = e["path"] + ("/" if entry_is_dir(e) else "")
        typer.echo(f"  {name}  {_format_size(e['size'])}  {_format_timestamp(e['timestamp'])}  {e['mimetype']}")


@app.command("list", help="List files under a prefix")
def list_cmd(
    prefix: Annotated[str, typer.Argument(help="Path prefix (default: whole container)")] = "",
    container: _container_option = None,
) -> None:
    _cmd_list_impl(prefix, container)


@app.command("ls", help="Alias for list")
def ls_cmd(
    prefix: Annotated[str, typer.Argument(help="Path prefix (default: whole container)")] = "",
    container: _container_option = None,
) -> None:
    _cmd_list_impl(prefix, container)


# ------------------------- upload / download / cat -------------------------


@app.command("upload", help="Upload a local file")
def upload_cmd(
    path: Annotated[Path, typer.Argument(help="Local file path")],
    remote: Annotated[Optional[str], typer.Argument(help="Remote path (default: local file name)")] = None,
    container: _container_option = None,
) -> None:
    if not path.is_file():
        typer.echo(f"error: not a file: {path}", err=True)
        raise typer.Exit(1)
    remote_path = (remote or path.name).lstrip("/")
    adapter = _require_adapter(container)
    try:
        with path.open("rb") as f:
            adapter.write_stream(remote_path, f, Config())
    except (FilesystemError, SelectelError) as e:
        raise _fail(e)
    finally:
        _close(adapter)
    typer.echo("Uploaded.")


@app.command("download", help="Download a file")
def download_cmd(
    remote_path: Annotated[str, typer.Argument(help="Remote path (e.g. images/logo.png)")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Local path (default: same name)")] = None,
    container: _container_option = None,
) -> None:
    remote = remote_path.lstrip("/")
    out = output if output is not None else Path(Path(remote).name)
    adapter = _require_adapter(container)
    try:
        stream = adapter.read_stream(remote)
    except (FilesystemError, SelectelError) as e:
        raise _fail(e)
    finally:
        _close(adapter)
    with stream:
        out.parent.mkdir(parents=True, exist_ok=True)
        with out.open("wb") as f:
            while True:
                chunk = stream.read(1024 * 1024)
                if not chunk:
                    break
                f.write(chunk)
    typer.echo(f"Saved to {out}.")


@app.command("cat", help="Print a file to stdout")
def cat_cmd(
    remote_path: Annotated[str, typer.Argument(help="Remote path")],
    container: _container_option = None,
) -> None:
    adapter = _require_adapter(container)
    try:
        data = adapter.read(remote_path.lstrip("/"))
    except (FilesystemError, SelectelError) as e:
        raise _fail(e)
    finally:
        _close(adapter)
    typer.echo(data.decode("utf-8", errors="replace"), nl=False)


# ------------------------- mkdir / rmdir / delete -------------------------


@app.command("mkdir", help="Create a directory")
def mkdir_cmd(
    path: Annotated[str, typer.Argument(help="Directory path")],
    container: _container_option = None,
) -> None:
    adapter = _require_adapter(container)
    try:
        adapter.create_directory(path.strip("/"), Config())
    except (FilesystemError, SelectelError) as e:
        raise _fail(e)
    finally:
        _close(adapter)
    typer.echo("Created.")


@app.command("rmdir", help="Delete a directory")
def rmdir_cmd(
    path: Annotated[str, typer.Argument(help="Directory path")],
    container: _container_option = None,
) -> None:
    adapter = _require_adapter(container)
    try:
        adapter.delete_directory(path.strip("/"))
    except (FilesystemError, SelectelError) as e:
        raise _fail(e)
    finally:
        _close(adapter)
    typer.echo("Deleted.")


@app.command("delete", help="Delete a file")
def delete_cmd(
    path: Annotated[str, typer.Argument(help="File path")],
    container: _container_option = None,
) -> None:
    adapter = _require_adapter(container)
    try:
        adapter.delete(path.lstrip("/"))
    except (FilesystemError, SelectelError) as e:
        raise _fail(e)
    finally:
        _close(adapter)
    typer.echo("Deleted.")


# ------------------------- copy / move -------------------------


@app.command("copy", help="Copy a file inside the container")
def copy_cmd(
    source: Annotated[str, typer.Argument(help="Source path")],
    destination: Annotated[str, typer.Argument(help="Destination path")],
    container: _container_option = None,
) -> None:
    adapter = _require_adapter(container)
    try:
        adapter.copy(source.lstrip("/"), destination.lstrip("/"), Config())
    except (FilesystemError, SelectelError) as e:
        raise _fail(e)
    finally:
        _close(adapter)
    typer.echo("Copied.")


@app.command("move", help="Move a file inside the container (copy, then delete source)")
def move_cmd(
    source: Annotated[str, typer.Argument(help="Source path")],
    destination: Annotated[str, typer.Argument(help="Destination path")],
    container: _container_option = None,
) -> None:
    adapter = _require_adapter(container)
    try:
        adapter.move(source.lstrip("/"), destination.lstrip("/"), Config())
    except FilesystemError as e:
        if getattr(e, "copied", False):
            typer.echo(f"warning: {destination} was written but {source} could not be deleted", err=True)
        raise _fail(e)
    finally:
        _close(adapter)
    typer.echo("Moved.")


# ------------------------- exists / stat / url -------------------------


@app.command("exists", help="Exit 0 if the path exists, 1 otherwise")
def exists_cmd(
    path: Annotated[str, typer.Argument(help="File or directory path")],
    container: _container_option = None,
) -> None:
    adapter = _require_adapter(container)
    try:
        found = adapter.file_exists(path.lstrip("/"))
    except (FilesystemError, SelectelError) as e:
        raise _fail(e)
    finally:
        _close(adapter)
    typer.echo("yes" if found else "no")
    if not found:
        raise typer.Exit(1)


@app.command("stat", help="Show MIME type, size and modification time")
def stat_cmd(
    path: Annotated[str, typer.Argument(help="File path")],
    container: _container_option = None,
) -> None:
    remote = path.lstrip("/")
    adapter = _require_adapter(container)
    try:
        mime = adapter.mime_type(remote).mime_type
        size = adapter.file_size(remote).file_size or 0
        modified = adapter.last_modified(remote).last_modified
    except (FilesystemError, SelectelError) as e:
        raise _fail(e)
    finally:
        _close(adapter)
    typer.echo(f"path: {remote}")
    typer.echo(f"mime_type: {mime}")
    typer.echo(f"size: {size} ({_format_size(size)})")
    typer.echo(f"last_modified: {_format_timestamp(modified)}")


@app.command("url", help="Print the public URL of a path")
def url_cmd(
    path: Annotated[str, typer.Argument(help="File path")] = "",
    container: _container_option = None,
) -> None:
    adapter = _require_adapter(container)
    get_url = getattr(adapter, "get_url", None)
    try:
        if get_url is None:
            raise _fail(ValueError("this storage driver has no public URLs"))
        url = get_url(path)
    finally:
        _close(adapter)
    typer.echo(url)


# ------------------------- main -------------------------


def main() -> None:
    app()


if __name__ == "__main__":
    main()
