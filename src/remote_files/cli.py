"""CLI entry point for rf."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, NoReturn

import click
from rich.console import Console
from rich.markup import escape

from remote_files import __version__
from remote_files.client import StorageClient
from remote_files.exceptions import (
    ConfigurationError,
    ProfileError,
    RemoteFilesError,
    describe,
)
from remote_files.formatters import render_entries, render_profiles
from remote_files.models import (
    SCHEMA_KEY,
    Bucket,
    BucketKind,
    CliState,
    Configuration,
    GcsStorageClass,
    S3StorageClass,
    bucket_from_dict,
    bucket_to_dict,
)
from remote_files.schema import write_schemas
from remote_files.stored import Stored, get_home_folder, try_init
from remote_files.url_path import UrlDirPath, UrlPath

console = Console()
logger = logging.getLogger(__name__)

_NEXT_PAGE_PROMPT = (
    "press 'q' to quit, type an integer to download a file, or anything else to keep scrolling"
)


def _abort(error: str | RemoteFilesError) -> NoReturn:
    if isinstance(error, str):
        console.print(f"[bold red]Error:[/] {escape(error)}", soft_wrap=True)
    else:
        message, *causes = describe(error)
        console.print(f"[bold red]Error:[/] {escape(message)}", soft_wrap=True)
        for cause in causes:
            console.print(f"  [dim]caused by:[/] {escape(cause)}", soft_wrap=True)
        if error.hint:
            console.print(f"[yellow]hint:[/] {escape(error.hint)}", soft_wrap=True)
    sys.exit(1)


def _configure_logging(verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)


@dataclass
class AppContext:
    """Per-invocation state handed to every command through ``ctx.obj``."""

    cli_state: Stored[CliState]
    configuration: Stored[Configuration]
    profile_override: str | None = None

    def profile_name(self) -> str:
        """Resolve the active profile: ``--profile`` first, then the current one.

        Raises:
            ProfileError: If nothing is selected or the name is unknown.
        """
        name = self.profile_override or self.cli_state.get().current
        if name is None:
            raise ProfileError(
                "no profile selected",
                hint="Run 'rf profile set' or pass --profile.",
            )
        if name not in self.configuration.get().buckets:
            raise ProfileError(
                f"no profile '{name}' found",
                hint="Run 'rf profile list' to see the available profiles.",
            )
        return name

    def bucket(self) -> Bucket:
        return self.configuration.get().buckets[self.profile_name()]

    def client(self) -> StorageClient:
        return StorageClient.from_bucket(self.bucket())

    def persist(self) -> None:
        self.configuration.persist()
        self.cli_state.persist()

    def close(self) -> None:
        self.cli_state.close()
        self.configuration.close()


class _AliasedGroup(click.Group):
    """Click Group that also resolves short aliases of its subcommands.

    ``rf l /docs`` routes to ``list`` and ``rf p rm old`` to ``profile
    remove``.  Aliases are looked up before the regular command table, and
    the canonical name is reported back so help and error output never show
    the alias.
    """

    def __init__(self, *args: Any, aliases: dict[str, str] | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.aliases = aliases or {}

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        _, cmd, rest = super().resolve_command(ctx, args)
        return (cmd.name if cmd is not None else None), cmd, rest


class _BucketParamType(click.ParamType):
    """A bucket definition given inline as ``{"type": ..., "configuration": {...}}``."""

    name = "CONFIG"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if not isinstance(value, str):
            return value
        try:
            return bucket_from_dict(json.loads(value))
        except json.JSONDecodeError as exc:
            self.fail(f"not valid JSON: {exc}", param, ctx)
        except ConfigurationError as exc:
            self.fail(str(exc), param, ctx)


def _parse_url(text: str) -> UrlPath:
    try:
        return UrlPath.parse(text)
    except RemoteFilesError as exc:
        _abort(exc)


# --- interactive profile creation ------------------------------------------

def _ask(text: str, hide_input: bool = False) -> str | None:
    answer = click.prompt(text, default="", show_default=False, hide_input=hide_input)
    return answer.strip() or None


def _enum_proc(enum_cls: type[Enum]) -> Callable[[str], str | None]:
    choices = [member.value for member in enum_cls]

    def convert(value: str) -> str | None:
        value = value.strip().upper()
        if not value:
            return None
        if value not in choices:
            raise click.BadParameter(f"expected one of {', '.join(choices)}")
        return value

    return convert


def _ask_choice(text: str, enum_cls: type[Enum]) -> str | None:
    choices = ", ".join(member.value for member in enum_cls)
    return click.prompt(
        f"{text} [{choices}]",
        default="",
        show_default=False,
        value_proc=_enum_proc(enum_cls),
    )


def _prompt_gcs() -> dict[str, Any]:
    return {
        "name": click.prompt("Bucket name"),
        "credential": _ask(
            "Base64 service account credential (empty to use application default credentials)",
            hide_input=True,
        ),
        "credentialPath": _ask("Credential file path"),
        "defaultStorageClass": _ask_choice("Default storage class", GcsStorageClass),
        "endpoint": _ask("Custom endpoint"),
        "prefix": _ask("Prefix used as root folder"),
        "predefinedAcl": _ask("Predefined ACL"),
    }


def _prompt_s3() -> dict[str, Any]:
    return {
        "name": click.prompt("Bucket name"),
        "region": _ask("Region"),
        "accessKeyId": _ask("Access key id", hide_input=True),
        "secretAccessKey": _ask("Secret access key", hide_input=True),
        "defaultStorageClass": _ask_choice("Default storage class", S3StorageClass),
        "endpoint": _ask("Custom endpoint"),
        "prefix": _ask("Prefix used as root folder"),
    }


_BUCKET_PROMPTS: dict[BucketKind, Callable[[], dict[str, Any]]] = {
    BucketKind.GCS: _prompt_gcs,
    BucketKind.S3: _prompt_s3,
}


def _prompt_bucket() -> Bucket:
    kind = BucketKind(
        click.prompt(
            "Which type of bucket do you want to track?",
            type=click.Choice([k.value for k in BucketKind]),
        )
    )
    answers = _BUCKET_PROMPTS[kind]()
    configuration = {key: value for key, value in answers.items() if value is not None}
    return bucket_from_dict({"type": kind.value, "configuration": configuration})


def _select_profile(app: AppContext, text: str) -> str:
    names = sorted(app.configuration.get().buckets)
    if not names:
        _abort(ProfileError("no profiles configured", hint="Run 'rf profile add' first."))
    return click.prompt(text, type=click.Choice(names))


# --- commands --------------------------------------------------------------

@click.group(
    cls=_AliasedGroup,
    aliases={
        "p": "profile", "pr": "profile", "prof": "profile",
        "l": "list", "li": "list",
        "d": "delete", "del": "delete",
        "u": "upload", "up": "upload",
        "dw": "download", "down": "download",
    },
)
@click.option("--profile", "-p", default=None, help="Override the current profile.")
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.version_option(__version__, "--version", "-V")
@click.pass_context
def main(ctx: click.Context, profile: str | None, verbose: int) -> None:
    """Manage bucket profiles and the files stored in them.

    \b
    Examples:
      rf profile add
      rf profile set my-bucket
      rf list /reports --paginate 20
      rf upload ./report.pdf /reports
      rf download /reports/report.pdf ./out
    """
    _configure_logging(verbose)
    try:
        home = get_home_folder()
        cli_state, configuration = try_init(home)
    except RemoteFilesError as exc:
        _abort(exc)

    logger.debug("Using home folder %s", home)
    app = AppContext(cli_state=cli_state, configuration=configuration, profile_override=profile)
    ctx.obj = app
    ctx.call_on_close(app.close)


@main.group(
    "profile",
    cls=_AliasedGroup,
    aliases={
        "l": "list", "li": "list",
        "a": "add",
        "g": "get",
        "s": "set",
        "r": "remove", "rm": "remove",
        "i": "info",
    },
)
def profile_group() -> None:
    """Manage available profiles (bucket connections)."""


@profile_group.command("list")
@click.pass_obj
def profile_list(app: AppContext) -> None:
    """List available profiles."""
    configuration = app.configuration.get()
    if not configuration.buckets:
        console.print("[yellow]No profiles configured.[/] Use 'rf profile add' to create one.")
        return
    console.print(render_profiles(configuration, app.cli_state.get().current))
    console.print("[dim]Use 'rf profile set' to change the current profile.[/]")


@profile_group.command("add")
@click.argument("name", required=False)
@click.argument("config", required=False, type=_BucketParamType())
@click.option("--current", is_flag=True, default=False, help="Select the new profile afterwards.")
@click.pass_obj
def profile_add(app: AppContext, name: str | None, config: Bucket | None, current: bool) -> None:
    """Add a profile named NAME.

    CONFIG is the bucket definition as JSON.  Anything missing is asked for
    interactively.

    \b
    Examples:
      rf profile add
      rf profile add docs '{"type": "s3", "configuration": {"name": "docs"}}' --current
    """
    if name is None:
        name = click.prompt("Insert a name for your new profile").strip()
    if not name.strip():
        _abort(ProfileError("profile name must not be empty"))
    if name == SCHEMA_KEY:
        _abort(
            ProfileError(
                f"'{SCHEMA_KEY}' is reserved and cannot name a profile",
                hint="Choose another profile name.",
            )
        )
    if name in app.configuration.get().buckets:
        _abort(ProfileError(f"profile '{name}' is already set"))

    if config is None:
        try:
            config = _prompt_bucket()
        except ConfigurationError as exc:
            _abort(exc)

    app.configuration.get_mut().buckets[name] = config
    if current:
        app.cli_state.get_mut().current = name

    try:
        app.persist()
    except RemoteFilesError as exc:
        _abort(exc)
    console.print(f"[bold green]Added profile[/] '{escape(name)}'")


@profile_group.command("get")
@click.pass_obj
def profile_get(app: AppContext) -> None:
    """Print the current profile."""
    try:
        name = app.profile_name()
    except ProfileError as exc:
        _abort(exc)
    console.print(f"Current profile is [bold]{escape(name)}[/]")


@profile_group.command("set")
@click.argument("name", required=False)
@click.pass_obj
def profile_set(app: AppContext, name: str | None) -> None:
    """Set the current profile, choosing interactively when NAME is omitted."""
    if name is None:
        name = _select_profile(app, "Select the next current profile")
    elif name not in app.configuration.get().buckets:
        _abort(ProfileError(f"profile '{name}' does not exist"))

    app.cli_state.get_mut().current = name
    try:
        app.cli_state.persist()
    except RemoteFilesError as exc:
        _abort(exc)
    console.print(f"[bold green]Current profile set to[/] '{escape(name)}'")


@profile_group.command("remove")
@click.argument("name", required=False)
@click.option("--yes", "-y", is_flag=True, default=False, help="Skip confirmation prompt.")
@click.pass_obj
def profile_remove(app: AppContext, name: str | None, yes: bool) -> None:
    """Remove a profile, choosing interactively when NAME is omitted."""
    if name is None:
        name = _select_profile(app, "Select the profile you want to remove")
        yes = False
    elif name not in app.configuration.get().buckets:
        _abort(ProfileError(f"profile '{name}' does not exist"))

    if not yes and not click.confirm(f"Are you sure you want to delete the profile named '{name}'?"):
        console.print("[dim]Aborted.[/]")
        return

    del app.configuration.get_mut().buckets[name]
    state = app.cli_state.get_mut()
    if state.current == name:
        state.current = None

    try:
        app.persist()
    except RemoteFilesError as exc:
        _abort(exc)
    console.print(f"[bold green]Removed profile[/] '{escape(name)}'")


@profile_group.command("info")
@click.argument("name")
@click.pass_obj
def profile_info(app: AppContext, name: str) -> None:
    """Print the configuration of profile NAME with secrets redacted."""
    bucket = app.configuration.get().buckets.get(name)
    if bucket is None:
        _abort(ProfileError(f"profile '{name}' does not exist"))
    click.echo(json.dumps(bucket_to_dict(bucket, reveal=False), indent=2, sort_keys=True))


@main.command("list")
@click.argument("path", required=False, default="/")
@click.option(
    "--paginate",
    "-p",
    type=click.IntRange(min=1),
    default=None,
    help="Page through every entry, N per page.",
)
@click.pass_obj
def list_cmd(app: AppContext, path: str, paginate: int | None) -> None:
    """List the content of the remote folder PATH (default: the root).

    A trailing slash is always assumed, so only directories are listed.
    Without --paginate only the first entries are shown.

    \b
    Examples:
      rf list
      rf list /reports/2024 --paginate 25
    """
    directory = UrlDirPath.from_url_path(_parse_url(path))
    try:
        client = app.client()
        pipeline = client.list(directory, paginate)
        page_count = 0
        for page in pipeline:
            page_count += 1
            title = f"{directory}  (page {page_count})"
            console.print(render_entries(page, title=title, truncated=not pipeline.paginate))
            if not pipeline.paginate:
                break

            answer = click.prompt(
                _NEXT_PAGE_PROMPT, default="", show_default=False, prompt_suffix=" 👀 : "
            ).strip()
            if answer.lower() == "q":
                break
            if not answer.isdigit() or not 1 <= int(answer) <= len(page):
                continue

            entry = page[int(answer) - 1]
            if not entry.is_file:
                console.print("[bold red]Error:[/] download is available for files only")
                break
            remote = f"{directory}{entry.name}"
            content = client.download(remote)
            console.print(f"[bold green]Printing[/] '{escape(remote)}'")
            click.echo(content)
            console.print("[dim]=== EOF ===[/]")
            break
    except RemoteFilesError as exc:
        _abort(exc)

    if page_count == 0:
        console.print(f"[yellow]No entries found under {escape(str(directory))}[/]")
    if pipeline.dropped:
        console.print(f"[yellow]{pipeline.dropped} entries could not be read and were skipped.[/]")


@main.command("delete")
@click.argument("path")
@click.option("--yes", "-y", is_flag=True, default=False, help="Skip confirmation prompt.")
@click.pass_obj
def delete_cmd(app: AppContext, path: str, yes: bool) -> None:
    """Delete the file or folder at PATH, recursively."""
    remote = _parse_url(path).to_absolute_path() or "/"
    try:
        client = app.client()
        if not yes and not click.confirm(f"Delete '{remote}' and everything below it?"):
            console.print("[dim]Aborted.[/]")
            return
        client.delete(remote)
    except RemoteFilesError as exc:
        _abort(exc)
    console.print(f"[bold green]Deleted[/] {escape(remote)}")


@main.command("upload")
@click.argument("src", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("dest")
@click.option("--content-type", default=None, help="Content type (default: guessed from SRC).")
@click.pass_obj
def upload_cmd(app: AppContext, src: Path, dest: str, content_type: str | None) -> None:
    """Upload the local file SRC into the remote folder DEST.

    Only the file name of SRC matters; it is appended to DEST, and any file
    name given as part of DEST is ignored.

    \b
    Examples:
      rf upload ./report.pdf /reports
    """
    directory = UrlDirPath.from_url_path(_parse_url(dest))
    try:
        client = app.client()
        with console.status(f"Uploading {escape(src.name)}..."):
            remote = client.upload(src, directory, content_type)
    except RemoteFilesError as exc:
        _abort(exc)
    console.print(f"[bold green]Uploaded[/] {escape(str(src))} → {escape(remote)}")


@main.command("download")
@click.argument("src")
@click.argument(
    "dest",
    required=False,
    default=".",
    type=click.Path(file_okay=False, path_type=Path),
)
@click.pass_obj
def download_cmd(app: AppContext, src: str, dest: Path) -> None:
    """Download the remote file SRC into the local folder DEST (default: '.')."""
    remote = _parse_url(src)
    remote_path = remote.to_absolute_path()
    if remote_path is None or remote.name is None:
        _abort("cannot download the root folder; pass the path of a file")

    try:
        client = app.client()
        with console.status(f"Downloading {escape(remote_path)}..."):
            content = client.download(remote_path)
    except RemoteFilesError as exc:
        _abort(exc)

    target = dest / remote.name
    try:
        dest.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError as exc:
        _abort(f"cannot write file '{target}': {exc}")
    console.print(f"[bold green]Downloaded[/] {escape(remote_path)} → {escape(str(target))}")


@main.command("schema")
@click.argument(
    "directory",
    required=False,
    type=click.Path(file_okay=False, path_type=Path),
)
@click.pass_obj
def schema_cmd(app: AppContext, directory: Path | None) -> None:
    """Write the JSON Schemas of configuration.json and rf.json into DIRECTORY.

    DIRECTORY defaults to a 'schemas' folder next to the state files.  Set
    "$schema" in configuration.json to the written file to have editors
    validate profiles.
    """
    target = directory if directory is not None else app.configuration.path.parent / "schemas"
    try:
        written = write_schemas(target)
    except RemoteFilesError as exc:
        _abort(exc)
    for path in written:
        console.print(f"[bold green]Wrote[/] {escape(str(path))}")
