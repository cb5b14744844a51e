"""Command line interface for the medialib indexer."""

from __future__ import annotations

import difflib
from typing import Any, Iterable, Sequence

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from medialib.config import ConfigError, ConfigManager, MedialibConfig, resolve_with_precedence
from medialib.ingestion import DirectoryWalker, ScanError
from medialib.ingestion.pipeline import ScanOrchestrator
from medialib.inventory import InventoryError, InventoryRepository
from medialib.inventory.apply import ApplySummary, apply_changes
from medialib.library import LibraryError, LibrarySettingsService, normalize_library_path
from medialib.logging_config import configure_logging
from medialib.reconciliation import ChangeOperation, ChangeRecord, summarize

console = Console()

_OPERATION_STYLES = {
    ChangeOperation.NONE: "dim",
    ChangeOperation.CREATED: "green",
    ChangeOperation.UPDATED: "cyan",
    ChangeOperation.MOVED: "blue",
    ChangeOperation.DELETED: "red",
    ChangeOperation.UNSUPPORTED: "yellow",
}


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    if summary_only and mode not in {"summary", "warning", "error"}:
        return

    console.print(message)


def _format_summary_line(command: str, target: str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


def _load_config(manager: ConfigManager) -> MedialibConfig:
    try:
        manager.ensure_exists()
        return manager.load()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _config_body(manager: ConfigManager) -> list[str]:
    """Return configuration file lines without the comment header."""
    return [line for line in manager.read_text().splitlines() if not line.startswith("#")]


def _library_service() -> LibrarySettingsService:
    return LibrarySettingsService(ConfigManager())


def _change_payload(change: ChangeRecord) -> dict[str, Any]:
    scanned = change.file
    record = change.record
    return {
        "operation": change.operation.value,
        "path": change.path,
        "content_hash": scanned.content_hash if scanned else record.content_hash,
        "size_bytes": scanned.size_bytes if scanned else record.size_bytes,
        "record_id": record.id if record else None,
        "previous_path": record.path if record and record.path != change.path else None,
    }


def _render_changes(changes: Sequence[ChangeRecord], *, include_unchanged: bool) -> Table:
    table = Table(title="Library changes", show_lines=False)
    table.add_column("Operation", no_wrap=True)
    table.add_column("Path", overflow="fold")
    table.add_column("Details", overflow="fold")
    for change in changes:
        if change.operation is ChangeOperation.NONE and not include_unchanged:
            continue
        style = _OPERATION_STYLES[change.operation]
        details = ""
        if change.operation is ChangeOperation.MOVED and change.record is not None:
            details = f"from {change.record.path}"
        elif change.operation is ChangeOperation.UPDATED and change.file is not None:
            details = f"hash {change.file.content_hash}"
        table.add_row(f"[{style}]{change.operation.value}[/{style}]", change.path, details)
    return table


def _print_values(values: Iterable[str], *, empty_message: str) -> None:
    items = list(values)
    if not items:
        console.print(f"[yellow]{empty_message}[/yellow]")
        return
    for item in items:
        console.print(item, soft_wrap=True)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="medialib")
def cli() -> None:
    """medialib indexes media files under configured library roots."""


@cli.command()
@click.option("--apply", "apply_results", is_flag=True, help="Persist changes to the inventory.")
@click.option("--all", "show_all", is_flag=True, help="Include unchanged files in the table.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the changes.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (repeatable).")
@click.pass_context
def scan(
    ctx: click.Context,
    apply_results: bool,
    show_all: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
    verbose: int,
) -> None:
    """Scan the configured library roots and classify changes.

    Args:
        ctx: Click context for parameter source inspection.
        apply_results: When True, write CREATED/UPDATED/MOVED/DELETED changes.
        show_all: When True, list unchanged files as well.
        json_output: When True, emit JSON instead of textual output.
        summary_mode: When True, restrict output to summary lines and warnings.
        quiet: When True, suppress non-error output entirely.
        verbose: Number of ``-v`` flags given.

    Raises:
        click.ClickException: If the scan fails or arguments conflict.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        config = manager.load()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return

    configure_logging(config.logging, verbose=verbose)

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE
    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        quiet_enabled = False
        summary_only = False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )

    roots = [normalize_library_path(root) for root in config.library.paths]
    if not roots and not json_output:
        _emit_message(
            "[yellow]No library paths configured. "
            "Add one with `medialib library paths add PATH`.[/yellow]",
            mode="warning",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

    repository = InventoryRepository(config.inventory.path)
    orchestrator = ScanOrchestrator(
        LibrarySettingsService(manager),
        repository,
        walker=DirectoryWalker(
            follow_symlinks=config.scan.follow_symlinks,
            include_hidden=config.scan.include_hidden,
        ),
        workers=config.scan.workers,
        revalidate_roots=config.scan.revalidate_roots,
    )

    try:
        changes = orchestrator.scan()
    except ScanError as exc:
        failed_path = getattr(exc, "path", None)
        details = {"path": failed_path} if failed_path else None
        _handle_cli_error(
            str(exc), code="scan_error", json_output=json_output, details=details, original=exc
        )
        return
    except InventoryError as exc:
        _handle_cli_error(str(exc), code="inventory_error", json_output=json_output, original=exc)
        return
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return

    counts = summarize(changes)
    applied: ApplySummary | None = None
    if apply_results:
        try:
            applied = apply_changes(repository, changes)
        except InventoryError as exc:
            _handle_cli_error(
                str(exc),
                code="inventory_error",
                json_output=json_output,
                details={"status": exc.code},
                original=exc,
            )
            return

    if json_output:
        payload: dict[str, Any] = {
            "roots": roots,
            "changes": [_change_payload(change) for change in changes],
            "counts": counts,
        }
        if applied is not None:
            payload["applied"] = applied.as_dict()
        console.print_json(data=payload)
        return

    if any(change.operation is not ChangeOperation.NONE for change in changes) or show_all:
        _emit_message(
            _render_changes(changes, include_unchanged=show_all),
            mode="detail",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

    unsupported = counts[ChangeOperation.UNSUPPORTED.value]
    if unsupported:
        _emit_message(
            f"[yellow]{unsupported} file(s) could not be reconciled automatically.[/yellow]",
            mode="warning",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

    target = f"{len(roots)} library root(s)"
    _emit_message(
        _format_summary_line("Scan", target, counts),
        mode="summary",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )
    if applied is not None:
        _emit_message(
            _format_summary_line("Apply", str(repository.path), applied.as_dict()),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )


@cli.group()
def library() -> None:
    """Manage library roots and the MIME allow-list."""


@library.group("paths")
def library_paths() -> None:
    """Manage the directories scanned for media files."""


@library_paths.command("list")
def library_paths_list() -> None:
    """List configured library roots."""
    try:
        paths = _library_service().get_library_paths()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    _print_values(paths, empty_message="No library paths configured.")


@library_paths.command("add")
@click.argument("path", type=click.Path(path_type=str))
def library_paths_add(path: str) -> None:
    """Validate PATH and add it to the library roots."""
    try:
        stored = _library_service().add_library_path(path)
    except (LibraryError, ConfigError) as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Added library path {stored}.[/green]")


@library_paths.command("remove")
@click.argument("path", type=click.Path(path_type=str))
def library_paths_remove(path: str) -> None:
    """Remove PATH from the library roots."""
    try:
        removed = _library_service().remove_library_path(path)
    except (LibraryError, ConfigError) as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Removed library path {removed}.[/green]")


@library_paths.command("set")
@click.argument("paths", nargs=-1, type=click.Path(path_type=str))
def library_paths_set(paths: tuple[str, ...]) -> None:
    """Replace the library roots with PATHS; nothing changes if any is invalid."""
    try:
        stored = _library_service().set_library_paths(paths)
    except (LibraryError, ConfigError) as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Library paths set ({len(stored)} configured).[/green]")


@library.group("mimes")
def library_mimes() -> None:
    """Manage the MIME types eligible for indexing."""


@library_mimes.command("list")
def library_mimes_list() -> None:
    """List allowed MIME types."""
    try:
        mime_types = _library_service().get_mime_types()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    _print_values(mime_types, empty_message="No MIME types configured; scans index nothing.")


@library_mimes.command("add")
@click.argument("mime_type")
def library_mimes_add(mime_type: str) -> None:
    """Allow MIME_TYPE."""
    try:
        stored = _library_service().add_mime_type(mime_type)
    except (LibraryError, ConfigError) as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Added MIME type {stored}.[/green]")


@library_mimes.command("remove")
@click.argument("mime_type")
def library_mimes_remove(mime_type: str) -> None:
    """Stop allowing MIME_TYPE."""
    try:
        removed = _library_service().remove_mime_type(mime_type)
    except (LibraryError, ConfigError) as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Removed MIME type {removed}.[/green]")


@library_mimes.command("set")
@click.argument("mime_types", nargs=-1)
def library_mimes_set(mime_types: tuple[str, ...]) -> None:
    """Replace the MIME allow-list with MIME_TYPES."""
    try:
        stored = _library_service().set_mime_types(mime_types)
    except (LibraryError, ConfigError) as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]MIME types set ({len(stored)} configured).[/green]")


@cli.group()
def inventory() -> None:
    """Inspect the persisted inventory."""


@inventory.command("list")
@click.option("--json", "json_output", is_flag=True, help="Emit inventory records as JSON.")
def inventory_list(json_output: bool) -> None:
    """List every indexed file.

    Raises:
        click.ClickException: If the inventory cannot be read.
    """
    config = _load_config(ConfigManager())
    repository = InventoryRepository(config.inventory.path)
    try:
        records = sorted(repository.get_all_records(), key=lambda record: record.path)
    except InventoryError as exc:
        _handle_cli_error(str(exc), code="inventory_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(
            data={"records": [record.model_dump(mode="json") for record in records]}
        )
        return

    if not records:
        console.print(f"[yellow]Inventory at {repository.path} is empty.[/yellow]")
        return

    table = Table(title=f"Inventory ({len(records)} files)")
    table.add_column("Path", overflow="fold")
    table.add_column("Checksum", no_wrap=True)
    table.add_column("Size", justify="right")
    table.add_column("Id", no_wrap=True)
    for record in records:
        table.add_row(record.path, record.content_hash, str(record.size_bytes), record.id)
    console.print(table)


@cli.group()
def config() -> None:
    """Manage medialib configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


def _store_config_value(manager: ConfigManager, segments: Sequence[str], value: Any) -> None:
    """Write one dotted key, routing library settings through their validators.

    Raises:
        ConfigError: If the value does not validate.
        LibraryError: If a library path or MIME type is rejected.
    """
    if segments[0] != "library":
        manager.update(segments, value)
        return

    service = LibrarySettingsService(manager)
    key = ".".join(segments)
    if len(segments) == 2 and segments[1] in ("paths", "mime_types"):
        if not isinstance(value, list):
            raise ConfigError(f"{key} must be a list.")
        if segments[1] == "paths":
            service.set_library_paths(str(item) for item in value)
        else:
            service.set_mime_types(str(item) for item in value)
        return

    if len(segments) == 1 and isinstance(value, dict):
        manager.update(segments, service.check_section(value))
        return

    manager.update(segments, value)


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'scan.workers'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        manager.ensure_exists()
        before = _config_body(manager)
        _store_config_value(manager, segments, parsed_value)
    except (ConfigError, LibraryError) as exc:
        raise click.ClickException(str(exc)) from exc

    diff = list(
        difflib.unified_diff(
            before,
            _config_body(manager),
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    library_section = parsed.get("library")
    if isinstance(library_section, dict) and library_section != manager.load_file_overrides().get(
        "library"
    ):
        try:
            parsed["library"] = LibrarySettingsService(manager).check_section(library_section)
        except LibraryError as exc:
            raise click.ClickException(str(exc)) from exc

    try:
        resolve_with_precedence(defaults=MedialibConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
