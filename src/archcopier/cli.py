from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import typer
from pydantic import ValidationError as PydanticValidationError

from archcopier.alerting.notifier import build_notifier
from archcopier.common.config import load_config
from archcopier.common.errors import ArchCopierError, ValidationError
from archcopier.common.log import setup_logging
from archcopier.common.schema import DEFAULT_POLICY, CopyJob, CountLimit, FreeMultiple, FreePercent, Policy
from archcopier.copier import archive_file

EPILOG = (
    "Examples: arch-copier C:\\data\\report.zip D:\\archive -S=20 | "
    "arch-copier /home/user/data.tar.gz /mnt/backup -L=50 -O. "
    "If no policy (-L, -P, -S) is given, -P=10 is used (10% free space)."
)

app = typer.Typer(
    help="arch-copier: copy a file with a timestamped name and manage the archive by limits",
    epilog=EPILOG,
    add_completion=False,
)


def _fail(err: Exception) -> NoReturn:
    typer.echo(f"Error: {err}", err=True)
    raise typer.Exit(code=1)


def _value(raw: str) -> str:
    # accept the "-L=5" spelling as well as "-L 5"
    return raw[1:] if raw.startswith("=") else raw


def parse_policy(limit: str | None, percent: str | None, multiple: str | None) -> Policy:
    given = [flag for flag, v in (("-L", limit), ("-P", percent), ("-S", multiple)) if v is not None]
    if len(given) > 1:
        raise ValidationError(f"only one policy may be given, got {' and '.join(given)}")

    try:
        if limit is not None:
            return CountLimit(max_files=_value(limit))
        if percent is not None:
            return FreePercent(percent=_value(percent))
        if multiple is not None:
            return FreeMultiple(multiple=_value(multiple))
    except PydanticValidationError as e:
        if limit is not None:
            raise ValidationError("-L value must be a positive integer") from e
        if percent is not None:
            raise ValidationError("-P value must be between 0 and 100") from e
        raise ValidationError("-S value must be a positive integer") from e
    return DEFAULT_POLICY


@app.command()
def run(
    ctx: typer.Context,
    source: Path | None = typer.Argument(None, help="File to archive.", show_default=False),
    target: Path | None = typer.Argument(None, help="Archive directory (created if missing).", show_default=False),
    limit: str | None = typer.Option(None, "--limit", "-L", help="Keep N files in the target directory."),
    percent: str | None = typer.Option(None, "--free-percent", "-P", help="Keep at least N% of the disk free."),
    multiple: str | None = typer.Option(
        None, "--free-multiple", "-S", help="Keep free space of N x the size of the copied file."
    ),
    overwrite: bool = typer.Option(False, "--overwrite", "-O", help="Overwrite an existing file of the same name."),
    config: Path | None = typer.Option(None, "--config", "-c", help="YAML file with logging/notify settings."),
    notify_url: str | None = typer.Option(None, "--notify-url", help="Webhook to report the outcome to."),
    notify_token: str | None = typer.Option(None, "--notify-token", help="Bearer token for the webhook."),
) -> None:
    flags = (limit, percent, multiple, overwrite, config, notify_url, notify_token)
    if source is None and target is None and not any(flags):
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)

    try:
        if source is None or target is None:
            raise ValidationError("source file and target directory are required")
        job = CopyJob(source=source, target=target, policy=parse_policy(limit, percent, multiple), overwrite=overwrite)
        cfg = load_config(config)
    except ValidationError as e:
        _fail(e)

    if notify_url:
        cfg.notify.url = notify_url
    if notify_token:
        cfg.notify.token = notify_token

    setup_logging(cfg.logging, name="arch-copier")
    log = logging.getLogger("archcopier.cli")
    log.debug("job: source=%s target=%s policy=%r overwrite=%s", job.source, job.target, job.policy, job.overwrite)

    try:
        result = archive_file(job, build_notifier(cfg.notify))
    except ArchCopierError as e:
        _fail(e)

    if result.outcome == "skipped":
        typer.echo(f"File {result.destination.name} already exists. Skipping.")
    else:
        typer.echo(f"Copied as: {result.destination.name}")


if __name__ == "__main__":
    app()
