import logging
import os
from typing import Optional

import click
from click.core import ParameterSource
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from cli import __version__
from cli.utils import error_exit, exit_code_for_error
from object_editor.config import EditorSettings
from object_editor.editor import Editor, EditorError
from object_editor.engine import EditSyncEngine, SessionAbortedError
from object_editor.location import ObjectLocation, StorageProvider, parse_object_uri
from object_editor.logging_config import parse_level, setup_colored_logging
from object_editor.storage import RetryPolicy, StorageError, create_storage_backend

log = logging.getLogger(__name__)


def resolve_location(
    ctx: click.Context,
    storage: str,
    bucket: Optional[str],
    key: Optional[str],
    uri: Optional[str],
    region: Optional[str],
) -> ObjectLocation:
    """Build the ObjectLocation from either --uri or --bucket/--key.

    Raises:
        click.UsageError: If the options are missing, combined or malformed.
    """
    if uri and (bucket or key):
        raise click.UsageError("--uri cannot be combined with --bucket/--key.", ctx=ctx)
    if key and not bucket:
        raise click.UsageError("--key requires --bucket.", ctx=ctx)

    provider = StorageProvider(storage.lower())
    if uri:
        try:
            uri_provider, bucket, key = parse_object_uri(uri)
        except ValueError as e:
            raise click.UsageError(str(e), ctx=ctx) from e
        storage_was_given = ctx.get_parameter_source("storage") not in (ParameterSource.DEFAULT, None)
        if storage_was_given and uri_provider is not provider:
            raise click.UsageError(
                f"--storage {provider.value} does not match the {uri_provider.scheme}:// URI.", ctx=ctx
            )
        provider = uri_provider
    elif not bucket:
        raise click.UsageError("Provide either --uri or --bucket and --key.", ctx=ctx)
    elif not key:
        raise click.UsageError("--bucket requires --key.", ctx=ctx)

    try:
        return ObjectLocation(provider=provider, bucket=bucket, key=key, region=region)
    except ValueError as e:
        raise click.UsageError(str(e), ctx=ctx) from e


def _configure_logging(verbose: bool, debug: bool) -> None:
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = parse_level(os.getenv("EO_LOG_LEVEL"))
    setup_colored_logging(level=level)


@click.command(name="eo", context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__, "-V", "--version", help="Show the version and exit.")
@click.option(
    "-s",
    "--storage",
    type=click.Choice([p.value for p in StorageProvider], case_sensitive=False),
    default=StorageProvider.S3.value,
    show_default=True,
    help="Cloud storage provider (s3 for AWS S3, gcs for Google Cloud Storage).",
)
@click.option("-b", "--bucket", help="Bucket name (mutually exclusive with --uri).")
@click.option("-k", "--key", help="Object key (requires --bucket).")
@click.option("-u", "--uri", help="Object URI such as s3://bucket/key or gs://bucket/key.")
@click.option("-r", "--region", help="AWS region (S3 only, defaults to the environment config).")
@click.option("--endpoint-url", help="Custom S3-compatible endpoint, e.g. http://localhost:9000.")
@click.option(
    "-f",
    "--file-path",
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Local file to edit in instead of a generated temp file. Must not exist yet.",
)
@click.option("-e", "--editor", "editor_command", help="Editor command. Defaults to $VISUAL or $EDITOR.")
@click.option(
    "--sync-on-save/--no-sync-on-save",
    default=None,
    help="Upload every save while the editor is open, not only when it exits.",
)
@click.option(
    "-d",
    "--debounce",
    type=click.IntRange(min=0),
    help="Milliseconds a save must settle before it is uploaded with --sync-on-save (default 500).",
)
@click.option(
    "--emulate-preconditions",
    is_flag=True,
    default=False,
    help="Check the ETag with HeadObject before writing, for S3 endpoints without If-Match support.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log progress.")
@click.option("--debug", is_flag=True, default=False, help="Log everything, including cloud SDK output.")
@click.option(
    "--system-env",
    is_flag=True,
    default=False,
    help="Use system environment variables only; do not load .env file.",
)
@click.pass_context
def edit(
    ctx: click.Context,
    storage: str,
    bucket: Optional[str],
    key: Optional[str],
    uri: Optional[str],
    region: Optional[str],
    endpoint_url: Optional[str],
    file_path: Optional[str],
    editor_command: Optional[str],
    sync_on_save: Optional[bool],
    debounce: Optional[int],
    emulate_preconditions: bool,
    verbose: bool,
    debug: bool,
    system_env: bool,
):
    """
    Edit a file stored in S3 or GCS with your local editor.

    The object is downloaded to a temp file and opened in $VISUAL/$EDITOR. When
    the editor exits with status 0 and the file changed, it is uploaded only if
    the remote object is still the version that was downloaded. Otherwise the
    edited copy is kept on disk and the command exits with status 3.

    \b
    Exit codes:
      0    unchanged or uploaded
      1    fetch failed
      2    usage or configuration error
      3    conflict, remote object changed (edits kept on disk)
      4    upload failed
      5    access denied or no credentials
      6    editor not configured or failed to start
      7    local temp file error
      130  interrupted
    """
    env_path = "" if system_env else find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(dotenv_path=env_path, override=False)

    _configure_logging(verbose, debug)
    if env_path:
        log.info("Loaded environment variables from: %s", env_path)

    location = resolve_location(ctx, storage, bucket, key, uri, region)

    try:
        settings = EditorSettings.from_env(
            editor=editor_command,
            endpoint_url=endpoint_url,
            sync_on_save=sync_on_save,
            debounce_ms=debounce,
            strict_preconditions=False if emulate_preconditions else None,
        )
    except ValidationError as e:
        raise click.UsageError(f"Invalid configuration: {e}", ctx=ctx) from e

    editor = Editor(settings.editor)
    try:
        editor.ensure_configured()
    except EditorError as e:
        error_exit(f"Error: {e}", exit_code_for_error(e))

    try:
        backend = create_storage_backend(location.provider, settings, region=location.region)
    except StorageError as e:
        error_exit(f"Error: could not create {location.provider.value} client: {e}", exit_code_for_error(e))

    engine = EditSyncEngine(
        backend,
        editor,
        retry=RetryPolicy(
            max_attempts=settings.retry_attempts,
            initial_delay=settings.retry_initial_delay,
            max_delay=settings.retry_max_delay,
        ),
        file_path=file_path,
        sync_on_save=settings.sync_on_save,
        debounce=settings.debounce_ms / 1000.0,
    )

    try:
        outcome = engine.run(location)
    except SessionAbortedError as e:
        error_exit(f"Error: {e}", exit_code_for_error(e))

    click.echo(outcome.message, err=True)
    ctx.exit(int(outcome.exit_code))
