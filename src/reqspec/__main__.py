#!/usr/bin/env python3

import logging
import pathlib

import click

from . import clickext, commands, context, log, settings
from .read import Connectivity

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(package_name="reqspec", prog_name="reqspec")
@click.option(
    "-v",
    "--verbose",
    default=False,
    is_flag=True,
    help="report more detail to the console",
)
@click.option(
    "--log-file",
    type=clickext.ClickPath(),
    help="save detailed report of actions to file",
)
@click.option(
    "--error-log-file",
    type=clickext.ClickPath(),
    help="save error messages to a file",
)
@click.option(
    "--settings-file",
    default=pathlib.Path("reqspec.yaml"),
    type=clickext.ClickPath(),
    help="location of the settings file",
)
@click.option(
    "--offline/--online",
    default=None,
    help="disable network access for reading requirements files",
)
@click.option(
    "-C",
    "--working-dir",
    type=clickext.ClickPath(file_okay=False),
    default=None,
    help="directory that relative paths are resolved against",
)
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    log_file: pathlib.Path | None,
    error_log_file: pathlib.Path | None,
    settings_file: pathlib.Path,
    offline: bool | None,
    working_dir: pathlib.Path | None,
) -> None:
    logging.setLogRecordFactory(log.SourceLogRecord)
    # Set the overall logger level to debug and allow the handlers to filter
    # messages at their own level.
    logging.getLogger().setLevel(logging.DEBUG)
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    stream_handler.setFormatter(
        logging.Formatter(log.VERBOSE_LOG_FMT if verbose else log.TERSE_LOG_FMT)
    )
    logging.getLogger().addHandler(stream_handler)
    if error_log_file:
        error_handler = logging.FileHandler(error_log_file)
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(logging.Formatter(log.VERBOSE_LOG_FMT))
        logging.getLogger().addHandler(error_handler)
    if log_file:
        # Always log to the file at debug level
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(log.VERBOSE_LOG_FMT))
        logging.getLogger().addHandler(file_handler)
        logger.debug("logging debug information to %s", log_file)
    if error_log_file:
        logger.debug("logging errors to %s", error_log_file)

    active_settings = settings.Settings.from_file(settings_file)
    connectivity: Connectivity | None = None
    if offline is not None:
        connectivity = Connectivity.OFFLINE if offline else Connectivity.ONLINE

    rctx = context.ReadContext(
        settings=active_settings,
        connectivity=connectivity,
        working_dir=working_dir,
    )
    logger.debug("settings file: %s", settings_file)
    logger.debug("connectivity: %s", rctx.connectivity)
    logger.debug("working dir: %s", rctx.working_dir)
    ctx.obj = rctx


for cmd in commands.commands:
    main.add_command(cmd)


def invoke_main() -> None:
    # Wrapper for the click main command that ensures any exceptions
    # are logged with their traceback.
    try:
        main(auto_envvar_prefix="REQSPEC")
    except Exception as err:
        logger.exception(err)
        raise


if __name__ == "__main__":
    invoke_main()
