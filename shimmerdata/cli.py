# -*- coding: utf-8 -*-
import configparser
import json
import logging
import os
from functools import wraps
from pathlib import Path

import click
from pydantic import ValidationError as PydanticValidationError

from shimmerdata.config import get_batch_config
from shimmerdata.constants import CONFIG
from shimmerdata.consumers import BatchConsumer
from shimmerdata.error_handlers import handle_cmd_exception
from shimmerdata.errors import ConfigurationError, SpoolError, ValidationError
from shimmerdata.http_utils import create_http_client
from shimmerdata.meta import get_version
from shimmerdata.models import Event
from shimmerdata.spool import FileUploader, RotatingWriter, SpoolWatcher, spool_filename
from shimmerdata.spool.writer import TEMP_SUFFIX
from shimmerdata.util import check_and_make_folder

LOG = logging.getLogger(__name__)

CLI_MAIN_INTRODUCTION = (
    "ShimmerData command line: report analytics events and re-upload "
    "spooled batches.\n\n"
    "Settings come from the options below, SHIMMERDATA_* environment "
    f"variables and the [shimmerdata] section of {CONFIG}."
)
CLI_DEBUG_HELP = "Enable debug mode for detailed output."


def configure_logger(ctx, param, debug):
    level = logging.CRITICAL

    if debug:
        level = logging.DEBUG

    logging.basicConfig(format="%(asctime)s %(name)s => %(message)s", level=level)

    if debug:
        config = configparser.ConfigParser()
        config.read(CONFIG)
        LOG.debug("Config file contents:")
        for section in config.sections():
            LOG.debug("[%s]", section)
            for key, value in config.items(section):
                if key == "app_token":
                    value = "****"
                LOG.debug("%s = %s", key, value)


def batch_options(func):
    """
    Options shared by every command that talks to the collection server.
    """

    @click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
                  default=CONFIG, show_default=True, help="Path to the config.ini file.")
    @click.option("--server-url", default=None, help="Collection server base url.")
    @click.option("--app-id", default=None, help="Application id.")
    @click.option("--app-token", default=None, help="Application token.")
    @click.option("--temp-dir", default=None, help="Spool directory for batches that failed to send.")
    @click.option("--batch-size", type=int, default=None, help="Events per batch (1-200).")
    @click.option("--timeout", type=float, default=None, help="Request timeout in seconds.")
    @click.option("--compress/--no-compress", default=None, help="Gzip batch payloads.")
    @click.option("--interval", type=float, default=None, help="Timer flush interval in seconds.")
    @wraps(func)
    def inner(*args, config_path, **kwargs):
        option_names = ("server_url", "app_id", "app_token", "temp_dir",
                        "batch_size", "timeout", "compress", "interval")
        options = {name: kwargs.pop(name) for name in option_names}
        kwargs["batch_config"] = get_batch_config(config_path=config_path, **options)
        return func(*args, **kwargs)

    return inner


@click.group(help=CLI_MAIN_INTRODUCTION)
@click.option("--debug", is_flag=True, help=CLI_DEBUG_HELP, callback=configure_logger,
              expose_value=False, is_eager=True)
@click.version_option(version=get_version())
def cli():
    pass


@cli.command()
@handle_cmd_exception
@batch_options
def drain(batch_config):
    """
    Upload every spooled file of the temp directory once, then exit.
    """
    if not batch_config.spooling_enabled:
        raise ConfigurationError("temp_dir is required to drain the spool directory")

    folder = check_and_make_folder(batch_config.temp_dir)
    writer = RotatingWriter(spool_filename(folder, batch_config.app_id), compress=True)
    with create_http_client() as http_client:
        uploader = FileUploader(batch_config, http_client)
        watcher = SpoolWatcher(writer, uploader, batch_config.interval)
        try:
            uploaded = watcher.run_cycle()
        finally:
            writer.close()

    remaining = [
        name for name in sorted(os.listdir(folder))
        if os.path.isfile(os.path.join(folder, name)) and not name.endswith(TEMP_SUFFIX)
    ]
    click.echo(f"Uploaded {uploaded} file(s) from {folder}.")
    if remaining:
        raise SpoolError(folder, f"{len(remaining)} file(s) left: {', '.join(remaining)}")


@cli.command()
@click.argument("events", type=click.File("r", encoding="utf-8"))
@handle_cmd_exception
@batch_options
def send(events, batch_config):
    """
    Report the events of a JSON lines file ("-" for stdin).

    Each line is one event in wire form, e.g.
    {"#type": "track", "#time": "2024-05-01 10:00:00.000", "#account_id": "42", ...}
    """
    with BatchConsumer(batch_config) as consumer:
        for number, line in enumerate(events, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                event = Event.from_wire(json.loads(line))
            except (ValueError, PydanticValidationError) as e:
                raise ValidationError(f"line {number}: {e}")
            consumer.add(event)

    metrics = consumer.get_metrics()
    click.echo(
        f"Sent {metrics['events_sent']} event(s) in {metrics['batches_sent']} batch(es), "
        f"spooled {metrics['batches_spooled']}, dropped {metrics['batches_dropped']}."
    )


if __name__ == "__main__":
    cli()
