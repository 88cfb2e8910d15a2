#! /usr/bin/env python3

"""
Command-line script to post a message to a HipChat room.

Option values come from, lowest precedence first: built-in defaults, YAML config
files, HIPCHAT_* environment variables and the flags below. A config file holds
a mapping of option names to values, e.g.:

token: <room notification token>
room_id: 12345
from_name: Monitoring
api_version: v1
"""

import logging
import os
import sys

import click
import click_log

from hipnotify.exception import ConfigFileError, HipChatError, InvalidOption, MissingRequiredField
from hipnotify.hipchat import read_message, submit_room_message
from hipnotify.options import (
    API_VERSIONS, COLORS, MESSAGE_FORMATS, env_defaults, load_config_file, resolve
)

LOG = logging.getLogger('hipnotify')
click_log.basic_config(LOG)

DEFAULT_CONFIG_FILES = ('/etc/hipchat.yml', '~/.hipchat.yml')


def _show_usage(ctx, param, value):  # pylint: disable=unused-argument
    """
    Print the usage text and exit with a failure code.
    """
    if not value or ctx.resilient_parsing:
        return
    click.echo(ctx.get_help())
    ctx.exit(1)


def _config_file_defaults(config_files):
    """
    Merge the given config files, later files overriding earlier ones.
    """
    values = {}
    for config_file in config_files:
        values.update(load_config_file(os.path.expanduser(config_file)))
    return values


@click.command("hipchat_room_message", add_help_option=False)
@click.option(
    '-h', '--help', 'show_help',
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=_show_usage,
    help="Show this message and exit.",
)
@click.option('-t', 'token', help="API token.")
@click.option('-r', 'room_id', help="Room ID.")
@click.option('-f', 'from_name', help="From name. Required for the v1 API.")
@click.option('-c', 'color', type=click.Choice(COLORS), help="Message color.")
@click.option('-m', 'message_format', type=click.Choice(MESSAGE_FORMATS), help="Message format.")
@click.option('-i', 'message', help="Message text. Read from standard input when omitted.")
@click.option('-l', 'level', help="Nagios-style severity level; overrides the color when recognized.")
@click.option('-n', 'notify', is_flag=True, help="Trigger a notification for people in the room.")
@click.option('-o', 'host', help="API host. Defaults to api.hipchat.com.")
@click.option('-v', 'api_version', type=click.Choice(API_VERSIONS), help="API version.")
@click.option('-k', 'allow_insecure_tls', is_flag=True, help="Allow connections to hosts with invalid certificates.")
@click.option(
    '--config-file',
    multiple=True,
    type=click.Path(dir_okay=False),
    help="YAML file of option defaults. May be repeated. Replaces the default "
         "search of {}.".format(", ".join(DEFAULT_CONFIG_FILES)),
)
@click_log.simple_verbosity_option(LOG, '--verbosity', default='INFO')
def hipchat_room_message(config_file, notify, allow_insecure_tls, **flags):
    """
    Post a message to a HipChat room using the v1 or v2 API.
    """
    # Boolean flags only switch options on; unset flags leave lower layers alone.
    flags['notify'] = True if notify else None
    flags['allow_insecure_tls'] = True if allow_insecure_tls else None

    try:
        config = resolve(
            _config_file_defaults(config_file or DEFAULT_CONFIG_FILES),
            env_defaults(os.environ),
            flags,
        )
    except (MissingRequiredField, InvalidOption, ConfigFileError) as err:
        click.secho('{}'.format(err), fg='red', err=True)
        sys.exit(1)

    try:
        _, text = submit_room_message(read_message(config, click.get_binary_stream('stdin')), config)
    except HipChatError as err:
        click.secho('{}'.format(err), fg='red', err=True)
        sys.exit(1)

    click.echo(text)
    # An exit code of 0 means the message was dispatched; the HTTP status is reported, not judged.
    sys.exit(0)


if __name__ == '__main__':
    hipchat_room_message()  # pylint: disable=no-value-for-parameter
