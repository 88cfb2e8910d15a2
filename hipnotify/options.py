"""
Merging of defaults, config files, environment variables and command-line flags
into a single HipChat message configuration.
"""

import io
import logging
from collections import namedtuple

import yaml

from hipnotify.exception import ConfigFileError, InvalidOption, MissingRequiredField

LOG = logging.getLogger(__name__)

Configuration = namedtuple('Configuration', [
    'token',
    'room_id',
    'from_name',
    'color',
    'message_format',
    'notify',
    'host',
    'level',
    'api_version',
    'allow_insecure_tls',
    'message',
])

COLORS = ('yellow', 'red', 'green', 'purple', 'gray', 'random')
MESSAGE_FORMATS = ('html', 'text')
API_VERSIONS = ('v1', 'v2')

# Nagios-style status keywords.
LEVEL_COLORS = {
    'critical': 'red',
    'warning': 'yellow',
    'unknown': 'gray',
    'ok': 'green',
    'down': 'red',
    'up': 'green',
}

DEFAULTS = {
    'token': None,
    'room_id': None,
    'from_name': None,
    'color': 'yellow',
    'message_format': 'html',
    'notify': False,
    'host': 'api.hipchat.com',
    'level': '',
    'api_version': 'v1',
    'allow_insecure_tls': False,
    'message': None,
}

ENVIRONMENT_VARIABLES = {
    'HIPCHAT_TOKEN': 'token',
    'HIPCHAT_ROOM_ID': 'room_id',
    'HIPCHAT_FROM': 'from_name',
    'HIPCHAT_COLOR': 'color',
    'HIPCHAT_FORMAT': 'message_format',
    'HIPCHAT_MESSAGE': 'message',
    'HIPCHAT_NOTIFY': 'notify',
    'HIPCHAT_HOST': 'host',
    'HIPCHAT_LEVEL': 'level',
    'HIPCHAT_API': 'api_version',
}

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def parse_bool(value):
    """
    Interpret a flag, config or environment value as a boolean.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def derive_color(level, color):
    """
    Return the color mapped to a severity level, or the given color when the level is empty or unknown.

    Arguments:
        level (str): Severity keyword such as "critical" or "OK". Case-insensitive.
        color (str): Color to keep when the level is not recognized.

    Returns:
        str
    """
    if not level:
        return color
    return LEVEL_COLORS.get(level.lower(), color)


def env_defaults(environ):
    """
    Pick the HipChat option values out of an environment mapping.

    Arguments:
        environ (dict): Typically os.environ.

    Returns:
        dict: option name -> string value, for the variables that are set.
    """
    return {
        option: environ[var_name]
        for var_name, option in ENVIRONMENT_VARIABLES.items()
        if var_name in environ
    }


def _config_value(config_file, key, value):
    """
    Coerce a YAML scalar to the string form the other option sources use. Booleans are kept.
    """
    if isinstance(value, (dict, list)):
        raise ConfigFileError("Config file {}: option '{}' must be a single value.".format(config_file, key))
    if value is None or isinstance(value, bool):
        return value
    return str(value)


def load_config_file(config_file):
    """
    Read option defaults from a YAML file. A file that does not exist yields no values.
    """
    try:
        with io.open(config_file, 'r') as config:
            values = yaml.safe_load(config)
    except FileNotFoundError:
        return {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigFileError("Failed to read config file {}: {}".format(config_file, exc))

    if values is None:
        return {}
    if not isinstance(values, dict):
        raise ConfigFileError("Config file {} must contain a mapping of option names to values.".format(config_file))
    LOG.debug("Read %s option(s) from %s", len(values), config_file)
    return {str(key): _config_value(config_file, key, value) for key, value in values.items()}


def _check_choice(name, value, choices):
    if value not in choices:
        raise InvalidOption("{} must be one of {}, got '{}'".format(name, "/".join(choices), value))


def resolve(config_file_defaults, env_values, flags):
    """
    Merge option sources into a Configuration.

    Precedence, lowest to highest: built-in defaults, config file, environment, flags.
    A None value never overrides a lower layer; neither does an empty config file or
    environment value.

    Raises:
        MissingRequiredField: listing every missing required option.
        InvalidOption: for an unsupported color, message format or API version.
    """
    merged = dict(DEFAULTS)
    for layer, skipped in ((config_file_defaults, (None, '')), (env_values, (None, '')), (flags, (None,))):
        for key, value in (layer or {}).items():
            if key in merged and value not in skipped:
                merged[key] = value

    merged['notify'] = parse_bool(merged['notify'])
    merged['allow_insecure_tls'] = parse_bool(merged['allow_insecure_tls'])
    merged['level'] = merged['level'] or ''

    _check_choice('Color', merged['color'], COLORS)
    _check_choice('Message format', merged['message_format'], MESSAGE_FORMATS)
    _check_choice('API version', merged['api_version'], API_VERSIONS)

    merged['color'] = derive_color(merged['level'], merged['color'])

    required = ['token', 'room_id']
    if merged['api_version'] == 'v1':
        required.append('from_name')
    missing = [field for field in required if not merged[field]]
    if missing:
        raise MissingRequiredField(missing)

    return Configuration(**merged)
