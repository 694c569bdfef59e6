import argparse
import json
import logging
import os
from pathlib import Path

from . import DEFAULT_HOST, DEFAULT_PORT, ConfigException

logger = logging.getLogger(__name__)

CONFIG_PATH = Path('~/.stork/client.json')
ENVIRONMENT = { 'host':'STORK_HOST', 'port':'STORK_PORT' }

def base_parser() -> argparse.ArgumentParser:
    '''Options accepted by every command, before or after the command name.'''
    parser = argparse.ArgumentParser(add_help=False)
    g = parser.add_argument_group('Global options')
    g.add_argument('--host', type=str, help=f'server host (default {DEFAULT_HOST}).')
    g.add_argument('--port', type=int, help=f'server port (default {DEFAULT_PORT}).')
    g.add_argument('--conf', type=str, metavar='FILE', help='(Optional) JSON configuration file.')
    g.add_argument('--discover', action='store_true', default=None, help='scan the local network for a server.')
    g.add_argument('--quiet', action='store_true', default=None, help='suppress command output.')
    g.add_argument('--brief', action='store_true', default=None, help='print only essential output.')
    g.add_argument('--condor_mode', action='store_true', default=None, help='print output the way Condor expects.')
    g.add_argument('--debug', action='store_true', default=None, help='log protocol traffic to stderr.')
    return parser

def load_config(path:str=None) -> dict:
    """Load the JSON configuration file.

    Args:
        path (str): (Optional) explicit file; falls back to $STORK_CONF, then ~/.stork/client.json.

    Returns:
        dict: configuration values, with STORK_HOST/STORK_PORT applied on top.
    """
    explicit = path or os.environ.get('STORK_CONF')
    conf = Path(explicit).expanduser() if explicit else CONFIG_PATH.expanduser()
    config = dict()
    ##
    if explicit or conf.exists():
        try:
            with open(conf) as f:
                config = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigException(f'could not load configuration {conf}: {e}') from e
        if not isinstance(config, dict):
            raise ConfigException(f'configuration {conf} is not a JSON object')
        logger.debug('loaded configuration from %s', conf)
    ##
    for key,var in ENVIRONMENT.items():
        if os.environ.get(var):
            config[key] = os.environ[var]
    return config


class Options:
    """Read-only view of the parsed command line over the configuration.

    Args:
        namespace: the `argparse.Namespace` (or dict) of parsed options.
        config (dict): (Optional) configuration values used when an option was not given.
    """
    def __init__(self, namespace=None, config:dict=None):
        if isinstance(namespace, argparse.Namespace):
            namespace = vars(namespace)
        self._values = dict(config or {})
        self._values.update({ k:v for k,v in (namespace or {}).items() if v is not None })
        pass

    def has(self, key:str) -> bool:
        return key in self._values

    def get(self, key:str, default=None):
        return self._values.get(key, default)

    def get_bool(self, key:str, default:bool=False) -> bool:
        value = self._values.get(key)
        if value is None:
            return default
        if isinstance(value, str):
            return value.lower() in ('true', 'yes', '1')
        return bool(value)

    def get_int(self, key:str, default:int=0) -> int:
        value = self._values.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def __repr__(self):
        return f'Options({self._values!r})'
    pass
