"""Command-line client for the Stork data-transfer job scheduler."""

__version__ = '0.3.0'

DEFAULT_HOST = 'localhost'
DEFAULT_PORT = 57024

class StorkException(Exception): pass
class UsageException(StorkException): pass
class FatalException(StorkException): pass
class ProxyFileException(StorkException): pass
class AdParseException(StorkException): pass
class ConnectionClosedException(StorkException): pass
class ConfigException(StorkException): pass
class AutoDetectFailureException(StorkException): pass

from .ad import Ad, AdStream
from .range import Range
from .commands import COMMANDS, handler, get_parser
from .exchange import run
