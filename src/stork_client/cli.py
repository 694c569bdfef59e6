import argparse
import logging
import sys

from . import (DEFAULT_HOST, DEFAULT_PORT, AutoDetectFailureException, ProxyFileException,
               StorkException)
from .commands import COMMANDS, handler
from .exchange import run
from .options import Options, base_parser, load_config
from .transport import Transport, discover

def connect(env:Options) -> Transport:
    host = env.get('host')
    port = env.get_int('port', DEFAULT_PORT)
    if host is None and env.get_bool('discover'):
        host = discover(port)
    host = host or DEFAULT_HOST
    try:
        return Transport.connect(host, port)
    except OSError as e:
        raise ConnectionError(f"couldn't connect to {host}:{port}: {e.strerror or e}") from e

def execute(scmd, env:Options, transport:Transport=None) -> int:
    """Run an initialized command handler against the server.

    Args:
        scmd (Command): the command handler, initialized with `env` and its arguments.
        env (Options): the options bag.
        transport (Transport): (Optional) an established connection; one is opened from `env` otherwise.

    Returns:
        int: the process exit code.
    """
    if transport is None:
        try:
            transport = connect(env)
        except (ConnectionError, AutoDetectFailureException) as e:
            print(f'Error: {e}', file=sys.stderr)
            return 1
    ##
    with transport:
        try:
            ad = run(scmd, transport)
        except ProxyFileException as e:
            print(f'Fatal: {e}', file=sys.stderr)
            return 1
    ##
    if ad.has('error'):
        print(f"Error: {ad.get('error')}", file=sys.stderr)
        return 1
    print(f'Done: {ad}', file=sys.stderr)
    return 0

def main(argv=None) -> int:
    base = base_parser()
    parser = argparse.ArgumentParser(prog='stork', parents=[base],
                description='Command-line client for the Stork data transfer scheduler.')
    parser.add_argument('command', nargs='?', help='one of: {}.'.format(', '.join(COMMANDS)))
    parser.add_argument('rest', nargs=argparse.REMAINDER, metavar='args', help='command options and arguments.')
    opts = parser.parse_args(argv)
    ##
    if not opts.command:
        parser.print_usage()
        return 1
    scmd = handler(opts.command)
    if scmd is None:
        print(f'unknown command: {opts.command}')
        return 1
    opts = scmd.parser(base).parse_intermixed_args(opts.rest, namespace=opts)
    ##
    try:
        env = Options(opts, load_config(opts.conf))
        logging.basicConfig(level=logging.DEBUG if env.get_bool('debug') else logging.WARNING,
                            format='%(levelname)s %(name)s: %(message)s')
        scmd.init(env, opts.args)
    except StorkException as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1
    return execute(scmd, env)

if __name__ == '__main__':
    raise SystemExit(main())
