"""Client command handlers.

Each handler builds the command ads for one subcommand and interprets the
server's responses; `exchange.run` drives it over the connection. The
command ad's ``command`` field is the handler's class name.
"""
from abc import abstractmethod
import argparse
import logging
import sys

from . import AdParseException, FatalException, ProxyFileException, UsageException
from .ad import Ad, AdStream
from .range import Range

logger = logging.getLogger(__name__)


class Command:
    '''Default command behavior: [front-end] --> [command] <--(ads)--> [server].'''
    usage = ['[option...]']
    description = ''

    def __init__(self):
        self.env = None
        self.args = None
        pass

    @property
    def name(self) -> str:
        return type(self).__name__

    def init(self, env, args:list) -> 'Command':
        '''Bind the parsed options and positional arguments, checking the arguments.'''
        self.env = env
        self.args = list(args)
        self.check_args()
        return self

    def parser(self, base:argparse.ArgumentParser) -> argparse.ArgumentParser:
        '''Return the option parser for this command, extending `base`.'''
        usage = '\n       '.join( f'%(prog)s {u}' for u in self.usage )
        parser = argparse.ArgumentParser(prog=f'stork {self.name}', usage=usage,
                    description=self.description, parents=[base])
        parser.add_argument('args', nargs='*', help=argparse.SUPPRESS)
        return parser

    def check_args(self):
        pass

    @abstractmethod
    def command(self) -> Ad:
        '''Return the next command ad to send to the server.'''
        pass

    @abstractmethod
    def handle(self, ad:Ad) -> bool:
        '''Handle one response; return True if more responses are expected.'''
        pass

    def has_more_commands(self) -> bool:
        return False

    def outcome(self, ad:Ad) -> Ad:
        '''Map the last response to the result reported to the user.'''
        return ad

    def complete(self):
        pass
    pass


class ls(Command):
    usage = ['[option...] <url>']
    description = 'This command can be used to list the contents of a remote directory.'

    def parser(self, base):
        parser = super().parser(base)
        parser.add_argument('-d', '--depth', type=int, metavar='N', help='list only up to N levels.')
        parser.add_argument('-r', '--recursive', action='store_true', default=None,
                            help='recursively list subdirectories.')
        return parser

    def check_args(self):
        if len(self.args) < 1:
            raise UsageException('not enough arguments')
        if len(self.args) > 1:
            raise UsageException('too many arguments')

    def command(self):
        self.check_args()
        ad = Ad('command', self.name).put('uri', self.args[0])
        if self.env.get_bool('recursive'):
            ad.put('depth', self.env.get_int('depth', -1))
        return ad

    def handle(self, ad):
        if not ad.has('error'):
            print(ad)
        return False
    pass


class q(Command):
    STATUSES = ('pending', 'all', 'done', 'scheduled', 'processing', 'removed', 'failed', 'complete')
    usage = ['[option...] [status] [job_id...]']
    description = ('This command can be used to query a Stork server for information about '
        'jobs in queue. Specifying status allows filtering of results based on job status, '
        'and may be any one of the following values: ' + ', '.join(STATUSES) + '. '
        'The job id, of which there may be more than one, may be either an integer or a '
        'range of the form: m[-n][,range] (e.g. 1-4,7,10-13).')

    def __init__(self):
        super().__init__()
        self.count_only = False
        self.watch = None
        self.range = Range()
        self.status = None
        pass

    def parser(self, base):
        parser = super().parser(base)
        parser.add_argument('-c', '--count', action='store_true', default=None,
                            help='print only the number of results.')
        parser.add_argument('-n', '--limit', type=int, metavar='N', help='retrieve at most N results.')
        parser.add_argument('-r', '--reverse', action='store_true', default=None,
                            help='reverse printing order (oldest first).')
        parser.add_argument('-w', '--watch', nargs='?', const=2, metavar='T',
                            help='retrieve list every T seconds (default 2).')
        parser.add_argument('--daglog', metavar='FILE',
                            help='output results to FILE in DAGMan log format.')
        return parser

    def init(self, env, args):
        ## -w takes an optional value; a non-number after it is a positional
        self.watch = None
        watch = env.get('watch') if env is not None else None
        if watch is not None:
            try:
                self.watch = int(watch)
            except (TypeError, ValueError):
                args = [watch] + list(args)
                self.watch = 2
        return super().init(env, args)

    def check_args(self):
        self.range, self.status = Range(), None
        for s in self.args:
            r = Range.parse(s)
            if r is not None:
                self.range.swallow(r)
            elif self.status is None:
                self.status = s
            else:
                raise UsageException(f'invalid argument: {s}')

    def command(self):
        self.check_args()
        ad = Ad('command', self.name)
        if self.env.get_bool('count'):
            self.count_only = True
            ad.put('count', True)
        if self.env.get_bool('reverse'):
            ad.put('reverse', True)
        if not self.range.is_empty():
            ad.put('range', str(self.range))
        if self.status is not None:
            ad.put('status', self.status)
        return ad

    def handle(self, ad):
        if self.count_only:
            if ad.has('error'):
                print(0)
            elif ad.has('count'):
                print(ad.get_int('count'))
            return False
        ##
        if ad.has('error'):
            raise FatalException(ad.get('error'))
        # TODO: format job ads as a table instead of raw ads.
        print(ad)
        ##
        count = ad.get_int('count')
        not_found = ad.get('not_found')
        if count > 0:
            msg = f'Received {count} job ad(s)'
            if not_found is not None:
                msg += f', but some jobs were not found: {not_found}'
            else:
                msg += '.'
            print(msg)
        else:
            print('No jobs found...')
        return False

    def outcome(self, ad):
        if self.count_only and ad.has('error'):
            return Ad('count', 0)
        return ad
    pass


class rm(Command):
    usage = ['[option...] [job_id...]']
    description = ('This command can be used to cancel pending or running jobs on a Stork '
        'server. The job id, of which there may be more than one, may be either an integer '
        'or a range of the form: m[-n][,range] (e.g. 1-4,7,10-13).')

    def check_args(self):
        if len(self.args) < 1:
            raise UsageException('not enough arguments')
        self.range = Range()
        for s in self.args:
            r = Range.parse(s)
            if r is None:
                raise UsageException(f'invalid argument: {s}')
            self.range.swallow(r)

    def command(self):
        self.check_args()
        return Ad('command', self.name).put('range', str(self.range))

    def handle(self, ad):
        print(ad)
        return False
    pass


class info(Command):
    usage = ['[option...] [type]']
    description = ('This command retrieves information about the server itself, such as '
        'transfer modules available and server statistics. '
        'Valid options for type: module (default), server.')

    def command(self):
        return Ad('command', self.name).put('type', self.args[0] if self.args else 'module')

    def handle(self, ad):
        print(ad)
        return False
    pass


class submit(Command):
    usage = ['[option...]', '[option...] <job_file>', '[option...] <src_url> <dest_url>']
    description = ('This command is used to submit jobs to a Stork server. '
        'If called with no arguments, prompts the user and reads job ads from standard input. '
        'If called with one argument, assume it\'s a path to a file containing one or more '
        'job ads, which it opens and reads. '
        'If called with two arguments, assumes they are a source and destination URL, '
        'and generates a job ad for them. '
        'If a job ad includes "x509_file", the proxy file is read and its contents sent '
        'in the job ad as "x509_proxy". '
        'Output: --quiet prints nothing; otherwise --condor_mode prints "Request assigned '
        'id: N" per accepted job, even with --brief; otherwise --brief prints job ids only.')

    def __init__(self):
        super().__init__()
        self.submitted, self.accepted = 0, 0
        self.ads = None
        self.file = None
        self.echo = True
        pass

    def parser(self, base):
        parser = super().parser(base)
        parser.add_argument('-b', dest='brief', action='store_true', default=None,
                            help='print only submitted job IDs.')
        return parser

    def check_args(self):
        if len(self.args) > 2:
            raise UsageException('wrong number of arguments')

    def open(self):
        if self.args:
            try:
                self.file = open(self.args[0], 'rb')
            except OSError as e:
                raise FatalException(f'could not open file: {self.args[0]}') from e
            self.ads = AdStream(self.file)
        else:
            if sys.stdin.isatty():
                self.echo = False
                print('Begin typing submit ads (ctrl+D to end):\n')
            self.ads = AdStream(sys.stdin.buffer)

    def command(self):
        self.check_args()
        if len(self.args) == 2:
            ad = Ad('src', self.args[0]).put('dest', self.args[1])
        else:
            if self.ads is None:
                self.open()
            try:
                ad = self.ads.next()
            except AdParseException as e:
                raise FatalException(f'could not parse input ad: {e}') from e
            if ad is None:
                raise FatalException('no job ads in input')
        ##
        ad.put('command', self.name)
        self.inline_proxy(ad)
        if self.echo:
            logger.debug('submitting %s', ad)
        return ad

    @staticmethod
    def inline_proxy(ad:Ad):
        '''Replace an ``x509_file`` path with the file contents as ``x509_proxy``.'''
        path = ad.remove('x509_file')
        if path is None:
            return
        try:
            with open(str(path), encoding='utf-8') as f:
                proxy = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ProxyFileException(f"couldn't open x509_file: {path}") from e
        if proxy:
            ad.put('x509_proxy', proxy)

    def has_more_commands(self):
        return self.ads is not None and self.ads.peek() is not None

    @staticmethod
    def job_ids(ad:Ad) -> list:
        jobs = ad.get_ads('jobs')
        if jobs:
            return [ job.get('job_id') for job in jobs ]
        return [ ad.get('job_id') ] if ad.has('job_id') else []

    def handle(self, ad):
        self.submitted += 1
        if not ad.has('error'):
            self.accepted += 1
        ##
        if self.env.get_bool('quiet'):
            pass
        elif self.env.get_bool('condor_mode'):
            if not ad.has('error'):
                for job_id in self.job_ids(ad):
                    print(f'Request assigned id: {job_id}')
        elif self.env.get_bool('brief'):
            for job_id in self.job_ids(ad):
                print(job_id)
        else:
            print('{}{} of {} jobs successfully submitted'.format(
                'Success: ' if self.accepted > 0 else 'Error: ', self.accepted, self.submitted))
        return False

    def complete(self):
        if self.file is not None:
            self.file.close()
            self.file = None
    pass


class raw(Command):
    usage = ['[ad_file]']
    description = ('Send a raw command ad to a server, for debugging purposes. '
        'If no input ad is specified, reads from standard input.')

    def command(self):
        if self.args:
            try:
                with open(self.args[0], 'rb') as f:
                    ad = Ad.parse(f)
            except (OSError, AdParseException) as e:
                raise FatalException(f"couldn't read ad from file: {e}") from e
        else:
            if sys.stdin.isatty():
                print('Type a command ad:\n')
            try:
                ad = Ad.parse(sys.stdin.buffer)
            except AdParseException as e:
                raise FatalException(f"couldn't read ad from stream: {e}") from e
        if ad is None:
            raise FatalException('no command ad in input')
        return ad

    def handle(self, ad):
        print(ad)
        return True
    pass


COMMANDS = {
    'q':      q,
    'status': q,
    'submit': submit,
    'rm':     rm,
    'info':   info,
    'ls':     ls,
    'raw':    raw,
}

def handler(cmd:str) -> Command:
    '''Return a new handler for the command, or None if there is none.'''
    cls = COMMANDS.get(cmd)
    return cls() if cls else None

def get_parser(cmd:str, base:argparse.ArgumentParser) -> argparse.ArgumentParser:
    scmd = handler(cmd)
    return scmd.parser(base) if scmd else None
