"""Ads: the key/value records exchanged with a Stork server.

An ad is written as a bracketed list of ``key = value`` pairs::

    [ command = "submit"; src = "ftp://a/f"; dest = "gsiftp://b/f"; depth = -1 ]

Values may be strings (JSON escapes), integers, reals, ``true``/``false``,
``undefined``, nested ads, or lists in braces: ``{ "a", "b" }``. Whitespace
and ``#`` comments are allowed between tokens, so job files may spread an
ad over several lines and hold several ads back to back.
"""
import io
import json
import string

from . import AdParseException

_KEY_START = frozenset((string.ascii_letters + '_').encode())
_KEY_CHARS = _KEY_START | frozenset((string.digits + '.-').encode())
_WORD_CHARS = frozenset((string.ascii_letters + string.digits + '_.+-').encode())


class _Reader:
    '''Byte-at-a-time reader with one byte of pushback.'''
    def __init__(self, stream):
        self.stream = stream
        self.held = b''

    def read(self) -> bytes:
        if self.held:
            b, self.held = self.held, b''
            return b
        return self.stream.read(1)

    def unread(self, b:bytes):
        self.held = b

    def skip(self) -> bytes:
        '''Skip whitespace and comments; return the next significant byte.'''
        while True:
            b = self.read()
            if b == b'#':
                while b not in (b'\n', b''):
                    b = self.read()
            if not b or not b.isspace():
                return b
    pass


def _unexpected(b:bytes, where:str='') -> AdParseException:
    if not b:
        return AdParseException('unexpected end of stream' + where)
    return AdParseException('unexpected character {!r}{}'.format(b.decode('latin-1'), where))

def _read_word(r:_Reader, first:bytes) -> str:
    word = bytearray(first)
    while True:
        b = r.read()
        if not b or b[0] not in _WORD_CHARS:
            r.unread(b)
            return word.decode('ascii')
        word += b

def _parse_key(r:_Reader) -> str:
    b = r.skip()
    if not b or b[0] not in _KEY_START:
        raise _unexpected(b, ' in key')
    key = bytearray(b)
    while True:
        b = r.read()
        if not b or b[0] not in _KEY_CHARS:
            r.unread(b)
            return key.decode('ascii')
        key += b

def _parse_string(r:_Reader) -> str:
    buf = bytearray(b'"')
    while True:
        b = r.read()
        if not b:
            raise AdParseException('unterminated string')
        buf += b
        if b == b'\\':
            b = r.read()
            if not b:
                raise AdParseException('unterminated string')
            buf += b
        elif b == b'"':
            break
    try:
        return json.loads(buf.decode('utf-8'), strict=False)
    except ValueError as e:
        raise AdParseException(f'invalid string: {e}') from e

def _parse_list(r:_Reader) -> list:
    items = list()
    b = r.skip()
    if b == b'}':
        return items
    r.unread(b)
    while True:
        items.append( _parse_value(r) )
        b = r.skip()
        if b == b'}':
            return items
        if b != b',':
            raise _unexpected(b, ' in list')

def _parse_value(r:_Reader):
    b = r.skip()
    if b == b'"':
        return _parse_string(r)
    if b == b'[':
        return _parse_ad(r)
    if b == b'{':
        return _parse_list(r)
    if not b or b[0] not in _WORD_CHARS:
        raise _unexpected(b, ' in value')
    ##
    word = _read_word(r, b)
    if word == 'true':
        return True
    if word == 'false':
        return False
    if word == 'undefined':
        return None
    try:
        return int(word)
    except ValueError:
        pass
    try:
        return float(word)
    except ValueError:
        raise AdParseException(f'invalid value: {word}') from None

def _parse_ad(r:_Reader) -> 'Ad':
    ad = Ad()
    b = r.skip()
    if b == b']':
        return ad
    r.unread(b)
    while True:
        key = _parse_key(r)
        b = r.skip()
        if b != b'=':
            raise _unexpected(b, f' after key "{key}"')
        value = _parse_value(r)
        if value is not None:
            ad[key] = value
        ##
        b = r.skip()
        if b == b';':
            b = r.skip()
            if b == b']':
                return ad
            r.unread(b)
        elif b == b']':
            return ad
        else:
            raise _unexpected(b, ' in ad')

def _format(value) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, dict):
        return str( value if isinstance(value, Ad) else Ad(value) )
    if isinstance(value, (list, tuple)):
        if not value:
            return '{ }'
        return '{ ' + ', '.join(_format(v) for v in value) + ' }'
    raise TypeError(f'cannot encode {type(value).__name__} in an ad')


class Ad(dict):
    """A Stork ad.

    Args:
        key (str|dict): (Optional) a seed key, or a mapping to copy.
        value: (Optional) the value of the seed key.
    """
    def __init__(self, key=None, value=None, **kwargs):
        if isinstance(key, dict):
            super().__init__(key)
        else:
            super().__init__()
            if key is not None:
                self[key] = value
        self.update(kwargs)
        pass

    def put(self, key:str, value) -> 'Ad':
        self[key] = value
        return self

    def remove(self, key:str):
        return self.pop(key, None)

    def has(self, key:str) -> bool:
        return key in self

    def get_int(self, key:str, default:int=0) -> int:
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_bool(self, key:str, default:bool=False) -> bool:
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, str):
            return value.lower() in ('true', 'yes', '1')
        return bool(value)

    def get_ads(self, key:str) -> list:
        """Return the ads listed under `key`, or an empty list."""
        value = self.get(key)
        if isinstance(value, dict):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []
        return [ v if isinstance(v, Ad) else Ad(v) for v in value if isinstance(v, dict) ]

    def __str__(self):
        pairs = [ f'{k} = {_format(v)}' for k,v in self.items() if v is not None ]
        return '[ ' + '; '.join(pairs) + ' ]' if pairs else '[ ]'

    def __repr__(self):
        return f'Ad({dict.__repr__(self)})'

    @staticmethod
    def parse(stream) -> 'Ad':
        """Parse the next ad from a binary stream.

        Reads no further than the closing bracket of the ad, so the rest of
        the stream is left for the next call.

        Returns:
            Ad: the parsed ad, or None if the stream ended before one began.

        Raises:
            AdParseException: the input is not a well-formed ad.
        """
        r = _Reader(stream)
        b = r.skip()
        if not b:
            return None
        if b != b'[':
            raise _unexpected(b, ' before ad')
        return _parse_ad(r)

    @staticmethod
    def parse_string(text:str) -> 'Ad':
        return Ad.parse( io.BytesIO(text.encode('utf-8')) )
    pass


class AdStream:
    """A lazy sequence of ads read from a binary stream, with lookahead."""
    def __init__(self, stream):
        self.stream = stream
        self._held = None
        self._peeked = False
        self._eof = False
        pass

    def peek(self) -> Ad:
        '''Return the next ad without consuming it, or None at end of stream.'''
        if not self._peeked and not self._eof:
            self._held = Ad.parse(self.stream)
            self._peeked = True
            self._eof = self._held is None
        return self._held

    def next(self) -> Ad:
        ad = self.peek()
        self._held, self._peeked = None, False
        return ad

    def __iter__(self):
        while True:
            ad = self.next()
            if ad is None:
                return
            yield ad
    pass
