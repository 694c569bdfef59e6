"""Job id ranges of the form ``m[-n](,m[-n])*``, e.g. ``1-4,7,10-13``."""
import re

_SPAN = re.compile(r'([0-9]+)(?:-([0-9]+))?')


class Range:
    """A set of non-negative integers kept as sorted, coalesced spans."""
    def __init__(self, start:int=None, end:int=None):
        self.spans = list()
        if start is not None:
            self._add(start, start if end is None else end)
        pass

    @staticmethod
    def parse(text:str) -> 'Range':
        '''Parse a range expression, returning None if it is not one.'''
        if not isinstance(text, str) or not text:
            return None
        r = Range()
        for part in text.split(','):
            m = _SPAN.fullmatch(part)
            if not m:
                return None
            start = int(m.group(1))
            end = int(m.group(2)) if m.group(2) is not None else start
            if start > end:
                return None
            r._add(start, end)
        return r

    def _add(self, start:int, end:int):
        spans = list()
        for (s,e) in self.spans:
            if e + 1 < start or end + 1 < s:
                spans.append((s,e))
            else:
                start, end = min(s, start), max(e, end)
        spans.append((start, end))
        self.spans = sorted(spans)

    def swallow(self, other:'Range') -> 'Range':
        """Add every number of `other` to this range."""
        for (s,e) in other.spans:
            self._add(s, e)
        return self

    def is_empty(self) -> bool:
        return not self.spans

    def __iter__(self):
        for (s,e) in self.spans:
            yield from range(s, e+1)

    def __contains__(self, n):
        return any(s <= n <= e for (s,e) in self.spans)

    def __len__(self):
        return sum(e - s + 1 for (s,e) in self.spans)

    def __eq__(self, other):
        return isinstance(other, Range) and self.spans == other.spans

    def __str__(self):
        return ','.join( str(s) if s == e else f'{s}-{e}' for (s,e) in self.spans )

    def __repr__(self):
        return f'Range({str(self)!r})'
    pass
