"""Position-tracked parser combinators over immutable string streams.

A parser is a plain function ``Stream -> ParseResult | None``. Failure carries
no diagnostic; callers recover only by trying the next alternative.
"""

import re
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from trackhours.core.errors import GrammarError


T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Stream:
    """Input text plus the offset of the next unread character."""
    input:  str
    cursor: int = 0

    @property
    def at_end(self) -> bool:
        return self.cursor >= len(self.input)

    @property
    def rest(self) -> str:
        return self.input[self.cursor:]


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    stream: Stream
    value:  T


Parser = Callable[[Stream], Optional[ParseResult[T]]]


def stream(text: str) -> Stream:
    return Stream(text, 0)


def set_cursor(s: Stream, cursor: int) -> Stream:
    return replace(s, cursor=cursor)


def regex(pattern: Union[str, re.Pattern], flags: int = re.IGNORECASE) -> Parser[re.Match]:
    """Leaf parser: match ``pattern`` starting exactly at the cursor.

    Patterns are case-insensitive unless a compiled pattern is passed in.
    """
    if isinstance(pattern, str):
        pattern = re.compile(pattern, flags)
    elif not isinstance(pattern, re.Pattern):
        raise GrammarError(f"Expected a regular expression, got {type(pattern).__name__}")

    def parse(s: Stream) -> Optional[ParseResult[re.Match]]:
        # Pattern.match anchors at pos; it never scans forward.
        m = pattern.match(s.input, s.cursor)
        return ParseResult(set_cursor(s, m.end()), m) if m else None

    return parse


def map_parser(p: Parser[T], f: Callable[[T], U]) -> Parser[U]:
    def parse(s: Stream) -> Optional[ParseResult[U]]:
        r = p(s)
        return ParseResult(r.stream, f(r.value)) if r else None
    return parse


def sequence(*parsers: Parser[Any]) -> Parser[tuple]:
    """Run parsers in order, threading the cursor; fail as a whole if any fails."""
    def parse(s: Stream) -> Optional[ParseResult[tuple]]:
        values = []
        for p in parsers:
            r = p(s)
            if r is None:
                return None
            values.append(r.value)
            s = r.stream
        return ParseResult(s, tuple(values))
    return parse


def first_of(*parsers: Parser[Any]) -> Parser[Any]:
    """Return the first alternative that succeeds; order is significant."""
    def parse(s: Stream) -> Optional[ParseResult[Any]]:
        for p in parsers:
            r = p(s)
            if r is not None:
                return r
        return None
    return parse


def keep_left(a: Parser[T], b: Parser[Any]) -> Parser[T]:
    return map_parser(sequence(a, b), lambda v: v[0])


def keep_right(a: Parser[Any], b: Parser[U]) -> Parser[U]:
    return map_parser(sequence(a, b), lambda v: v[1])


def succeed(value: T) -> Parser[T]:
    return lambda s: ParseResult(s, value)


def optional(p: Parser[T]) -> Parser[Optional[T]]:
    return first_of(p, succeed(None))


def end_anchored(p: Parser[T]) -> Parser[T]:
    """Succeed only if ``p`` consumes the remaining input."""
    def parse(s: Stream) -> Optional[ParseResult[T]]:
        r = p(s)
        return r if r is not None and r.stream.at_end else None
    return parse


def many1(p: Parser[T]) -> Parser[list[T]]:
    def parse(s: Stream) -> Optional[ParseResult[list[T]]]:
        r = p(s)
        if r is None:
            return None
        values = [r.value]
        s = r.stream
        while (r := p(s)) is not None and r.stream.cursor > s.cursor:
            values.append(r.value)
            s = r.stream
        return ParseResult(s, values)
    return parse


def separated_by1(p: Parser[T], sep: Parser[Any]) -> Parser[list[T]]:
    """One ``p``, then zero or more ``sep p`` pairs."""
    return map_parser(
        sequence(p, optional(many1(keep_right(sep, p)))),
        lambda v: [v[0], *(v[1] or [])],
    )
