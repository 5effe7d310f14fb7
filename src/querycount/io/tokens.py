"""Whitespace-separated integer token streams, as used by plan and count files."""
from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional, TextIO, Tuple

from querycount.errors import InputFormatError


Token = Tuple[str, int]

# int() alone would also take "1_0" and non-ASCII digits
_INT_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)


def iter_tokens(lines: Iterable[str]) -> Iterator[Token]:
    """Yield (token, 1-based line number) for every token in *lines*."""
    for lineno, line in enumerate(lines, start=1):
        for tok in line.split():
            yield tok, lineno


class TokenReader:
    """
    Pull integers off a token stream, raising InputFormatError with
    file and line context on anything that is not an integer.
    """

    def __init__(self, stream: TextIO | Iterable[str], source: Optional[str] = None) -> None:
        self._tokens = iter_tokens(stream)
        self.source = source
        self.line: Optional[int] = None

    def _to_int(self, tok: str, what: str, record: Optional[int]) -> int:
        if _INT_RE.fullmatch(tok) is None:
            raise InputFormatError(
                f"expected an integer for {what}, found {tok!r}",
                source=self.source,
                record=record,
                line=self.line,
            )
        return int(tok)

    def next_int(self, what: str, *, record: Optional[int] = None) -> int:
        try:
            tok, self.line = next(self._tokens)
        except StopIteration:
            raise InputFormatError(
                f"unexpected end of input while reading {what}",
                source=self.source,
                record=record,
                line=self.line,
            ) from None
        return self._to_int(tok, what, record)

    def next_int_or_none(self, what: str, *, record: Optional[int] = None) -> Optional[int]:
        """Like next_int, but return None at a clean end of input."""
        try:
            tok, self.line = next(self._tokens)
        except StopIteration:
            return None
        return self._to_int(tok, what, record)
