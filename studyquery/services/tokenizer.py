"""Tokenizer and classifier for boolean study queries.

Splits a raw query such as ``[-22,-4,18] AND NOT emotion`` into tokens, keeping
bracketed coordinate literals atomic, and labels each token as an operator or
a search term.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


OPERATORS = ('AND', 'OR', 'NOT', '(', ')')
BINARY_OPERATORS = ('AND', 'OR')

# [x, y, z] with optionally signed integers or decimals and free inner spacing
_NUMBER = r'-?\d+(?:\.\d+)?'
COORDINATE_PATTERN = re.compile(
    r'\[\s*{n}\s*,\s*{n}\s*,\s*{n}\s*\]'.format(n=_NUMBER)
)


class TokenKind(str, Enum):
    OPERATOR = 'op'
    TERM = 'term'


@dataclass(frozen=True)
class Token:
    """A single lexical unit of a query, text kept verbatim."""
    kind: TokenKind
    text: str

    @property
    def is_operator(self) -> bool:
        return self.kind is TokenKind.OPERATOR

    @property
    def is_term(self) -> bool:
        return self.kind is TokenKind.TERM


def tokenize(raw: Optional[str]) -> List[str]:
    """
    Split a raw query string into tokens.

    Whitespace separates tokens, except inside a ``[...]`` literal: a ``[``
    with a later ``]`` produces one token running up to and including the
    first ``]``. A ``[`` with no closing bracket is read like any other
    character.
    """
    out = []
    text = raw or ''
    n = len(text)
    i = 0

    while i < n:
        if text[i].isspace():
            i += 1
            continue

        if text[i] == '[':
            j = text.find(']', i + 1)
            if j != -1:
                out.append(text[i:j + 1])
                i = j + 1
                continue

        j = i + 1
        while j < n and not text[j].isspace():
            j += 1
        out.append(text[i:j])
        i = j

    return [tok for tok in out if tok]


def is_operator(text: str) -> bool:
    return text in OPERATORS


def is_coordinate(text: str) -> bool:
    """Whether the text contains a ``[x, y, z]`` coordinate literal."""
    return COORDINATE_PATTERN.search(text) is not None


def classify(text: str) -> Token:
    """Label a token as an operator (exact, case-sensitive match) or a term."""
    if is_operator(text):
        return Token(TokenKind.OPERATOR, text)
    # Coordinates are terms too; kept separate so callers can tell them apart
    if is_coordinate(text):
        return Token(TokenKind.TERM, text)
    return Token(TokenKind.TERM, text)


def tokenize_and_classify(raw: Optional[str]) -> List[Token]:
    return [classify(tok) for tok in tokenize(raw)]


def is_binary_operator(token: Optional[Token]) -> bool:
    return token is not None and token.is_operator and token.text in BINARY_OPERATORS


def is_unary_not(token: Optional[Token]) -> bool:
    return token is not None and token.is_operator and token.text == 'NOT'


def is_open_paren(token: Optional[Token]) -> bool:
    return token is not None and token.is_operator and token.text == '('


def is_close_paren(token: Optional[Token]) -> bool:
    return token is not None and token.is_operator and token.text == ')'
