"""
Cleanup pass for classified query tokens.

Repairs boundary and adjacency defects left behind by edits: empty ``( )``
pairs, leading or trailing operators and doubled operators. Parenthesis
balance in the middle of the expression is not checked.
"""

import logging
from typing import Iterable, List

from studyquery.services.tokenizer import Token, is_close_paren, is_open_paren

logger = logging.getLogger(__name__)


def _drop_empty_parens(arr: List[Token]) -> bool:
    for i in range(len(arr) - 1):
        if is_open_paren(arr[i]) and is_close_paren(arr[i + 1]):
            del arr[i:i + 2]
            return True
    return False


def _strip_boundaries(arr: List[Token]) -> bool:
    changed = False

    # A leading '(' may open a group; anything else at the start is dangling
    while arr and arr[0].is_operator and arr[0].text != '(':
        del arr[0]
        changed = True

    while arr and arr[-1].is_operator and arr[-1].text != ')':
        arr.pop()
        changed = True

    return changed


def _collapse_adjacent_operators(arr: List[Token]) -> bool:
    for i in range(1, len(arr)):
        prev, cur = arr[i - 1], arr[i]
        if prev.is_operator and cur.is_operator and not is_open_paren(cur) and not is_close_paren(prev):
            del arr[i]
            return True
    return False


def normalize(tokens: Iterable[Token]) -> List[Token]:
    """
    Apply the cleanup rules until none of them fires.

    Rules are tried in priority order and the scan restarts after any change:
    empty parenthesis pairs, boundary operators, then adjacent operators
    (the second of the pair is dropped). Returns a new list.
    """
    arr = list(tokens)
    if not arr:
        return []

    before = len(arr)
    while True:
        if _drop_empty_parens(arr):
            continue
        if _strip_boundaries(arr):
            continue
        if _collapse_adjacent_operators(arr):
            continue
        break

    if len(arr) != before:
        logger.debug(f"Normalized query tokens: dropped {before - len(arr)} of {before}")

    return arr
