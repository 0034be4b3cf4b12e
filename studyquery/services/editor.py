"""
Query editor service.

Keeps the free-text box and the term chips in sync. The editor holds no state
of its own: every action takes the current query and returns the next one.
"""

import logging
import re
from typing import List, Sequence

from studyquery.models.editor_state import (
    ActionType,
    ChipView,
    EditorAction,
    EditorState,
    EditorView,
    TokenView,
)
from studyquery.services.normalizer import normalize
from studyquery.services.tokenizer import (
    OPERATORS,
    Token,
    is_binary_operator,
    is_coordinate,
    is_unary_not,
    tokenize_and_classify,
)

logger = logging.getLogger(__name__)


class EditorError(Exception):
    """Base class for editor action failures."""
    pass


class NotATermError(EditorError):
    """Raised when a chip removal targets an operator token."""
    pass


class InvalidActionError(EditorError):
    """Raised when an action is missing its argument or is not supported."""
    pass


def collapse_whitespace(text: str) -> str:
    return re.sub(r'\s+', ' ', text or '').strip()


def join_tokens(tokens: Sequence[Token]) -> str:
    return collapse_whitespace(' '.join(t.text for t in tokens))


def remove_term_at(tokens: Sequence[Token], index: int) -> List[Token]:
    """
    Remove the term at ``index`` without leaving a broken expression.

    The term goes first, then a ``NOT`` directly in front of it, then one
    binary operator: the one now at the removal position if there is one,
    otherwise the one just before it. The result is normalized.

    Raises:
        NotATermError: If ``index`` points at an operator
    """
    arr = list(tokens)
    if index < 0 or index >= len(arr):
        return arr

    if arr[index].is_operator:
        raise NotATermError(f"Token {index} ({arr[index].text!r}) is an operator, not a term")

    del arr[index]

    if index - 1 >= 0 and is_unary_not(arr[index - 1]):
        del arr[index - 1]
        index -= 1

    if index < len(arr) and is_binary_operator(arr[index]):
        del arr[index]
    elif index - 1 >= 0 and is_binary_operator(arr[index - 1]):
        del arr[index - 1]

    return normalize(arr)


class QueryEditorService:
    """
    Applies user actions to the query and projects it into chips.
    """

    def append(self, query: str, token: str) -> str:
        """Append a structural token. The result is not normalized."""
        if token not in OPERATORS:
            raise InvalidActionError(
                f"Cannot append {token!r}. Allowed tokens: {', '.join(OPERATORS)}"
            )
        return f"{query} {token}" if query else token

    def remove_chip(self, query: str, index: int) -> str:
        tokens = tokenize_and_classify(query)
        new_query = join_tokens(remove_term_at(tokens, index))
        logger.info(f"Removed chip {index}: {query!r} -> {new_query!r}")
        return new_query

    def commit_text(self, text: str) -> str:
        # Only whitespace is tidied; the user may be mid-way through an expression
        return collapse_whitespace(text)

    def apply(self, state: EditorState, action: EditorAction) -> EditorState:
        """
        Compute the next editor state for a single action.

        Raises:
            InvalidActionError: If the action lacks its argument or token
            NotATermError: If a chip removal targets an operator
        """
        if action.type == ActionType.APPEND:
            if action.token is None:
                raise InvalidActionError("append requires a token")
            return EditorState(query=self.append(state.query, action.token))

        if action.type == ActionType.REMOVE_CHIP:
            if action.index is None:
                raise InvalidActionError("remove_chip requires an index")
            return EditorState(query=self.remove_chip(state.query, action.index))

        if action.type == ActionType.COMMIT_TEXT:
            text = state.query if action.text is None else action.text
            return EditorState(query=self.commit_text(text))

        if action.type == ActionType.SET_TEXT:
            return EditorState(query=action.text or "")

        if action.type == ActionType.RESET:
            return EditorState(query="")

        raise InvalidActionError(f"Unsupported action: {action.type}")

    def tokens(self, query: str) -> List[TokenView]:
        return [
            TokenView(index=i, kind=t.kind.value, text=t.text)
            for i, t in enumerate(tokenize_and_classify(query))
        ]

    def render(self, state: EditorState) -> EditorView:
        """Chips for every term token, indexed by position in the token list."""
        chips = [
            ChipView(
                index=i,
                text=t.text,
                label=f"remove {t.text}",
                is_coordinate=is_coordinate(t.text),
            )
            for i, t in enumerate(tokenize_and_classify(state.query))
            if t.is_term
        ]
        return EditorView(text=state.query, chips=chips)


# Singleton instance
editor = QueryEditorService()
