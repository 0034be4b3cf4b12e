"""
State and view models for the query editor.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


QUERY_PLACEHOLDER = "Create a query here, e.g.: [-22,-4,18] NOT emotion"


class ActionType(str, Enum):
    APPEND = "append"
    REMOVE_CHIP = "remove_chip"
    COMMIT_TEXT = "commit_text"
    SET_TEXT = "set_text"
    RESET = "reset"


class EditorState(BaseModel):
    """The committed query string. Tokens are always derived from it."""
    query: str = ""


class EditorAction(BaseModel):
    """A discrete user action against the editor."""
    type: ActionType
    token: Optional[str] = None   # append
    index: Optional[int] = None   # remove_chip
    text: Optional[str] = None    # commit_text / set_text


class TokenView(BaseModel):
    index: int
    kind: str
    text: str


class ChipView(BaseModel):
    """One removable chip, rendered for a single term token."""
    index: int
    text: str
    label: str
    is_coordinate: bool = False


class EditorView(BaseModel):
    text: str
    chips: List[ChipView]
    placeholder: str = QUERY_PLACEHOLDER
