"""
Query editor endpoints.
Expose chip rendering and editor actions over a stateless request/response.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from studyquery.limits import limiter
from studyquery.models.editor_state import (
    ActionType,
    EditorAction,
    EditorState,
    EditorView,
    TokenView,
)
from studyquery.services.editor import (
    editor,
    join_tokens,
    InvalidActionError,
    NotATermError,
)
from studyquery.services.normalizer import normalize
from studyquery.services.tokenizer import tokenize_and_classify


router = APIRouter()


class ActionRequest(BaseModel):
    """Current query plus the action to apply to it"""
    query: str = ""
    action: ActionType
    token: Optional[str] = None
    index: Optional[int] = None
    text: Optional[str] = None


class ActionResponse(BaseModel):
    state: EditorState
    view: EditorView


class TokensResponse(BaseModel):
    query: str
    tokens: List[TokenView]
    normalized: str


@router.post("/render", response_model=EditorView)
async def render(state: EditorState):
    """Project a query into its raw text and one chip per term."""
    return editor.render(state)


@router.post("/actions", response_model=ActionResponse)
@limiter.limit("120/minute")
async def apply_action(body: ActionRequest, request: Request):
    """
    Apply one editor action and return the new query with its chips.

    Actions:
    - append: add AND, OR, NOT, ( or ) to the end (not normalized)
    - remove_chip: remove the term at token `index` and repair operators
    - commit_text: collapse whitespace in `text` (Enter key)
    - set_text: replace the query with `text` verbatim
    - reset: clear the query
    """
    action = EditorAction(type=body.action, token=body.token, index=body.index, text=body.text)

    try:
        state = editor.apply(EditorState(query=body.query), action)
    except (InvalidActionError, NotATermError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ActionResponse(state=state, view=editor.render(state))


@router.get("/tokens", response_model=TokensResponse)
async def debug_tokens(q: str = Query("", description="Query to tokenize")):
    """
    Debug endpoint to see how a query is tokenized and what the cleanup
    pass would make of it.
    """
    return TokensResponse(
        query=q,
        tokens=editor.tokens(q),
        normalized=join_tokens(normalize(tokenize_and_classify(q))),
    )
