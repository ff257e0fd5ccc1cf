# solarscope/routers/history.py
"""
Analysis and chat history for the current owner.

The caller's identity arrives either as ?user_id= (already authenticated by
the auth layer) or as the anonymous X-Session-Id header.
"""
from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel, ValidationError

from solarscope.dependencies import get_storage
from solarscope.repositories import DEFAULT_MESSAGE_LIMIT, Storage
from solarscope.schemas import (
    AnalysisCreate,
    AnalysisRecord,
    ChatMessageCreate,
    ChatMessageRecord,
)

router = APIRouter(tags=["history"])

# ----- Request/Response payloads -----
class AnalysisListResponse(BaseModel):
    items: List[AnalysisRecord]

class ChatHistoryResponse(BaseModel):
    items: List[ChatMessageRecord]

# ----- Helpers -----
def _require_owner(user_id: Optional[int], x_session_id: Optional[str]) -> None:
    if user_id is None and not x_session_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide user_id or the X-Session-Id header",
        )

def _owned(payload: dict, user_id: Optional[int], x_session_id: Optional[str]) -> dict:
    # Authenticated callers own their records; the session id is ignored for them
    owner = {"user_id": user_id} if user_id is not None else {"session_id": x_session_id}
    return {**payload, **owner}

# ----- Routes -----
@router.get("/analyses", response_model=AnalysisListResponse, summary="List analyses, newest first")
async def list_analyses(
    user_id: Optional[int] = Query(None, ge=1),
    x_session_id: Optional[str] = Header(default=None, convert_underscores=False, alias="X-Session-Id"),
    storage: Storage = Depends(get_storage),
):
    _require_owner(user_id, x_session_id)
    if user_id is not None:
        items = await storage.get_analyses_by_user(user_id)
    else:
        items = await storage.get_analyses_by_session(x_session_id)
    return AnalysisListResponse(items=items)

@router.post(
    "/analyses",
    response_model=AnalysisRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Persist a finished analysis",
)
async def create_analysis(
    payload: dict,
    user_id: Optional[int] = Query(None, ge=1),
    x_session_id: Optional[str] = Header(default=None, convert_underscores=False, alias="X-Session-Id"),
    storage: Storage = Depends(get_storage),
):
    _require_owner(user_id, x_session_id)
    try:
        data = AnalysisCreate.model_validate(_owned(payload, user_id, x_session_id))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    return await storage.create_analysis(data)

@router.get("/analyses/{analysis_id}", response_model=AnalysisRecord, summary="Fetch one analysis")
async def get_analysis(analysis_id: int, storage: Storage = Depends(get_storage)):
    analysis = await storage.get_analysis(analysis_id)
    if not analysis:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")
    return analysis

@router.get("/chat/messages", response_model=ChatHistoryResponse, summary="Recent chat messages, newest first")
async def list_chat_messages(
    user_id: Optional[int] = Query(None, ge=1),
    limit: int = Query(DEFAULT_MESSAGE_LIMIT, ge=1, le=200),
    x_session_id: Optional[str] = Header(default=None, convert_underscores=False, alias="X-Session-Id"),
    storage: Storage = Depends(get_storage),
):
    _require_owner(user_id, x_session_id)
    if user_id is not None:
        items = await storage.get_chat_messages_by_user(user_id, limit)
    else:
        items = await storage.get_chat_messages_by_session(x_session_id, limit)
    return ChatHistoryResponse(items=items)

@router.post(
    "/chat/messages",
    response_model=ChatMessageRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Store a chat message",
)
async def create_chat_message(
    payload: dict,
    user_id: Optional[int] = Query(None, ge=1),
    x_session_id: Optional[str] = Header(default=None, convert_underscores=False, alias="X-Session-Id"),
    storage: Storage = Depends(get_storage),
):
    try:
        data = ChatMessageCreate.model_validate(_owned(payload, user_id, x_session_id))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    return await storage.create_chat_message(data)

@router.delete(
    "/session-data",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Forget everything stored for the anonymous session",
)
async def clear_session_data(
    x_session_id: Optional[str] = Header(default=None, convert_underscores=False, alias="X-Session-Id"),
    storage: Storage = Depends(get_storage),
):
    if not x_session_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing X-Session-Id header")
    await storage.clear_session_data(x_session_id)
