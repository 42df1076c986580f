from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...domain.chat_models import (
    ChatCreate,
    ChatListResponse,
    ChatMessageCreate,
    ChatMessageResponse,
    ChatResponse,
    ChatUpdate,
    ChatWithMessages,
    UserPublic,
)
from ...infrastructure.chat_store import get_chat_store
from ...security.auth import get_current_user

router = APIRouter(prefix="/chats", tags=["chats"])

CHAT_NOT_FOUND = "Chat not found"


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CHAT_NOT_FOUND)


@router.get("", response_model=ChatListResponse)
def list_chats(user: UserPublic = Depends(get_current_user)) -> ChatListResponse:
    return ChatListResponse(chats=get_chat_store().list_chats(user.id))


@router.post("", response_model=ChatResponse)
def create_chat(body: ChatCreate, user: UserPublic = Depends(get_current_user)) -> ChatResponse:
    chat = get_chat_store().create_chat(user.id, title=body.title, model_id=body.model_id)
    return ChatResponse(chat=chat)


@router.get("/{chat_id}", response_model=ChatWithMessages)
def get_chat(chat_id: int, user: UserPublic = Depends(get_current_user)) -> ChatWithMessages:
    store = get_chat_store()
    chat = store.get_chat(user.id, chat_id)
    if chat is None:
        raise _not_found()
    return ChatWithMessages(chat=chat, messages=store.list_messages(user.id, chat_id) or [])


@router.patch("/{chat_id}", response_model=ChatResponse)
def update_chat(chat_id: int, body: ChatUpdate, user: UserPublic = Depends(get_current_user)) -> ChatResponse:
    chat = get_chat_store().update_chat(user.id, chat_id, title=body.title, model_id=body.model_id)
    if chat is None:
        raise _not_found()
    return ChatResponse(chat=chat)


@router.delete("/{chat_id}")
def delete_chat(chat_id: int, user: UserPublic = Depends(get_current_user)) -> dict:
    if not get_chat_store().delete_chat(user.id, chat_id):
        raise _not_found()
    return {"success": True}


@router.post("/{chat_id}/messages", response_model=ChatMessageResponse)
def add_message(
    chat_id: int,
    body: ChatMessageCreate,
    user: UserPublic = Depends(get_current_user),
) -> ChatMessageResponse:
    message = get_chat_store().add_message(user.id, chat_id, body.role, body.content)
    if message is None:
        raise _not_found()
    return ChatMessageResponse(message=message)
