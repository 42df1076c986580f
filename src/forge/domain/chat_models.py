from __future__ import annotations

from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, EmailStr, Field


Role = Literal["system", "user", "assistant"]
StoredRole = Literal["user", "assistant"]


class UserPublic(BaseModel):
    id: int
    email: EmailStr
    name: Optional[str] = None


class SignupRequest(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    user: UserPublic


class Chat(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: int
    title: str
    model_id: Optional[str] = None
    created_at: str
    updated_at: str


class ChatCreate(BaseModel):
    model_config = ConfigDict(protected_namespaces=(), populate_by_name=True)

    title: Optional[str] = None
    model_id: Optional[str] = Field(default=None, alias="modelId")


class ChatUpdate(BaseModel):
    model_config = ConfigDict(protected_namespaces=(), populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1)
    model_id: Optional[str] = Field(default=None, alias="modelId")


class ChatMessage(BaseModel):
    id: int
    role: StoredRole
    content: str
    created_at: str


class ChatMessageCreate(BaseModel):
    role: StoredRole
    content: str = Field(min_length=1)


class ChatResponse(BaseModel):
    chat: Chat


class ChatListResponse(BaseModel):
    chats: List[Chat]


class ChatWithMessages(BaseModel):
    chat: Chat
    messages: List[ChatMessage]


class ChatMessageResponse(BaseModel):
    message: ChatMessage


class MessagePart(BaseModel):
    type: str = "text"
    text: str = ""


class UIMessage(BaseModel):
    """A transcript turn as the client sends it: text lives in ``parts``."""

    id: Optional[str] = None
    role: Role
    parts: List[MessagePart] = []
    content: Optional[str] = None

    def text(self) -> str:
        if self.parts:
            return "".join(part.text for part in self.parts if part.type == "text")
        return self.content or ""


class GenerationRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=(), populate_by_name=True)

    messages: List[UIMessage]
    model_id: Optional[str] = Field(default=None, alias="modelId")


class ModelOption(BaseModel):
    id: str
    name: str
    provider: str
    model: str
    description: Optional[str] = None
    available: bool
    default: bool = False


class PreviewRequest(BaseModel):
    code: str = Field(min_length=1)
