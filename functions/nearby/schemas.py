"""
Pydantic schemas for the nearby chat API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)
    name: str = Field(..., max_length=128)
    avatar: str = Field(..., max_length=64)


class SignupResponse(BaseModel):
    success: bool
    user: dict


class SigninRequest(BaseModel):
    email: str
    password: str


class SigninResponse(BaseModel):
    accessToken: str
    user: dict


class UpdateLocationRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class SuccessResponse(BaseModel):
    success: bool


class NearbyUser(BaseModel):
    id: str
    name: str
    avatar: str
    latitude: float
    longitude: float
    lastSeen: Optional[str] = None


class NearbyUsersResponse(BaseModel):
    users: list[NearbyUser]


class SendMessageRequest(BaseModel):
    recipientId: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1, max_length=4096)


class Message(BaseModel):
    senderId: str
    recipientId: str
    message: str
    timestamp: str


class SendMessageResponse(BaseModel):
    success: bool
    message: Message


class MessagesResponse(BaseModel):
    messages: list[Message]


class HealthResponse(BaseModel):
    status: Literal["ok"]


class ErrorResponse(BaseModel):
    error: str
