"""
API Request / Response 模型（Pydantic）
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import RoomStage


# ============ Room ============

class RoomCreate(BaseModel):
    host_name: str = Field(..., min_length=1, max_length=50)
    budget_min: int
    budget_max: int
    allow_handmade: bool = True


class RoomJoin(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=50)


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    host_id: Optional[str]
    budget_min: int
    budget_max: int
    allow_handmade: bool
    locked: bool
    stage: RoomStage
    state_version: int
    created_at: datetime


# ============ Participant ============

class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    room_id: str
    name: str
    color: str
    occasion: str
    feeling: str
    is_host: bool
    is_ready: bool


class ProfileUpdate(BaseModel):
    """None 表示不修改，空字串表示清空"""
    color: Optional[str] = Field(None, max_length=100)
    occasion: Optional[str] = Field(None, max_length=100)
    feeling: Optional[str] = Field(None, max_length=100)


class SessionResponse(BaseModel):
    """建立 / 加入 / 重連之後回傳：前端把 participant.id 存起來"""
    room: RoomResponse
    participant: ParticipantResponse


class RoomStateResponse(BaseModel):
    room: RoomResponse
    participants: List[ParticipantResponse]


# ============ Pairing ============

class MyPairingResponse(BaseModel):
    receiver: Optional[ParticipantResponse] = None


class PairingResponse(BaseModel):
    giver: ParticipantResponse
    receiver: ParticipantResponse


class StatusResponse(BaseModel):
    status: str = "ok"


# ============ Gift suggestions ============

class SuggestionRequest(BaseModel):
    color: str = Field(..., min_length=1, max_length=100)
    occasion: str = Field(..., min_length=1, max_length=100)
    feeling: str = Field(..., min_length=1, max_length=100)
    budget_min: int
    budget_max: int


class GiftSuggestion(BaseModel):
    name: str
    description: str


class SuggestionResponse(BaseModel):
    suggestions: List[GiftSuggestion]
