"""
Room API Endpoints - 短輪詢版

職責：
1. 建立房間（Host）
2. 加入 / 重連、主持人登入
3. 查詢房間狀態（前端每幾秒呼叫一次 /state）
4. 鎖定、揭曉（Host）
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    RoomCreate,
    RoomJoin,
    RoomResponse,
    ParticipantResponse,
    SessionResponse,
    RoomStateResponse,
    StatusResponse
)
from core.room_manager import RoomManager
from core.exceptions import SecretSantaException
from api.errors import to_http_exception

router = APIRouter(prefix="/api/rooms", tags=["rooms"])
logger = logging.getLogger(__name__)


def _session_response(room, participant) -> SessionResponse:
    return SessionResponse(
        room=RoomResponse.model_validate(room),
        participant=ParticipantResponse.model_validate(participant)
    )


@router.post("", response_model=SessionResponse)
def create_room(room_data: RoomCreate, db: Session = Depends(get_db)):
    """
    建立房間（Host endpoint）

    返回：
        - room: 房間資訊（含 6 碼代碼）
        - participant: Host 自己（前端存 participant.id）
    """
    try:
        room, host = RoomManager.create_room(
            db,
            room_data.host_name,
            room_data.budget_min,
            room_data.budget_max,
            room_data.allow_handmade
        )
        return _session_response(room, host)

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to create room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/join", response_model=SessionResponse)
def join_room(join_data: RoomJoin, db: Session = Depends(get_db)):
    """
    加入房間，或用原本的名字重連

    - 同名（不分大小寫）直接回到原本的身分，房間鎖定後也可以
    - 新名字只能在房間鎖定前加入
    """
    try:
        room, participant = RoomManager.join_room(db, join_data.code, join_data.name)
        return _session_response(room, participant)

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to join room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/host-login", response_model=SessionResponse)
def host_login(join_data: RoomJoin, db: Session = Depends(get_db)):
    """主持人重新登入（名字必須是 Host）"""
    try:
        room, host = RoomManager.login_as_host(db, join_data.code, join_data.name)
        return _session_response(room, host)

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed host login: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/state", response_model=RoomStateResponse)
def get_room_state(room_id: str, db: Session = Depends(get_db)):
    """
    取得房間狀態（短輪詢）

    返回：
        - room: 含 stage、locked、state_version
        - participants: 依加入順序
    """
    try:
        room, participants = RoomManager.get_room_state(db, room_id)
        return RoomStateResponse(
            room=RoomResponse.model_validate(room),
            participants=[ParticipantResponse.model_validate(p) for p in participants]
        )

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get room state: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{room_id}/lock", response_model=StatusResponse)
def lock_room(room_id: str, db: Session = Depends(get_db)):
    """鎖定房間（Host endpoint，冪等）"""
    try:
        RoomManager.lock_room(db, room_id)
        return StatusResponse(status="ok")

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to lock room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{room_id}/reveal", response_model=StatusResponse)
def reveal_room(room_id: str, db: Session = Depends(get_db)):
    """
    揭曉所有配對（Host endpoint）

    效果：
    - stage MATCHED -> REVEALED
    - 客戶端透過 /state 得知 REVEALED 後再呼叫 GET /pairings
    """
    try:
        RoomManager.reveal_room(db, room_id)
        return StatusResponse(status="ok")

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to reveal room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
