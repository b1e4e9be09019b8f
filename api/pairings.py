"""
Pairing API Endpoints

職責：
1. 抽籤 / 重抽（Host）
2. 查詢自己要送給誰
3. 查詢全部配對（揭曉後顯示）
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from schemas import (
    MyPairingResponse,
    PairingResponse,
    ParticipantResponse,
    StatusResponse
)
from core.pairing_manager import PairingManager
from core.exceptions import SecretSantaException
from api.errors import to_http_exception

router = APIRouter(prefix="/api/rooms", tags=["pairings"])
logger = logging.getLogger(__name__)


@router.post("/{room_id}/pairings", response_model=StatusResponse)
def generate_pairing(room_id: str, db: Session = Depends(get_db)):
    """
    抽籤（Host endpoint）

    - 第一次呼叫：鎖定房間，stage OPEN -> MATCHED
    - 再次呼叫：重抽，整組替換
    - 揭曉後不能再抽

    MatchingFailed 時回應 retryable=true，前端可以直接再按一次
    """
    try:
        PairingManager.generate_pairing(db, room_id)
        return StatusResponse(status="ok")

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to generate pairing: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/pairings/mine", response_model=MyPairingResponse)
def get_my_pairing(
    room_id: str,
    participant_id: str = Query(...),
    db: Session = Depends(get_db)
):
    """
    取得我要送禮的對象

    返回：
        - receiver: 收禮者；還沒抽籤時為 null
    """
    try:
        receiver = PairingManager.get_my_pairing(db, room_id, participant_id)
        if receiver is None:
            return MyPairingResponse(receiver=None)
        return MyPairingResponse(receiver=ParticipantResponse.model_validate(receiver))

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get pairing: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/pairings", response_model=List[PairingResponse])
def get_all_pairings(room_id: str, db: Session = Depends(get_db)):
    """取得房間目前所有配對（giver -> receiver）"""
    try:
        return [
            PairingResponse(
                giver=ParticipantResponse.model_validate(giver),
                receiver=ParticipantResponse.model_validate(receiver)
            )
            for giver, receiver in PairingManager.get_all_pairings(db, room_id)
        ]

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get pairings: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
