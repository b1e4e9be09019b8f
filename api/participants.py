"""
Participant API Endpoints

職責：
1. 更新禮物偏好
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import ProfileUpdate, ParticipantResponse
from core.participant_manager import ParticipantManager
from core.exceptions import SecretSantaException
from api.errors import to_http_exception

router = APIRouter(prefix="/api/participants", tags=["participants"])
logger = logging.getLogger(__name__)


@router.patch("/{participant_id}", response_model=ParticipantResponse)
def update_profile(participant_id: str, profile: ProfileUpdate, db: Session = Depends(get_db)):
    """
    更新禮物偏好（色系 / 場合 / 感覺）

    - 只送要改的欄位；送空字串代表清空
    - 三欄都有值時 is_ready = True
    - 抽籤後仍然可以修改
    """
    try:
        participant = ParticipantManager.update_profile(
            db,
            participant_id,
            color=profile.color,
            occasion=profile.occasion,
            feeling=profile.feeling
        )
        return ParticipantResponse.model_validate(participant)

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to update profile: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
