"""
Participant Manager：參加者的禮物偏好
"""
from sqlalchemy.orm import Session
from typing import Dict, Optional
import logging

from models import Participant
from core.locks import room_mutex, with_room_lock
from services.state_service import bump_state_version
from stores import participant_store
from database import transactional

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS = ("color", "occasion", "feeling")


def is_profile_complete(participant: Participant) -> bool:
    """三個偏好欄位（去空白後）都有填才算 ready"""
    return all((getattr(participant, field) or "").strip() for field in PREFERENCE_FIELDS)


class ParticipantManager:

    @staticmethod
    def update_profile(
        db: Session,
        participant_id: str,
        color: Optional[str] = None,
        occasion: Optional[str] = None,
        feeling: Optional[str] = None
    ) -> Participant:
        """
        更新禮物偏好（部分更新）

        - None 代表「沒有要改」，空字串代表「清空」
        - 合併後重新計算 is_ready，清空任何一欄會變回 False
        - 任何 stage 都可以修改（配對引用的是參加者本身，不是快照）

        異常：
            ParticipantNotFound: 參加者不存在
        """
        participant = participant_store.get_participant(db, participant_id)
        changes = {
            field: value
            for field, value in (("color", color), ("occasion", occasion), ("feeling", feeling))
            if value is not None
        }

        with room_mutex(participant.room_id):
            return ParticipantManager._update_profile(db, participant.room_id, participant_id, changes)

    @staticmethod
    @transactional
    def _update_profile(db: Session, room_id: str, participant_id: str, changes: Dict[str, str]) -> Participant:
        room = with_room_lock(room_id, db).first()
        participant = participant_store.get_participant(db, participant_id)
        db.refresh(participant)

        for field, value in changes.items():
            setattr(participant, field, value.strip())

        was_ready = participant.is_ready
        participant.is_ready = is_profile_complete(participant)
        bump_state_version(room, reason="profile_updated")

        if was_ready != participant.is_ready:
            logger.info(f"Participant {participant_id} ready={participant.is_ready}")
        return participant
