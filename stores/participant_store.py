"""
Identity Store：參加者的新增與查詢

同一個房間內，名字（不分大小寫）就是參加者的身分。
重連只靠「房間 + 名字」，所以名字唯一性是正確性的基礎。
"""
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Participant
from core.exceptions import ParticipantNameConflict, ParticipantNotFound
from services.naming_service import name_key


def insert_participant(db: Session, participant: Participant) -> Participant:
    """
    新增參加者

    同房間已有同名（不分大小寫）參加者時拋出 ParticipantNameConflict，
    不會建立第二筆。
    """
    participant.name_key = name_key(participant.name)
    if find_by_name(db, participant.room_id, participant.name):
        raise ParticipantNameConflict(participant.room_id, participant.name)

    db.add(participant)
    try:
        db.flush()
    except IntegrityError:
        raise ParticipantNameConflict(participant.room_id, participant.name)
    return participant


def find_participant(db: Session, participant_id: str) -> Optional[Participant]:
    return db.query(Participant).filter(Participant.id == participant_id).first()


def get_participant(db: Session, participant_id: str) -> Participant:
    """
    透過 id 取得參加者

    異常：
        ParticipantNotFound: 參加者不存在
    """
    participant = find_participant(db, participant_id)
    if not participant:
        raise ParticipantNotFound(participant_id)
    return participant


def find_by_name(db: Session, room_id: str, name: str) -> Optional[Participant]:
    return db.query(Participant).filter(
        Participant.room_id == room_id,
        Participant.name_key == name_key(name)
    ).first()


def list_by_room(db: Session, room_id: str) -> List[Participant]:
    """房間內所有參加者，依加入順序排列"""
    return db.query(Participant).filter(
        Participant.room_id == room_id
    ).order_by(Participant.joined_at).all()


def find_host(db: Session, room_id: str) -> Optional[Participant]:
    return db.query(Participant).filter(
        Participant.room_id == room_id,
        Participant.is_host == True  # noqa: E712
    ).first()
