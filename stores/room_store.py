"""
Room Store：房間的新增與查詢
"""
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Room
from core.exceptions import RoomCodeConflict, RoomNotFound
from services.naming_service import normalize_code


def insert_room(db: Session, room: Room) -> Room:
    """
    新增房間

    房間代碼撞到既有房間時不會覆蓋，而是拋出 RoomCodeConflict。
    拋出異常後 session 需要 rollback（由呼叫者處理）。
    """
    room.code = normalize_code(room.code)
    if code_in_use(db, room.code):
        raise RoomCodeConflict(room.code)

    db.add(room)
    try:
        db.flush()
    except IntegrityError:
        # 其他 process 剛好搶先用了同一個代碼
        raise RoomCodeConflict(room.code)
    return room


def code_in_use(db: Session, code: str) -> bool:
    return db.query(Room.id).filter(Room.code == normalize_code(code)).first() is not None


def find_room(db: Session, room_id: str) -> Optional[Room]:
    return db.query(Room).filter(Room.id == room_id).first()


def find_room_by_code(db: Session, code: str) -> Optional[Room]:
    return db.query(Room).filter(Room.code == normalize_code(code)).first()


def get_room(db: Session, room_id: str) -> Room:
    """
    透過 id 取得 Room

    異常：
        RoomNotFound: Room 不存在
    """
    room = find_room(db, room_id)
    if not room:
        raise RoomNotFound(room_id)
    return room


def get_room_by_code(db: Session, code: str) -> Room:
    """
    透過房間代碼取得 Room（不分大小寫）

    異常：
        RoomNotFound: Room 不存在
    """
    room = find_room_by_code(db, code)
    if not room:
        raise RoomNotFound(code=normalize_code(code))
    return room
