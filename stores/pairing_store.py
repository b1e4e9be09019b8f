"""
Pairing Store：抽籤結果的查詢與整組替換

pairings 以 (room_id, generation) 分組，只有 Room.pairing_generation
指向的那一代才是有效的配對。重抽時舊的一代會被整組刪除，不會和新的混在一起。
"""
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session, joinedload

from models import Pairing, Room


def replace_for_room(db: Session, room: Room, pairs: Sequence[Tuple[str, str]]) -> int:
    """
    用新的配對整組替換房間的配對

    流程：
    1. 刪除房間所有舊配對
    2. generation + 1
    3. 寫入新配對

    參數：
        db: SQLAlchemy Session
        room: 已鎖定的 Room
        pairs: [(giver_id, receiver_id), ...]

    返回：
        新的 generation

    注意：
        - 只 flush 不 commit，必須和房間狀態更新在同一個 transaction 內
    """
    db.query(Pairing).filter(Pairing.room_id == room.id).delete(synchronize_session="fetch")

    generation = (room.pairing_generation or 0) + 1
    room.pairing_generation = generation

    for giver_id, receiver_id in pairs:
        db.add(Pairing(
            room_id=room.id,
            generation=generation,
            giver_id=giver_id,
            receiver_id=receiver_id
        ))

    db.flush()
    return generation


def _current_generation(db: Session, room: Room):
    """
    目前這一代配對的查詢

    generation 在同一個 SELECT 內和 rooms 表比對，
    不用 session 裡可能已經過期的 room.pairing_generation
    """
    return db.query(Pairing).join(
        Room, Room.id == Pairing.room_id
    ).filter(
        Pairing.room_id == room.id,
        Pairing.generation == Room.pairing_generation
    )


def list_current(db: Session, room: Room) -> List[Pairing]:
    """目前這一代的所有配對（附帶 giver / receiver）"""
    return _current_generation(db, room).options(
        joinedload(Pairing.giver),
        joinedload(Pairing.receiver)
    ).order_by(Pairing.id).all()


def find_for_giver(db: Session, room: Room, giver_id: str) -> Optional[Pairing]:
    return _current_generation(db, room).options(
        joinedload(Pairing.receiver)
    ).filter(
        Pairing.giver_id == giver_id
    ).first()
