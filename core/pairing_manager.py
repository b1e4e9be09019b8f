"""
Pairing Manager：抽籤、重抽與查詢配對

職責：
1. 抽籤 / 重抽（derangement + 整組替換 + stage 轉換，同一個 transaction）
2. 查詢「我要送禮給誰」
3. 查詢整個房間的配對（揭曉用）
"""
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
import logging
import random

from models import Room, Participant, RoomStage
from core.state_machine import RoomStateMachine
from core.locks import room_mutex, with_room_lock
from core.exceptions import RoomNotFound, InvalidStateTransition
from services.matching_service import generate_derangement
from stores import room_store, participant_store, pairing_store
from database import transactional, get_settings

logger = logging.getLogger(__name__)


class PairingManager:
    """抽籤管理器"""

    @staticmethod
    def generate_pairing(db: Session, room_id: str, rng: Optional[random.Random] = None) -> Room:
        """
        抽籤（第一次抽籤或重抽都走這裡）

        前置條件：
        1. Room 必須存在
        2. Room 不能是 REVEALED（揭曉後重抽會讓已公開的結果失效）
        3. 至少 2 位參加者

        流程（全部在同一把鎖、同一個 transaction 內）：
        1. 鎖定 Room
        2. 依加入順序取出所有參加者
        3. 產生 derangement
        4. 整組替換配對，generation + 1
        5. locked = True，stage -> MATCHED

        任何一步失敗都會 rollback，不會留下半套配對。

        參數：
            db: SQLAlchemy Session
            room_id: Room id
            rng: 亂數產生器（測試用）

        返回：
            更新後的 Room

        異常：
            RoomNotFound: Room 不存在
            InvalidStateTransition: Room 已揭曉
            InsufficientParticipants: 少於 2 人
            MatchingFailed: 重抽次數用完（可以再試一次）
        """
        room = room_store.get_room(db, room_id)

        with room_mutex(room.id):
            return PairingManager._generate_pairing(db, room.id, rng)

    @staticmethod
    @transactional
    def _generate_pairing(db: Session, room_id: str, rng: Optional[random.Random]) -> Room:
        # 1. 取得並鎖定 Room
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

        if not RoomStateMachine.can_transition(room.stage, RoomStage.MATCHED):
            raise InvalidStateTransition(
                f"Room {room_id} is {room.stage.value}; pairings can no longer be drawn"
            )

        # 2. 產生配對
        participants = participant_store.list_by_room(db, room.id)
        pairs = generate_derangement(
            [p.id for p in participants],
            rng=rng,
            max_attempts=get_settings().max_matching_attempts
        )

        # 3. 整組替換 + 狀態轉換
        redraw = room.stage == RoomStage.MATCHED
        generation = pairing_store.replace_for_room(db, room, pairs)
        room = RoomStateMachine.transition(room, RoomStage.MATCHED)

        logger.info(
            f"{'Redrew' if redraw else 'Drew'} pairings for room {room_id}: "
            f"{len(pairs)} participants, generation {generation}"
        )
        return room

    @staticmethod
    def get_my_pairing(db: Session, room_id: str, participant_id: str) -> Optional[Participant]:
        """
        查詢某位參加者要送禮的對象

        返回：
            收禮者 Participant；還沒抽籤或不在本次配對中則為 None

        異常：
            RoomNotFound: Room 不存在
        """
        room = room_store.get_room(db, room_id)
        pairing = pairing_store.find_for_giver(db, room, participant_id)
        if not pairing:
            return None
        return pairing.receiver

    @staticmethod
    def get_all_pairings(db: Session, room_id: str) -> List[Tuple[Participant, Participant]]:
        """
        取得房間目前這一代的所有配對

        返回：
            [(giver, receiver), ...]

        異常：
            RoomNotFound: Room 不存在
        """
        room = room_store.get_room(db, room_id)
        return [
            (pairing.giver, pairing.receiver)
            for pairing in pairing_store.list_current(db, room)
        ]
