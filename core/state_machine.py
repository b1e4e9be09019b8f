"""
房間狀態機：集中管理所有 stage 轉換

合法轉換：
    OPEN     -> MATCHED   （第一次抽籤）
    MATCHED  -> MATCHED   （重抽）
    MATCHED  -> REVEALED  （揭曉）

REVEALED 是終點，任何轉換都不合法。

locked 是另一個單向旗標（False -> True），
必須在 OPEN -> MATCHED 之前或同時變成 True。
"""
from typing import Dict, Set
import logging

from models import Room, RoomStage
from core.exceptions import InvalidStateTransition
from services.state_service import bump_state_version

logger = logging.getLogger(__name__)


class RoomStateMachine:
    """Room stage 狀態機"""

    TRANSITIONS: Dict[RoomStage, Set[RoomStage]] = {
        RoomStage.OPEN: {RoomStage.MATCHED},
        RoomStage.MATCHED: {RoomStage.MATCHED, RoomStage.REVEALED},
        RoomStage.REVEALED: set(),
    }

    @classmethod
    def can_transition(cls, current: RoomStage, target: RoomStage) -> bool:
        return target in cls.TRANSITIONS.get(current, set())

    @classmethod
    def transition(cls, room: Room, target: RoomStage) -> Room:
        """
        轉換房間 stage

        參數：
            room: 已經鎖定（with_room_lock）的 Room
            target: 目標 stage

        返回：
            更新後的 Room

        異常：
            InvalidStateTransition: 目前 stage 不允許轉到 target
        """
        current = room.stage
        if not cls.can_transition(current, target):
            raise InvalidStateTransition(
                f"Room {room.id} cannot go from {current.value} to {target.value}"
            )

        if target == RoomStage.MATCHED and not room.locked:
            # 抽籤一定會順便鎖房
            room.locked = True

        room.stage = target
        bump_state_version(room, reason=f"stage:{current.value}->{target.value}")

        logger.info(f"Room {room.id} stage {current.value} -> {target.value}")
        return room
