"""
Room Manager：管理 Room 的完整生命週期

職責：
1. 建立 Room（含 Host 參加者）
2. 加入 / 重連（只靠房間代碼 + 名字）
3. 主持人重新登入
4. 鎖定房間、揭曉結果
5. 查詢 Room 狀態（前端短輪詢）

原則：
- 單一職責：只管 Room 和名單，抽籤交給 PairingManager
- 所有 stage 變更經過 RoomStateMachine
- 寫入操作一律「room_mutex -> 行級鎖 -> commit -> 釋放」
"""
from sqlalchemy.orm import Session
from typing import List, Tuple
import logging

from models import Room, Participant, RoomStage
from core.state_machine import RoomStateMachine
from core.locks import creation_mutex, room_mutex, with_room_lock
from core.exceptions import (
    RoomNotFound,
    RoomLocked,
    RoomCodeConflict,
    RoomCodeExhausted,
    InvalidBudget,
    HostVerificationFailed,
)
from services.naming_service import generate_room_code, clean_name, name_key
from services.state_service import bump_state_version
from stores import room_store, participant_store
from database import transactional, get_settings

logger = logging.getLogger(__name__)


def validate_budget(budget_min: int, budget_max: int) -> None:
    if budget_min < 0 or budget_max < 0 or budget_min > budget_max:
        raise InvalidBudget(budget_min, budget_max)


class RoomManager:
    """Room 生命週期管理器"""

    @staticmethod
    def create_room(
        db: Session,
        host_name: str,
        budget_min: int,
        budget_max: int,
        allow_handmade: bool = True
    ) -> Tuple[Room, Participant]:
        """
        建立新房間（含 Host 參加者）

        流程：
        1. 驗證名字和預算
        2. 生成唯一的房間代碼（碰撞就重新產生）
        3. 建立 Room（OPEN、未鎖定）
        4. 建立 Host 參加者（偏好空白、尚未 ready）

        參數：
            db: SQLAlchemy Session
            host_name: 主持人名字
            budget_min: 預算下限
            budget_max: 預算上限
            allow_handmade: 是否接受手作禮物（只是給參加者參考）

        返回：
            (Room, Host Participant) tuple

        異常：
            InvalidName: 名字是空的
            InvalidBudget: 預算不合法
            RoomCodeExhausted: 重新產生代碼太多次（可以再試一次）
        """
        cleaned_name = clean_name(host_name)
        validate_budget(budget_min, budget_max)

        with creation_mutex:
            return RoomManager._create_room(
                db, cleaned_name, budget_min, budget_max, allow_handmade
            )

    @staticmethod
    @transactional
    def _create_room(
        db: Session,
        host_name: str,
        budget_min: int,
        budget_max: int,
        allow_handmade: bool
    ) -> Tuple[Room, Participant]:
        max_attempts = get_settings().max_code_attempts

        for _ in range(max_attempts):
            # 1. 生成房間代碼並寫入 Room
            room = Room(
                code=generate_room_code(),
                budget_min=budget_min,
                budget_max=budget_max,
                allow_handmade=allow_handmade,
                locked=False,
                stage=RoomStage.OPEN,
                pairing_generation=0,
                state_version=0
            )
            try:
                room_store.insert_room(db, room)
            except RoomCodeConflict as e:
                logger.warning(f"Room code collision detected, regenerating: {e.code}")
                db.rollback()
                continue

            # 2. 建立 Host 參加者
            host = participant_store.insert_participant(db, Participant(
                room_id=room.id,
                name=host_name,
                color="",
                occasion="",
                feeling="",
                is_host=True,
                is_ready=False
            ))
            room.host_id = host.id
            bump_state_version(room, reason="room_created")

            logger.info(
                f"Created room {room.id} with code {room.code} "
                f"(budget {budget_min}-{budget_max}, host {host.id})"
            )
            return room, host

        raise RoomCodeExhausted(max_attempts)

    @staticmethod
    def join_room(db: Session, code: str, name: str) -> Tuple[Room, Participant]:
        """
        加入房間，或用同一個名字重連

        順序（代碼、名字都不分大小寫）：
        1. 用代碼找房間，找不到 -> RoomNotFound
        2. 房間內已有同名參加者 -> 直接回傳（重連）
           不管房間有沒有鎖定，Host 也一樣
        3. 沒有同名參加者：
           - 房間已鎖定 -> RoomLocked
           - 否則建立新的一般參加者

        參數：
            db: SQLAlchemy Session
            code: 房間代碼
            name: 顯示名稱

        返回：
            (Room, Participant) tuple

        異常：
            RoomNotFound: 代碼不存在
            RoomLocked: 房間已鎖定，且名字不在名單內
            InvalidName: 名字是空的
        """
        room = room_store.get_room_by_code(db, code)
        cleaned_name = clean_name(name)

        with room_mutex(room.id):
            return RoomManager._join_room(db, room.id, cleaned_name)

    @staticmethod
    @transactional
    def _join_room(db: Session, room_id: str, name: str) -> Tuple[Room, Participant]:
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

        existing = participant_store.find_by_name(db, room.id, name)
        if existing:
            logger.info(
                f"Participant {existing.id} reconnected to room {room.id} "
                f"(host={existing.is_host}, locked={room.locked})"
            )
            return room, existing

        if room.locked:
            logger.warning(f"Rejected new participant {name!r}: room {room.code} is locked")
            raise RoomLocked(room.code, name)

        participant = participant_store.insert_participant(db, Participant(
            room_id=room.id,
            name=name,
            color="",
            occasion="",
            feeling="",
            is_host=False,
            is_ready=False
        ))
        bump_state_version(room, reason="participant_joined")

        logger.info(f"Participant {participant.id} ({name}) joined room {room.id}")
        return room, participant

    @staticmethod
    def login_as_host(db: Session, code: str, name: str) -> Tuple[Room, Participant]:
        """
        主持人重新登入

        和 join_room 不同，這裡只接受主持人：名字必須和房間的 Host 相同
        （不分大小寫），不會建立新參加者。

        異常：
            RoomNotFound: 代碼不存在
            HostVerificationFailed: 名字不是主持人
        """
        room = room_store.get_room_by_code(db, code)
        host = participant_store.find_host(db, room.id)

        if not host or host.name_key != name_key(name or ""):
            logger.warning(f"Host verification failed for room {room.code}")
            raise HostVerificationFailed(room.code)

        logger.info(f"Host {host.id} logged in to room {room.id}")
        return room, host

    @staticmethod
    def get_room_state(db: Session, room_id: str) -> Tuple[Room, List[Participant]]:
        """
        取得房間狀態（前端每幾秒輪詢一次）

        返回：
            (Room, 依加入順序排列的參加者列表)

        異常：
            RoomNotFound: Room 不存在
        """
        room = room_store.get_room(db, room_id)
        return room, participant_store.list_by_room(db, room.id)

    @staticmethod
    def lock_room(db: Session, room_id: str) -> Room:
        """
        鎖定房間（不再接受新名字加入）

        冪等：重複呼叫不會出錯，也不會再改版本號。
        已存在的名字仍然可以重連。

        異常：
            RoomNotFound: Room 不存在
        """
        room = room_store.get_room(db, room_id)

        with room_mutex(room.id):
            return RoomManager._lock_room(db, room.id)

    @staticmethod
    @transactional
    def _lock_room(db: Session, room_id: str) -> Room:
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

        if not room.locked:
            room.locked = True
            bump_state_version(room, reason="room_locked")
            logger.info(f"Room {room_id} locked")

        return room

    @staticmethod
    def reveal_room(db: Session, room_id: str) -> Room:
        """
        揭曉所有配對（MATCHED -> REVEALED）

        已經是 REVEALED 時不做任何事。

        異常：
            RoomNotFound: Room 不存在
            InvalidStateTransition: 還沒抽籤（OPEN）
        """
        room = room_store.get_room(db, room_id)

        with room_mutex(room.id):
            return RoomManager._reveal_room(db, room.id)

    @staticmethod
    @transactional
    def _reveal_room(db: Session, room_id: str) -> Room:
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

        if room.stage == RoomStage.REVEALED:
            return room

        return RoomStateMachine.transition(room, RoomStage.REVEALED)

    @staticmethod
    def get_room_by_code(db: Session, code: str) -> Room:
        """透過房間代碼取得 Room（找不到拋出 RoomNotFound）"""
        return room_store.get_room_by_code(db, code)

    @staticmethod
    def get_room_by_id(db: Session, room_id: str) -> Room:
        """透過 id 取得 Room（找不到拋出 RoomNotFound）"""
        return room_store.get_room(db, room_id)
