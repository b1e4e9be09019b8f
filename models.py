"""
資料模型

三張表：
- rooms：房間（代碼唯一）
- participants：參加者（同一房間內名字不分大小寫唯一）
- pairings：抽籤結果（依 room + generation 分組，重抽時整組替換）
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RoomStage(str, enum.Enum):
    OPEN = "OPEN"          # 大廳：可加入、可填偏好
    MATCHED = "MATCHED"    # 已抽籤：房間鎖定，可重抽
    REVEALED = "REVEALED"  # 已揭曉：終點


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint("budget_min >= 0", name="ck_room_budget_min"),
        CheckConstraint("budget_min <= budget_max", name="ck_room_budget_order"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(6), nullable=False, unique=True, index=True)
    host_id = Column(String(36), nullable=True)
    budget_min = Column(Integer, nullable=False, default=0)
    budget_max = Column(Integer, nullable=False, default=0)
    allow_handmade = Column(Boolean, nullable=False, default=True)
    locked = Column(Boolean, nullable=False, default=False)
    stage = Column(Enum(RoomStage), nullable=False, default=RoomStage.OPEN)
    # 每次抽籤 +1，pairings 只認目前這一代
    pairing_generation = Column(Integer, nullable=False, default=0)
    # 每次狀態變更 +1，前端短輪詢時比對用
    state_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    participants = relationship(
        "Participant",
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="Participant.joined_at",
    )


class Participant(Base):
    __tablename__ = "participants"
    __table_args__ = (
        UniqueConstraint("room_id", "name_key", name="uq_participant_room_name"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    # 小寫後的名字，重連比對用
    name_key = Column(String(100), nullable=False)
    color = Column(String(100), nullable=False, default="")
    occasion = Column(String(100), nullable=False, default="")
    feeling = Column(String(100), nullable=False, default="")
    is_host = Column(Boolean, nullable=False, default=False)
    is_ready = Column(Boolean, nullable=False, default=False)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    room = relationship("Room", back_populates="participants")


class Pairing(Base):
    __tablename__ = "pairings"
    __table_args__ = (
        UniqueConstraint("room_id", "generation", "giver_id", name="uq_pairing_giver"),
        UniqueConstraint("room_id", "generation", "receiver_id", name="uq_pairing_receiver"),
        CheckConstraint("giver_id <> receiver_id", name="ck_pairing_not_self"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    generation = Column(Integer, nullable=False)
    giver_id = Column(String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)

    giver = relationship("Participant", foreign_keys=[giver_id])
    receiver = relationship("Participant", foreign_keys=[receiver_id])
