import pytest

from models import Room, RoomStage
from core.exceptions import InvalidName, InvalidStateTransition
from core.state_machine import RoomStateMachine
from services.naming_service import (
    ROOM_CODE_ALPHABET,
    clean_name,
    generate_room_code,
    name_key,
    normalize_code,
)


def test_room_code_shape():
    for _ in range(50):
        code = generate_room_code()
        assert len(code) == 6
        assert set(code) <= set(ROOM_CODE_ALPHABET)


def test_normalize_code():
    assert normalize_code("  ab12cd ") == "AB12CD"
    assert normalize_code(None) == ""


def test_clean_name():
    assert clean_name("  Alice  ") == "Alice"
    with pytest.raises(InvalidName):
        clean_name(" ")
    with pytest.raises(InvalidName):
        clean_name("x" * 51)


def test_name_key_ignores_case_and_spaces():
    assert name_key(" Alice ") == name_key("ALICE") == "alice"


@pytest.mark.parametrize("current,target,allowed", [
    (RoomStage.OPEN, RoomStage.MATCHED, True),
    (RoomStage.OPEN, RoomStage.REVEALED, False),
    (RoomStage.MATCHED, RoomStage.MATCHED, True),
    (RoomStage.MATCHED, RoomStage.REVEALED, True),
    (RoomStage.MATCHED, RoomStage.OPEN, False),
    (RoomStage.REVEALED, RoomStage.MATCHED, False),
    (RoomStage.REVEALED, RoomStage.OPEN, False),
])
def test_transition_table(current, target, allowed):
    assert RoomStateMachine.can_transition(current, target) is allowed


def test_matching_forces_lock():
    room = Room(id="r1", stage=RoomStage.OPEN, locked=False, state_version=0)

    RoomStateMachine.transition(room, RoomStage.MATCHED)

    assert room.locked is True
    assert room.stage == RoomStage.MATCHED
    assert room.state_version == 1


def test_illegal_transition_leaves_room_unchanged():
    room = Room(id="r1", stage=RoomStage.REVEALED, locked=True, state_version=4)

    with pytest.raises(InvalidStateTransition):
        RoomStateMachine.transition(room, RoomStage.MATCHED)
    assert room.stage == RoomStage.REVEALED
    assert room.state_version == 4
