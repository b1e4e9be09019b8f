import random

import pytest

from models import Pairing, RoomStage
from core.room_manager import RoomManager
from core.pairing_manager import PairingManager
from core.exceptions import (
    InsufficientParticipants,
    InvalidStateTransition,
    MatchingFailed,
    RoomNotFound,
)


def _room_with(db, *names):
    room, host = RoomManager.create_room(db, names[0], 300, 500)
    participants = [host]
    for name in names[1:]:
        _, participant = RoomManager.join_room(db, room.code, name)
        participants.append(participant)
    return room, participants


def _assert_derangement(pairs, participants):
    ids = {p.id for p in participants}
    givers = [giver.id for giver, _ in pairs]
    receivers = [receiver.id for _, receiver in pairs]
    assert sorted(givers) == sorted(ids)
    assert sorted(receivers) == sorted(ids)
    assert all(giver.id != receiver.id for giver, receiver in pairs)


def test_full_flow_alice_bob_carol(db):
    room, participants = _room_with(db, "Alice", "Bob", "Carol")
    RoomManager.lock_room(db, room.id)

    PairingManager.generate_pairing(db, room.id, rng=random.Random(7))

    state_room, roster = RoomManager.get_room_state(db, room.id)
    pairs = PairingManager.get_all_pairings(db, room.id)
    assert len(roster) == 3
    assert len(pairs) == 3
    _assert_derangement(pairs, participants)
    assert state_room.stage == RoomStage.MATCHED

    before = {(g.id, r.id) for g, r in pairs}
    RoomManager.reveal_room(db, room.id)

    after = {(g.id, r.id) for g, r in PairingManager.get_all_pairings(db, room.id)}
    assert after == before
    assert RoomManager.get_room_by_id(db, room.id).stage == RoomStage.REVEALED


def test_single_participant_cannot_be_paired(db):
    room, _ = _room_with(db, "Alice")

    with pytest.raises(InsufficientParticipants):
        PairingManager.generate_pairing(db, room.id)

    refreshed = RoomManager.get_room_by_id(db, room.id)
    assert refreshed.stage == RoomStage.OPEN
    assert refreshed.locked is False
    assert PairingManager.get_all_pairings(db, room.id) == []


def test_generate_pairing_locks_room(db):
    room, _ = _room_with(db, "Alice", "Bob")

    PairingManager.generate_pairing(db, room.id)

    refreshed = RoomManager.get_room_by_id(db, room.id)
    assert refreshed.locked is True
    assert refreshed.stage == RoomStage.MATCHED


def test_two_participants_give_to_each_other(db):
    room, (alice, bob) = _room_with(db, "Alice", "Bob")

    PairingManager.generate_pairing(db, room.id)

    assert PairingManager.get_my_pairing(db, room.id, alice.id).id == bob.id
    assert PairingManager.get_my_pairing(db, room.id, bob.id).id == alice.id


def test_redraw_replaces_previous_generation(db):
    room, participants = _room_with(db, "Alice", "Bob", "Carol", "Dave")

    PairingManager.generate_pairing(db, room.id, rng=random.Random(1))
    first_generation = RoomManager.get_room_by_id(db, room.id).pairing_generation
    PairingManager.generate_pairing(db, room.id, rng=random.Random(2))

    refreshed = RoomManager.get_room_by_id(db, room.id)
    assert refreshed.pairing_generation == first_generation + 1
    assert refreshed.stage == RoomStage.MATCHED

    stored = db.query(Pairing).filter(Pairing.room_id == room.id).all()
    assert len(stored) == 4
    assert {p.generation for p in stored} == {first_generation + 1}
    _assert_derangement(PairingManager.get_all_pairings(db, room.id), participants)


def test_redraw_after_reveal_is_rejected(db):
    room, _ = _room_with(db, "Alice", "Bob", "Carol")
    PairingManager.generate_pairing(db, room.id)
    RoomManager.reveal_room(db, room.id)
    before = {(g.id, r.id) for g, r in PairingManager.get_all_pairings(db, room.id)}

    with pytest.raises(InvalidStateTransition):
        PairingManager.generate_pairing(db, room.id)

    after = {(g.id, r.id) for g, r in PairingManager.get_all_pairings(db, room.id)}
    assert after == before


def test_reveal_twice_is_a_no_op(db):
    room, _ = _room_with(db, "Alice", "Bob")
    PairingManager.generate_pairing(db, room.id)

    RoomManager.reveal_room(db, room.id)
    version = RoomManager.get_room_by_id(db, room.id).state_version
    revealed = RoomManager.reveal_room(db, room.id)

    assert revealed.stage == RoomStage.REVEALED
    assert revealed.state_version == version


def test_failed_redraw_keeps_previous_pairings(db, monkeypatch):
    room, _ = _room_with(db, "Alice", "Bob", "Carol")
    PairingManager.generate_pairing(db, room.id)
    before = {(g.id, r.id) for g, r in PairingManager.get_all_pairings(db, room.id)}
    generation = RoomManager.get_room_by_id(db, room.id).pairing_generation

    def exhausted(ids, rng=None, max_attempts=1000):
        raise MatchingFailed(max_attempts)

    monkeypatch.setattr("core.pairing_manager.generate_derangement", exhausted)
    with pytest.raises(MatchingFailed):
        PairingManager.generate_pairing(db, room.id)

    after = {(g.id, r.id) for g, r in PairingManager.get_all_pairings(db, room.id)}
    assert after == before
    assert RoomManager.get_room_by_id(db, room.id).pairing_generation == generation


def test_my_pairing_is_none_before_draw(db):
    room, (alice, _) = _room_with(db, "Alice", "Bob")
    assert PairingManager.get_my_pairing(db, room.id, alice.id) is None


def test_my_pairing_for_unknown_participant_is_none(db):
    room, _ = _room_with(db, "Alice", "Bob")
    PairingManager.generate_pairing(db, room.id)
    assert PairingManager.get_my_pairing(db, room.id, "nobody") is None


def test_pairings_are_scoped_to_room(db):
    room_a, people_a = _room_with(db, "Alice", "Bob")
    room_b, people_b = _room_with(db, "Alice", "Bob", "Carol")

    PairingManager.generate_pairing(db, room_a.id)
    PairingManager.generate_pairing(db, room_b.id)
    PairingManager.generate_pairing(db, room_a.id)

    _assert_derangement(PairingManager.get_all_pairings(db, room_a.id), people_a)
    _assert_derangement(PairingManager.get_all_pairings(db, room_b.id), people_b)


def test_unknown_room(db):
    with pytest.raises(RoomNotFound):
        PairingManager.generate_pairing(db, "missing")
    with pytest.raises(RoomNotFound):
        PairingManager.get_all_pairings(db, "missing")
