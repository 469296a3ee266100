"""Round-trip tests for stored game records."""

import pytest

from app.schemas.game_engine import (
    EndReason,
    EndResult,
    GameRecord,
    GameStatus,
    GameVariant,
    SlotType,
    deserialize_record,
    serialize_record,
)
from app.services.game.engine import EndTurnAction, MoveAction, eliminate_player, process_action
from app.services.game.start_game import create_pending_record

from .conftest import (
    NOW_MS,
    ScriptedRandom,
    create_active_record,
    create_armada_state,
    create_conquest_state,
    create_map_layout,
)


def _battled_conquest():
    state = create_conquest_state(garrisons={0: 5, 1: 2, 3: 5})
    return process_action(
        state, MoveAction(source=0, destination=1, count=5), 0, rng=ScriptedRandom([6, 1])
    ).state


def _armada_in_flight():
    state = create_armada_state()
    state = process_action(state, MoveAction(source=0, destination=2, count=3), 0).state
    return process_action(state, EndTurnAction(), 0).state


def _one_eliminated():
    return eliminate_player(create_conquest_state(owners={0: 0}, garrisons={0: 5, 3: 5}), 1)


def _all_eliminated():
    state = eliminate_player(eliminate_player(create_conquest_state(), 0), 1)
    return state.model_copy(
        update={"end_result": EndResult(is_draw=True, reason=EndReason.ELIMINATION)}
    )


class TestRecordRoundTrip:
    """Stored records read back identical."""

    @pytest.mark.parametrize(
        "make_state",
        [create_conquest_state, _battled_conquest, _armada_in_flight, _one_eliminated, _all_eliminated],
    )
    def test_active_record_round_trip(self, make_state):
        record = create_active_record(make_state())

        raw = serialize_record(record)
        restored = deserialize_record(raw)

        assert restored == record
        assert serialize_record(restored) == raw

    def test_integer_keys_survive(self):
        record = create_active_record(_battled_conquest())
        restored = deserialize_record(serialize_record(record))

        assert all(isinstance(k, int) for k in restored.state.owners_by_region)
        assert all(isinstance(k, int) for k in restored.state.garrisons_by_region)

    def test_pending_record_round_trip(self):
        record = create_pending_record(
            "game-2",
            GameVariant.ARMADA,
            "Alice",
            create_map_layout(),
            [SlotType.HUMAN, SlotType.OPEN, SlotType.AI],
            NOW_MS,
        )
        restored = deserialize_record(serialize_record(record))

        assert restored == record
        assert restored.status == GameStatus.PENDING
        assert restored.state is None

    def test_completed_record_round_trip(self):
        record = create_active_record(_all_eliminated()).model_copy(
            update={"status": GameStatus.COMPLETED}
        )
        assert deserialize_record(serialize_record(record)) == record

    def test_invalid_json_is_rejected(self):
        with pytest.raises(ValueError):
            deserialize_record('{"game_id": "x"}')

    def test_records_are_plain_json(self):
        raw = serialize_record(create_active_record(create_conquest_state()))
        assert GameRecord.model_validate_json(raw).game_id == "game-1"
