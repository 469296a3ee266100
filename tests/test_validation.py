"""Tests for action validation.

Critical scenarios tested:
- Turn validation (not your turn) leaves the state untouched
- Completed games reject every action
- Unknown and eliminated players
"""

import pytest

from app.schemas.game_engine import EndReason, EndResult, GameState, UpgradeKind
from app.services.game.engine import (
    BuildAction,
    EndTurnAction,
    ErrorCode,
    ErrorKind,
    MoveAction,
    ResignAction,
    build_action_from_payload,
    error_kind,
    process_action,
    validate_action,
)

from .conftest import create_conquest_state


class TestTurnValidation:
    """Test turn ownership checks."""

    def test_end_turn_out_of_turn_is_rejected(self, two_player_conquest: GameState):
        """Ending someone else's turn fails and changes nothing."""
        before = two_player_conquest.model_dump()

        result = process_action(two_player_conquest, EndTurnAction(), 1)

        assert not result.success
        assert result.error_code == ErrorCode.NOT_YOUR_TURN
        assert result.state is None
        assert result.events == []
        assert two_player_conquest.model_dump() == before

    def test_move_out_of_turn_is_rejected(self, two_player_conquest: GameState):
        result = process_action(two_player_conquest, MoveAction(source=3, destination=2, count=1), 1)
        assert result.error_code == ErrorCode.NOT_YOUR_TURN

    def test_build_out_of_turn_is_rejected(self, two_player_conquest: GameState):
        action = BuildAction(region=3, upgrade=UpgradeKind.SOLDIER)
        result = process_action(two_player_conquest, action, 1)
        assert result.error_code == ErrorCode.NOT_YOUR_TURN

    def test_resign_is_allowed_out_of_turn(self, two_player_conquest: GameState):
        assert validate_action(two_player_conquest, ResignAction(), 1).is_valid


class TestPlayerValidation:
    def test_unknown_slot(self, two_player_conquest: GameState):
        result = process_action(two_player_conquest, EndTurnAction(), 5)
        assert result.error_code == ErrorCode.PLAYER_NOT_FOUND

    def test_eliminated_player_cannot_act(self, two_player_conquest: GameState):
        state = two_player_conquest.model_copy(update={"eliminated_players": [1]})
        result = process_action(state, ResignAction(), 1)
        assert result.error_code == ErrorCode.ALREADY_ELIMINATED


class TestCompletedGame:
    def test_completed_game_rejects_actions(self):
        state = create_conquest_state().model_copy(
            update={"end_result": EndResult(winner_slot=0, reason=EndReason.ELIMINATION)}
        )
        for action in (EndTurnAction(), ResignAction(), MoveAction(source=0, destination=1, count=1)):
            result = process_action(state, action, 0)
            assert result.error_code == ErrorCode.GAME_COMPLETED


class TestActionPayloads:
    def test_build_move_from_payload(self):
        action = build_action_from_payload(
            {"action_type": "move", "source": 0, "destination": 1, "count": 2}
        )
        assert action == MoveAction(source=0, destination=1, count=2)

    def test_build_upgrade_from_payload(self):
        action = build_action_from_payload(
            {"action_type": "build", "region": 0, "upgrade": "water"}
        )
        assert isinstance(action, BuildAction)
        assert action.upgrade == UpgradeKind.WATER
        assert action.count == 1

    def test_unknown_action_type(self):
        with pytest.raises(ValueError):
            build_action_from_payload({"action_type": "roll"})


class TestErrorKinds:
    @pytest.mark.parametrize(
        "code, kind",
        [
            (ErrorCode.NOT_YOUR_TURN, ErrorKind.VALIDATION),
            (ErrorCode.NAME_TAKEN, ErrorKind.VALIDATION),
            (ErrorCode.GAME_NOT_FOUND, ErrorKind.NOT_FOUND),
            (ErrorCode.PLAYER_NOT_FOUND, ErrorKind.NOT_FOUND),
            (ErrorCode.PERSIST_FAILED, ErrorKind.DURABILITY),
            (ErrorCode.INTERNAL_ERROR, ErrorKind.INTERNAL),
            ("SOMETHING_ELSE", ErrorKind.INTERNAL),
            (None, ErrorKind.INTERNAL),
        ],
    )
    def test_error_kind(self, code, kind):
        assert error_kind(code) == kind
