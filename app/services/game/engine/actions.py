"""Game action types - explicit user inputs separated from game state."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from app.schemas.game_engine import UpgradeKind


class MoveAction(BaseModel):
    """Player sends units from one location to another."""

    action_type: Literal["move"] = "move"
    source: int = Field(..., ge=0, description="Region or planet the units leave")
    destination: int = Field(..., ge=0, description="Region or planet the units head to")
    count: int = Field(..., description="Number of soldiers or ships to send")


class BuildAction(BaseModel):
    """Player buys units or a temple upgrade at an owned location."""

    action_type: Literal["build"] = "build"
    region: int = Field(..., ge=0)
    upgrade: UpgradeKind
    count: int = Field(1, description="Units to recruit; only meaningful for soldiers")


class EndTurnAction(BaseModel):
    """Current player ends their turn."""

    action_type: Literal["end_turn"] = "end_turn"


class ResignAction(BaseModel):
    """Player leaves the game for good."""

    action_type: Literal["resign"] = "resign"


# Union type for all game actions
GameAction = Annotated[
    MoveAction | BuildAction | EndTurnAction | ResignAction,
    Field(discriminator="action_type"),
]

# Actions that are only legal on the acting player's turn
TURN_GATED_ACTIONS = (MoveAction, BuildAction, EndTurnAction)


def build_action_from_payload(payload: dict) -> GameAction:
    """Build a typed action from a raw payload dict.

    Args:
        payload: Dict with 'action_type' key and action-specific fields.

    Returns:
        The appropriate GameAction subtype.

    Raises:
        ValueError: If action_type is missing or unknown.
    """
    action_type = payload.get("action_type")

    if action_type == "move":
        return MoveAction.model_validate(payload)
    elif action_type == "build":
        return BuildAction.model_validate(payload)
    elif action_type == "end_turn":
        return EndTurnAction.model_validate(payload)
    elif action_type == "resign":
        return ResignAction.model_validate(payload)
    else:
        raise ValueError(f"Unknown action type: {action_type}")
