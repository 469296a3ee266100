"""Combat resolution.

Battles are fought in rounds. In each round both sides first apply their
guaranteed kills from upgrades (FIRE for the attacker, EARTH for the
defender), then make one random draw each for an extra kill. Losses are
applied simultaneously. A round where both sides are wiped out goes to the
defender.

The random source is injected, so a given seed always replays the same
battle.
"""

import logging
import random

from app.schemas.game_engine import CombatOutcome, CombatResult, CombatRound, GameState

from .constants import DIE_SIDES, KILL_THRESHOLD

logger = logging.getLogger(__name__)


def roll_die(rng: random.Random, sides: int = DIE_SIDES) -> int:
    return rng.randint(1, sides)


def rng_for_battle(state: GameState) -> random.Random:
    """Seeded random source for the next battle in this game.

    String seeds are hashed deterministically by random.Random, so the same
    (seed, counter) pair yields the same draws on every interpreter run.
    """
    return random.Random(f"{state.rng_seed}:{state.battle_counter}")


def _kills(rng: random.Random, bonus: int, targets: int) -> int:
    guaranteed = min(bonus, targets)
    kills = guaranteed
    if roll_die(rng) > KILL_THRESHOLD and kills < targets:
        kills += 1
    return kills


def resolve_combat(
    attackers: int,
    defenders: int,
    rng: random.Random,
    attacker_bonus: int = 0,
    defender_bonus: int = 0,
) -> CombatResult:
    """Fight a battle to completion.

    Args:
        attackers: Number of attacking units, must be positive.
        defenders: Number of defending units.
        rng: Random source; the attacker draws before the defender each round.
        attacker_bonus: Guaranteed attacker kills per round.
        defender_bonus: Guaranteed defender kills per round.

    Returns:
        CombatResult with the ordered rounds, survivors and outcome.
    """
    if attackers <= 0:
        raise ValueError("A battle needs at least one attacker")
    if defenders < 0:
        raise ValueError("Defender count cannot be negative")

    rounds: list[CombatRound] = []
    while attackers > 0 and defenders > 0:
        defender_losses = _kills(rng, attacker_bonus, defenders)
        attacker_losses = _kills(rng, defender_bonus, attackers)
        attackers -= attacker_losses
        defenders -= defender_losses
        rounds.append(
            CombatRound(attacker_losses=attacker_losses, defender_losses=defender_losses)
        )

    outcome = (
        CombatOutcome.ATTACKER_WINS
        if defenders == 0 and attackers > 0
        else CombatOutcome.DEFENDER_WINS
    )
    logger.debug(
        "Combat resolved: rounds=%d, attackers_left=%d, defenders_left=%d, outcome=%s",
        len(rounds),
        attackers,
        defenders,
        outcome.value,
    )
    return CombatResult(
        rounds=rounds,
        attackers_remaining=attackers,
        defenders_remaining=defenders,
        outcome=outcome,
    )
