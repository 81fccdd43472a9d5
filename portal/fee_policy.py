"""
Entry fee and roster rules per tournament mode.

These lookups are the only source for a registration's fee, required
player count and team-name requirement. None of them is ever taken from
request input.
"""
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ModeRules:
    required_players: int
    entry_fee: int
    team_name_required: bool


MODE_RULES: Dict[str, ModeRules] = {
    'solo': ModeRules(required_players=1, entry_fee=5, team_name_required=False),
    'duo': ModeRules(required_players=2, entry_fee=10, team_name_required=True),
    'squad': ModeRules(required_players=4, entry_fee=20, team_name_required=True),
}

MODES = tuple(MODE_RULES)


def _rules_for(mode: str) -> ModeRules:
    try:
        return MODE_RULES[mode]
    except KeyError:
        raise ValueError(f"Unknown tournament mode: {mode!r}")


def entry_fee_for(mode: str) -> int:
    return _rules_for(mode).entry_fee


def required_player_count_for(mode: str) -> int:
    return _rules_for(mode).required_players


def team_name_required(mode: str) -> bool:
    return _rules_for(mode).team_name_required
