"""Canonical cache keys: ``{prefix}:{name}:{value}|{name}:{value}``."""

from __future__ import annotations

from typing import Any, Mapping

ALL_PLAYERS = "all_players"
PLAYER_DATA = "player_data"
PLAYER_STATS = "player_stats"
PREDICTION = "prediction"
RANKINGS = "rankings"
MATCHES = "matches"
HEAD_TO_HEAD = "head_to_head"
TOURNAMENTS = "tournaments"
PREDICTIONS_LIST = "predictions_list"

PARAM_DELIMITER = "|"


def format_value(value: Any) -> str:
    """Render a scalar key parameter. Non-scalars are a caller bug."""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        return value
    raise TypeError(
        f"Cache key parameters must be str, int, float or bool, got {type(value).__name__}"
    )


def build_key(prefix: str, params: Mapping[str, Any] | None = None) -> str:
    """Build the key for ``prefix`` and ``params``; param order never matters."""
    params = params or {}
    parts = [f"{name}:{format_value(params[name])}" for name in sorted(params)]
    return f"{prefix}:{PARAM_DELIMITER.join(parts)}"


def ordered_pair(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a <= b else (b, a)


def pair_params(player1_id: int, player2_id: int) -> dict[str, int]:
    """Params for an unordered player pair, smaller id first."""
    p1, p2 = ordered_pair(player1_id, player2_id)
    return {"player1Id": p1, "player2Id": p2}
