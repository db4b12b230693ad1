"""
Tennis score validation and arithmetic.

A set is a dict seen from one side (the reporter):
    {"reporter": 6, "opponent": 4}
    {"reporter": 7, "opponent": 6, "tiebreak": True,
     "tiebreak_score": {"reporter": 7, "opponent": 5}}
    {"reporter": 10, "opponent": 8, "super_tiebreak": True}

Matches are best of three sets; a deciding set may be a super tiebreak.
Validation failures raise ValueError with a message fit for the API response.
"""

from typing import Dict, List, Tuple

REGULAR_SET_SCORES = {(6, 0), (6, 1), (6, 2), (6, 3), (6, 4), (7, 5)}


def _winner_loser(a: int, b: int) -> Tuple[int, int]:
    return (a, b) if a >= b else (b, a)


def _check_race(a: int, b: int, target: int, label: str) -> None:
    # First to `target`, win by two; past target the margin is exactly two
    winner, loser = _winner_loser(a, b)
    if winner < target:
        raise ValueError(f"{label} must reach at least {target} points")
    if winner - loser < 2:
        raise ValueError(f"{label} must be won by 2 points")
    if winner > target and winner - loser != 2:
        raise ValueError(f"Invalid {label.lower()} score")


def validate_set_score(set_score: Dict, set_number: int = 1) -> None:
    """
    Check one set against tennis rules.

    Regular sets end 6-0 to 6-4 or 7-5 either way. 7-6 needs the tiebreak
    flag and a tiebreak score won by the set winner. A super tiebreak is
    first to 10 points, win by 2.

    Raises:
        ValueError: With a "Set N: ..." message
    """
    try:
        reporter = int(set_score["reporter"])
        opponent = int(set_score["opponent"])
    except (KeyError, TypeError, ValueError):
        raise ValueError(f"Set {set_number}: games must be whole numbers")
    if reporter < 0 or opponent < 0:
        raise ValueError(f"Set {set_number}: games cannot be negative")

    try:
        if set_score.get("super_tiebreak"):
            _check_race(reporter, opponent, 10, "Super tiebreak")
            return

        if set_score.get("tiebreak"):
            if _winner_loser(reporter, opponent) != (7, 6):
                raise ValueError("A tiebreak set must end 7-6 or 6-7")
            tiebreak_score = set_score.get("tiebreak_score")
            if not tiebreak_score:
                raise ValueError("Tiebreak score is required")
            tb_reporter = int(tiebreak_score.get("reporter", 0))
            tb_opponent = int(tiebreak_score.get("opponent", 0))
            _check_race(tb_reporter, tb_opponent, 7, "Tiebreak")
            if (tb_reporter > tb_opponent) != (reporter > opponent):
                raise ValueError("Tiebreak winner must win the set")
            return

        if _winner_loser(reporter, opponent) in REGULAR_SET_SCORES:
            return
        if _winner_loser(reporter, opponent) == (7, 6):
            raise ValueError("A 7-6 set must be marked as a tiebreak")
        raise ValueError("Invalid set score. Valid scores: 6-0 to 6-4, 7-5, 7-6 (tiebreak)")
    except ValueError as e:
        if str(e).startswith("Set "):
            raise
        raise ValueError(f"Set {set_number}: {e}")


def set_won_by_reporter(set_score: Dict) -> bool:
    return int(set_score["reporter"]) > int(set_score["opponent"])


def validate_tennis_score(sets: List[Dict]) -> None:
    """
    Check a best-of-three match result.

    Raises:
        ValueError: If the set count is wrong, a set is invalid, nobody won
            two sets, or a third set follows a 2-0
    """
    if len(sets) < 2 or len(sets) > 3:
        raise ValueError("A match must have 2 or 3 sets")

    for number, set_score in enumerate(sets, start=1):
        validate_set_score(set_score, number)

    reporter_sets = sum(1 for s in sets if set_won_by_reporter(s))
    opponent_sets = len(sets) - reporter_sets
    if reporter_sets != 2 and opponent_sets != 2:
        raise ValueError("One side must win 2 sets")

    if len(sets) == 3 and set_won_by_reporter(sets[0]) == set_won_by_reporter(sets[1]):
        raise ValueError("No third set is played after a 2-0")


def calculate_sets(sets: List[Dict]) -> Tuple[int, int]:
    """Sets won and lost from the reporter's side."""
    won = sum(1 for s in sets if set_won_by_reporter(s))
    return won, len(sets) - won


def calculate_games(sets: List[Dict]) -> Tuple[int, int]:
    """
    Games won and lost from the reporter's side.

    A super tiebreak counts as one game each; a tiebreak set counts 7-6.
    """
    won = lost = 0
    for set_score in sets:
        if set_score.get("super_tiebreak"):
            won += 1
            lost += 1
        else:
            won += int(set_score["reporter"])
            lost += int(set_score["opponent"])
    return won, lost


def format_tennis_score(sets: List[Dict]) -> str:
    """
    Human readable score, e.g. "6-4, 6-7(5), 10-8 (ST)".

    Tiebreak sets show the loser's tiebreak points in brackets.
    """
    parts = []
    for set_score in sets:
        reporter, opponent = set_score["reporter"], set_score["opponent"]
        if set_score.get("super_tiebreak"):
            parts.append(f"{reporter}-{opponent} (ST)")
        elif set_score.get("tiebreak") and set_score.get("tiebreak_score"):
            tb = set_score["tiebreak_score"]
            parts.append(f"{reporter}-{opponent}({min(tb['reporter'], tb['opponent'])})")
        else:
            parts.append(f"{reporter}-{opponent}")
    return ", ".join(parts)


def to_home_away(sets: List[Dict], reporter_is_home: bool) -> Dict:
    """
    Turn a reporter-side result into home/away sets won, games won and set scores.
    """
    set_scores = []
    for set_score in sets:
        reporter, opponent = int(set_score["reporter"]), int(set_score["opponent"])
        entry = {
            "home": reporter if reporter_is_home else opponent,
            "away": opponent if reporter_is_home else reporter,
        }
        if set_score.get("tiebreak"):
            entry["tiebreak"] = True
            tb = set_score.get("tiebreak_score")
            if tb:
                entry["tiebreak_score"] = {
                    "home": tb["reporter"] if reporter_is_home else tb["opponent"],
                    "away": tb["opponent"] if reporter_is_home else tb["reporter"],
                }
        if set_score.get("super_tiebreak"):
            entry["super_tiebreak"] = True
        set_scores.append(entry)

    sets_won, sets_lost = calculate_sets(sets)
    games_won, games_lost = calculate_games(sets)
    return {
        "sets_won_home": sets_won if reporter_is_home else sets_lost,
        "sets_won_away": sets_lost if reporter_is_home else sets_won,
        "games_won_home": games_won if reporter_is_home else games_lost,
        "games_won_away": games_lost if reporter_is_home else games_won,
        "set_scores": set_scores,
    }
