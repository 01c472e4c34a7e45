"""Pure checks deciding whether a scoring action fits the game's current state.

Every check returns ``(valid, reason)``; ``reason`` is ``None`` when valid.
"""

from typing import Optional, Tuple

from league.models import (
    BOTTOM, CANCELLED, FINAL, IN_PROGRESS, POSTPONED, SCHEDULED, SUSPENDED, TERMINAL_STATUSES, TOP, WARMUP,
)

Verdict = Tuple[bool, Optional[str]]

START_TARGETS = (WARMUP, IN_PROGRESS)
END_TARGETS = (FINAL, SUSPENDED, POSTPONED, CANCELLED)

# Admin-driven lifecycle; scoring endpoints use the narrower checks below
STATUS_TRANSITIONS = {
    SCHEDULED: (WARMUP, IN_PROGRESS, POSTPONED, CANCELLED),
    WARMUP: (IN_PROGRESS, POSTPONED, CANCELLED),
    IN_PROGRESS: (FINAL, SUSPENDED),
    FINAL: (),
    POSTPONED: (SCHEDULED, CANCELLED),
    CANCELLED: (),
    SUSPENDED: (IN_PROGRESS, POSTPONED, CANCELLED),
}


def can_transition(current: str, target: str) -> bool:
    return target in STATUS_TRANSITIONS.get(current, ())


def can_start_game(status: str, target: str = IN_PROGRESS) -> Verdict:
    if status == IN_PROGRESS:
        return False, 'Game is already in progress'
    if status == FINAL:
        return False, 'Game has already ended'
    if status == CANCELLED:
        return False, 'Game has been cancelled'
    if status == WARMUP:
        if target == IN_PROGRESS:
            return True, None
        return False, 'Game is already in warmup'
    if status not in (SCHEDULED, SUSPENDED):
        return False, f"Cannot start game with status '{status}'"
    if status == SUSPENDED and target != IN_PROGRESS:
        return False, 'A suspended game can only resume in progress'
    return True, None


def can_score(status: str) -> Verdict:
    if status != IN_PROGRESS:
        return False, 'Can only score games that are in progress'
    return True, None


def can_advance(status: str) -> Verdict:
    if status != IN_PROGRESS:
        return False, 'Can only advance innings in games that are in progress'
    return True, None


def _half_started(inning, outs, away_inning_scores) -> bool:
    scores = away_inning_scores or []
    runs = scores[inning - 1] if len(scores) >= inning else 0
    return bool(outs) or bool(runs)


def reached_natural_end(inning, half, home_score, away_score, regulation_innings=9, outs=0,
                        away_inning_scores=None) -> bool:
    """True when a game may be called final at this point.

    The top of an inning only follows a completed inning, so in the top half
    ``inning - 1`` innings are in the books, but only until the away side
    records an out or a run in it. The bottom half of a regulation inning or
    later ends the game as soon as the home side leads.
    """
    if home_score == away_score:
        return False
    inning = inning or 1
    half = half or TOP
    if half == TOP:
        return inning - 1 >= regulation_innings and not _half_started(inning, outs, away_inning_scores)
    return half == BOTTOM and inning >= regulation_innings and home_score > away_score


def can_end_game(status, target=FINAL, inning=None, half=None, home_score=0, away_score=0,
                 regulation_innings=9, outs=0, away_inning_scores=None) -> Verdict:
    if target not in END_TARGETS:
        return False, f"'{target}' is not an ending status"
    if status in TERMINAL_STATUSES:
        return False, 'Game has already ended'
    if target == SUSPENDED and status != IN_PROGRESS:
        return False, 'Only a game in progress can be suspended'
    if target != FINAL:
        return True, None
    if status != IN_PROGRESS:
        return False, 'Only a game in progress can be ended as final'
    if home_score == away_score:
        return False, 'Game is tied; play extra innings or end it as suspended'
    if not reached_natural_end(inning, half, home_score, away_score, regulation_innings, outs,
                               away_inning_scores):
        if (half or TOP) == TOP and (inning or 1) - 1 >= regulation_innings:
            return False, 'The home side has not batted in this inning'
        return False, f'Game has not completed {regulation_innings} innings'
    return True, None


def next_half_inning(inning: int, half: str) -> Tuple[int, str]:
    if half == TOP:
        return inning, BOTTOM
    return inning + 1, TOP
