import copy
import logging
import threading
from typing import Callable, Optional

from league.models import FINAL, IN_PROGRESS, TOP
from league.services.games.validators import next_half_inning

from .api import LeagueApiError, LeagueClient, LeagueConnectionError

logger = logging.getLogger(__name__)


def _pad(scores, inning):
    scores = list(scores or [])
    while len(scores) < inning:
        scores.append(0)
    return scores


def _end_half(state):
    inning = state.get('currentInning') or 1
    half = state.get('currentInningHalf') or TOP
    key = 'awayInningScores' if half == TOP else 'homeInningScores'
    state[key] = _pad(state.get(key), inning)
    state['currentInning'], state['currentInningHalf'] = next_half_inning(inning, half)
    state['outs'] = 0


def project_action(state: dict, action: str, **kwargs) -> dict:
    """Best guess at the server's answer to ``action``, without mutating ``state``.

    The projection is only shown until the real ``newState`` arrives.
    """
    projected = copy.deepcopy(state)
    if action == 'start':
        projected['status'] = kwargs.get('status', IN_PROGRESS)
        if projected['status'] == IN_PROGRESS:
            projected['currentInning'] = projected.get('currentInning') or 1
            projected['currentInningHalf'] = projected.get('currentInningHalf') or TOP
            projected['outs'] = projected.get('outs') or 0
    elif action == 'score':
        runs = kwargs['runs']
        inning = projected.get('currentInning') or 1
        if (projected.get('currentInningHalf') or TOP) == TOP:
            scores_key, total_key = 'awayInningScores', 'awayScore'
        else:
            scores_key, total_key = 'homeInningScores', 'homeScore'
        scores = _pad(projected.get(scores_key), inning)
        scores[inning - 1] += runs
        projected[scores_key] = scores
        projected[total_key] = (projected.get(total_key) or 0) + runs
    elif action == 'out':
        projected['outs'] = min((projected.get('outs') or 0) + kwargs.get('count', 1), 3)
        if projected['outs'] >= 3:
            _end_half(projected)
    elif action == 'advance':
        if kwargs.get('force_inning') is not None:
            projected['currentInning'] = kwargs['force_inning']
            projected['currentInningHalf'] = kwargs['force_half']
            projected['outs'] = 0
        else:
            _end_half(projected)
    elif action == 'end':
        projected['status'] = kwargs.get('status', FINAL)
    else:
        raise ValueError(f'Unknown scoring action: {action}')
    return projected


class ScoringPanel:
    """Local view of one game's scoring state for a scorer's device.

    Actions are applied optimistically, then replaced by the server's
    ``newState``; failures roll the view back. While the game is in
    progress a timer re-reads the state so edits from other scorers show
    up. Whatever the server returns always wins.
    """

    _CALLS = {
        'start': 'start_game',
        'score': 'record_score',
        'out': 'record_out',
        'advance': 'advance_inning',
        'end': 'end_game',
    }

    def __init__(self, client: LeagueClient, game_id: int, poll_interval: float = 5.0,
                 timer_factory: Callable = threading.Timer, use_versions: bool = True,
                 on_change: Optional[Callable[[dict], None]] = None):
        self.client = client
        self.game_id = game_id
        self.poll_interval = poll_interval
        self.timer_factory = timer_factory
        self.use_versions = use_versions
        self.on_change = on_change
        self.state: Optional[dict] = None
        self.pending = False
        self._lock = threading.RLock()
        self._timer = None
        self._polling = False
        # Bumped on every local write; reads started before a write are dropped
        self._seq = 0

    def _set_state(self, state):
        self.state = state
        self._seq += 1
        if self.on_change is not None:
            self.on_change(state)

    def refresh(self) -> dict:
        with self._lock:
            seq = self._seq
        fresh = self.client.game_state(self.game_id)
        with self._lock:
            if seq == self._seq:
                self._set_state(fresh)
            else:
                logger.debug(f"[panel-stale-read] game={self.game_id} discarded")
            return self.state

    def apply(self, action: str, **kwargs) -> dict:
        if self.state is None:
            self.refresh()
        with self._lock:
            previous = self.state
            self._set_state(project_action(previous, action, **kwargs))
            self.pending = True

        call = getattr(self.client, self._CALLS[action])
        if self.use_versions:
            kwargs['expected_version'] = previous.get('version')
        try:
            result = call(self.game_id, **kwargs)
        except LeagueApiError as e:
            with self._lock:
                self.pending = False
                self._set_state(previous)
            logger.warning(f"[panel-rollback] game={self.game_id} action={action} code={e.code}")
            if e.is_conflict:
                self.refresh()
            raise
        except LeagueConnectionError:
            with self._lock:
                self.pending = False
                self._set_state(previous)
            logger.warning(f"[panel-rollback] game={self.game_id} action={action} unreachable")
            raise

        with self._lock:
            self.pending = False
            self._set_state(result['newState'])
        self._schedule()
        return result

    def start(self, status: str = IN_PROGRESS) -> dict:
        return self.apply('start', status=status)

    def score(self, runs: int) -> dict:
        return self.apply('score', runs=runs)

    def out(self, count: int = 1) -> dict:
        return self.apply('out', count=count)

    def advance(self, force_inning: Optional[int] = None, force_half: Optional[str] = None) -> dict:
        if force_inning is None and force_half is None:
            return self.apply('advance')
        return self.apply('advance', force_inning=force_inning, force_half=force_half)

    def end(self, status: str = FINAL, notes: Optional[str] = None) -> dict:
        return self.apply('end', status=status, notes=notes)

    # Reconciliation loop
    def start_polling(self) -> None:
        if self.state is None:
            self.refresh()
        with self._lock:
            self._polling = True
        self._schedule()

    def stop(self) -> None:
        with self._lock:
            self._polling = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    @property
    def polling(self) -> bool:
        return self._timer is not None

    def _schedule(self) -> None:
        with self._lock:
            if not self._polling or self._timer is not None:
                return
            if not self.state or self.state.get('status') != IN_PROGRESS:
                logger.info(f"[panel-poll-stop] game={self.game_id} status={self.state and self.state.get('status')}")
                return
            timer = self.timer_factory(self.poll_interval, self._tick)
            timer.daemon = True
            self._timer = timer
        timer.start()

    def _tick(self) -> None:
        with self._lock:
            self._timer = None
            if not self._polling:
                return
        try:
            self.refresh()
        except (LeagueApiError, LeagueConnectionError) as e:
            logger.warning(f"[panel-poll-error] game={self.game_id} error={e}")
        finally:
            self._schedule()
