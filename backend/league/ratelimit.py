import math
import threading
import time
from collections import defaultdict, deque
from functools import wraps

from flask import current_app, request
from flask_login import current_user

from league.errors import RateLimitError


def parse_rule(rule):
    """'30/60' -> (30, 60). Zero requests disables the bucket."""
    if not rule:
        return 0, 0
    count, _, window = str(rule).partition('/')
    return int(count), int(window or 60)


class SlidingWindowLimiter:
    def __init__(self, max_requests, window_s, clock=time.monotonic):
        self.max_requests = max_requests
        self.window_s = window_s
        self.clock = clock
        self.buckets = defaultdict(deque)
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def _prune(self, q, now):
        while q and q[0] <= now - self.window_s:
            q.popleft()

    def _sweep(self, now):
        # Forget callers with nothing left in the window
        for key in list(self.buckets):
            q = self.buckets[key]
            self._prune(q, now)
            if not q:
                del self.buckets[key]
        self._last_sweep = now

    def hit(self, key):
        """Record a request; returns seconds to wait, or 0 when allowed."""
        if self.max_requests <= 0:
            return 0
        now = self.clock()
        with self._lock:
            if now - self._last_sweep >= self.window_s:
                self._sweep(now)
            q = self.buckets[key]
            self._prune(q, now)
            if len(q) >= self.max_requests:
                return max(1, math.ceil(q[0] + self.window_s - now))
            q.append(now)
            return 0

    def reset(self):
        with self._lock:
            self.buckets.clear()


class LimiterRegistry:
    """Named buckets configured from RATE_LIMIT_<NAME> settings."""

    def __init__(self):
        self.enabled = True
        self.limiters = {}

    def configure(self, config):
        self.enabled = bool(config.get('RATE_LIMIT_ENABLED', True))
        self.limiters = {}
        for key, value in config.items():
            if key.startswith('RATE_LIMIT_') and key != 'RATE_LIMIT_ENABLED':
                count, window = parse_rule(value)
                self.limiters[key[len('RATE_LIMIT_'):].lower()] = SlidingWindowLimiter(count, window)

    def check(self, bucket, key):
        limiter = self.limiters.get(bucket)
        if not self.enabled or limiter is None:
            return
        retry_after = limiter.hit(key)
        if retry_after:
            current_app.logger.warning(f"[rate-limit] bucket={bucket} key={key} retry_after={retry_after}s")
            raise RateLimitError(retry_after)

    def reset(self):
        for limiter in self.limiters.values():
            limiter.reset()


limiter = LimiterRegistry()


def _client_key():
    if current_user.is_authenticated:
        return f'user:{current_user.id}'
    return f'ip:{request.remote_addr}'


def rate_limited(bucket):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            limiter.check(bucket, _client_key())
            return fn(*args, **kwargs)
        return wrapper
    return decorator
