import logging
import os
from typing import Any, Dict, Optional

import requests
from requests.exceptions import RequestException, Timeout

logger = logging.getLogger(__name__)

LEAGUE_API_URL = os.getenv("LEAGUE_API_URL", "http://localhost:5000")


class LeagueApiError(Exception):
    """The server answered with an error envelope."""

    def __init__(self, status_code: int, code: str, message: str, details: Optional[dict] = None):
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or {}

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409


class LeagueConnectionError(Exception):
    """The server could not be reached or did not answer in time."""


class LeagueClient:
    """Thin wrapper over the JSON API sharing one cookie-bearing session.

    ``session`` is anything with a ``requests.Session``-style ``request``
    method, which lets tests route calls into a Flask test client.
    """

    def __init__(self, base_url: str = LEAGUE_API_URL, session=None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        except Timeout:
            logger.error(f"League API timeout after {self.timeout}s: {method} {path}")
            raise LeagueConnectionError(f"Request timed out: {method} {path}")
        except RequestException as e:
            logger.exception(f"Failed to reach league API: {e}")
            raise LeagueConnectionError(f"Failed to reach league API at {self.base_url}: {e}")

        if response.status_code == 204:
            return None
        try:
            body = response.json()
        except ValueError:
            raise LeagueApiError(response.status_code, "INVALID_RESPONSE", "Server returned a non-JSON response")

        if not isinstance(body, dict) or not body.get("success"):
            error = (body.get("error") if isinstance(body, dict) else None) or {}
            raise LeagueApiError(
                response.status_code,
                error.get("code", "UNKNOWN_ERROR"),
                error.get("message", "Request failed"),
                error.get("details"),
            )
        return body.get("data")

    # Session
    def login(self, email: str, password: str) -> dict:
        return self._request("POST", "/api/auth/login", {"email": email, "password": password})

    def logout(self) -> None:
        self._request("POST", "/api/auth/logout")

    # Reads
    def live_games(self) -> dict:
        return self._request("GET", "/api/games/live")

    def game_state(self, game_id: int) -> dict:
        return self._request("GET", f"/api/games/{game_id}/state")

    # Scoring actions; each returns {action, previousState, newState}
    def start_game(self, game_id: int, status: str = "in_progress", expected_version: Optional[int] = None) -> dict:
        return self._request("POST", f"/api/games/{game_id}/start", _with_version({"status": status}, expected_version))

    def record_score(self, game_id: int, runs: int, expected_version: Optional[int] = None) -> dict:
        return self._request("POST", f"/api/games/{game_id}/score", _with_version({"runs": runs}, expected_version))

    def record_out(self, game_id: int, count: int = 1, expected_version: Optional[int] = None) -> dict:
        return self._request("POST", f"/api/games/{game_id}/out", _with_version({"count": count}, expected_version))

    def advance_inning(self, game_id: int, force_inning: Optional[int] = None, force_half: Optional[str] = None,
                       expected_version: Optional[int] = None) -> dict:
        payload = {}
        if force_inning is not None or force_half is not None:
            payload = {"forceInning": force_inning, "forceHalf": force_half}
        return self._request("POST", f"/api/games/{game_id}/advance", _with_version(payload, expected_version))

    def end_game(self, game_id: int, status: str = "final", notes: Optional[str] = None,
                 expected_version: Optional[int] = None) -> dict:
        payload = {"status": status}
        if notes:
            payload["notes"] = notes
        return self._request("POST", f"/api/games/{game_id}/end", _with_version(payload, expected_version))


def _with_version(payload: dict, expected_version: Optional[int]) -> dict:
    if expected_version is not None:
        payload["expectedVersion"] = expected_version
    return payload
