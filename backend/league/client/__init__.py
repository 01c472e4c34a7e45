"""Python client for the live-scoring endpoints."""

from .api import LeagueApiError, LeagueClient, LeagueConnectionError
from .panel import ScoringPanel, project_action

__all__ = ['LeagueApiError', 'LeagueClient', 'LeagueConnectionError', 'ScoringPanel', 'project_action']
