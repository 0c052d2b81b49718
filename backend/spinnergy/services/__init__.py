"""Game domain services: sessions, spins and ranking.

Routes and socket handlers call into these; nothing here knows about
HTTP requests or Flask globals.
"""

from dataclasses import dataclass

from spinnergy.accounts import AccountStore
from .game import GameEngine
from .leaderboard import LeaderboardRanker
from .nutrition import NutritionClient
from .sessions import SessionIssuer


@dataclass
class Services:
    store: AccountStore
    sessions: SessionIssuer
    engine: GameEngine
    leaderboard: LeaderboardRanker
    nutrition: NutritionClient
    degraded: bool = False
