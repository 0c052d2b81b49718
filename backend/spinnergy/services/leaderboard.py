from typing import List

from spinnergy.accounts import AccountStore, LeaderboardEntry


class LeaderboardRanker:
    """Read-only ranking of accounts by score."""

    def __init__(self, store: AccountStore, max_limit: int = 10) -> None:
        self._store = store
        self.max_limit = max_limit

    def rank(self, limit: int = None) -> List[LeaderboardEntry]:
        if limit is None:
            limit = self.max_limit
        limit = max(0, min(int(limit), self.max_limit))
        return self._store.top_by_score(limit)
