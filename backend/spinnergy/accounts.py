from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Protocol


@dataclass(frozen=True)
class HistoryEntry:
    points: int
    date: datetime

    def to_dict(self):
        return {'points': self.points, 'date': self.date.isoformat()}


@dataclass
class Account:
    """
    A registered player and their game state.

    Store implementations hand out copies; changing an instance has no
    effect until it is passed back through `AccountStore.persist`.
    """

    id: str
    name: str
    email: str
    password_hash: str
    score: int = 0
    spins_left: int = 5
    history: List[HistoryEntry] = field(default_factory=list)
    is_admin: bool = False
    version: int = 0

    def with_spin(self, points: int, when: datetime) -> 'Account':
        """Return a copy with one spin applied (score, quota and history)."""
        return replace(
            self,
            score=self.score + points,
            spins_left=self.spins_left - 1,
            history=self.history + [HistoryEntry(points=points, date=when)],
        )

    def state(self):
        # Everything persist() may change, minus the version counter.
        return (
            self.name,
            self.score,
            self.spins_left,
            self.is_admin,
            tuple(entry.points for entry in self.history),
        )

    def extends_history_of(self, stored: 'Account') -> bool:
        """True when this history keeps every stored entry and only appends."""
        known = [entry.points for entry in stored.history]
        return [entry.points for entry in self.history[:len(known)]] == known

    def to_public_dict(self):
        return {
            'name': self.name,
            'email': self.email,
            'score': self.score,
            'isAdmin': self.is_admin,
        }


@dataclass(frozen=True)
class LeaderboardEntry:
    name: str
    score: int

    def to_dict(self):
        return {'name': self.name, 'score': self.score}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def new_account_id() -> str:
    return uuid.uuid4().hex


class AccountStore(Protocol):
    """
    Persistence abstraction for player accounts.

    Implementations are responsible for:
    - Enforcing case-insensitive email uniqueness (`DuplicateEmail`).
    - Rejecting writes based on a stale `version` (`ConcurrentUpdate`).
    - Raising `PersistenceError` when the backing store fails.
    """

    def find_by_email(self, email: str) -> Optional[Account]:
        ...

    def find_by_id(self, account_id: str) -> Optional[Account]:
        ...

    def create(self, name: str, email: str, password_hash: str) -> Account:
        """Insert a new account with the initial spin quota."""

        ...

    def persist(self, account: Account) -> Account:
        """
        Upsert score, quota and history for an existing account.

        The version must match the stored one; an unchanged account is a no-op.
        Returns the stored account with its new version.
        """

        ...

    def top_by_score(self, limit: int) -> List[LeaderboardEntry]:
        """Return at most `limit` entries, highest score first."""

        ...
