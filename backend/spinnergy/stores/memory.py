from __future__ import annotations

import copy
import threading
from typing import Iterable, List, Optional

from spinnergy.accounts import Account, LeaderboardEntry, new_account_id, normalize_email
from spinnergy.errors import ConcurrentUpdate, DuplicateEmail, PersistenceError


class MemoryAccountStore:
    """
    In-process implementation of `AccountStore`.

    Accounts live in an insertion-ordered list guarded by a lock. Data is
    lost when the process exits.
    """

    def __init__(self, initial_spins: int = 5, seed: Iterable[Account] = ()) -> None:
        self._initial_spins = initial_spins
        self._accounts: List[Account] = []
        self._lock = threading.Lock()
        for account in seed:
            self._insert(account)

    def _insert(self, account: Account) -> Account:
        stored = copy.deepcopy(account)
        stored.email = normalize_email(stored.email)
        if any(a.email == stored.email for a in self._accounts):
            raise DuplicateEmail()
        self._accounts.append(stored)
        return copy.deepcopy(stored)

    def _get(self, account_id: str) -> Optional[Account]:
        for account in self._accounts:
            if account.id == account_id:
                return account
        return None

    def find_by_email(self, email: str) -> Optional[Account]:
        key = normalize_email(email)
        with self._lock:
            for account in self._accounts:
                if account.email == key:
                    return copy.deepcopy(account)
        return None

    def find_by_id(self, account_id: str) -> Optional[Account]:
        with self._lock:
            account = self._get(account_id)
            return copy.deepcopy(account) if account else None

    def create(self, name: str, email: str, password_hash: str) -> Account:
        account = Account(
            id=new_account_id(),
            name=name,
            email=email,
            password_hash=password_hash,
            spins_left=self._initial_spins,
        )
        with self._lock:
            return self._insert(account)

    def persist(self, account: Account) -> Account:
        with self._lock:
            stored = self._get(account.id)
            if stored is None:
                raise PersistenceError(f'Account {account.id} does not exist')
            if stored.version != account.version:
                raise ConcurrentUpdate()
            if stored.state() == account.state():
                return copy.deepcopy(stored)
            if not account.extends_history_of(stored):
                raise PersistenceError('Spin history is append-only')
            updated = copy.deepcopy(account)
            updated.email = stored.email
            updated.password_hash = stored.password_hash
            updated.history = stored.history + updated.history[len(stored.history):]
            updated.version = stored.version + 1
            self._accounts[self._accounts.index(stored)] = updated
            return copy.deepcopy(updated)

    def top_by_score(self, limit: int) -> List[LeaderboardEntry]:
        if limit <= 0:
            return []
        with self._lock:
            # sorted() is stable, so ties keep insertion order
            ranked = sorted(self._accounts, key=lambda a: -a.score)[:limit]
            return [LeaderboardEntry(name=a.name, score=a.score) for a in ranked]
