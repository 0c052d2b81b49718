from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from spinnergy import db
from spinnergy.accounts import Account, LeaderboardEntry, new_account_id, normalize_email
from spinnergy.errors import ConcurrentUpdate, DuplicateEmail, PersistenceError
from spinnergy.models import AccountRow, SpinRow


class SqlAccountStore:
    """
    SQLAlchemy-backed implementation of `AccountStore`.

    Email uniqueness is enforced by the `account.email` unique index and
    lost updates are prevented with a conditional UPDATE on `version`.
    Must be used inside an application context.
    """

    def __init__(self, initial_spins: int = 5) -> None:
        self._initial_spins = initial_spins

    @contextmanager
    def _guard(self):
        try:
            yield
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError() from exc

    def probe(self) -> None:
        """Run a trivial query; raises SQLAlchemyError if the database is unreachable."""
        db.session.execute(text('SELECT 1'))
        db.session.rollback()

    def seed(self, accounts: Iterable[Account]) -> None:
        with self._guard():
            for account in accounts:
                db.session.add(AccountRow(
                    id=account.id,
                    name=account.name,
                    email=normalize_email(account.email),
                    password_hash=account.password_hash,
                    score=account.score,
                    spins_left=account.spins_left,
                    is_admin=account.is_admin,
                    version=account.version,
                ))
            db.session.commit()

    def find_by_email(self, email: str) -> Optional[Account]:
        with self._guard():
            row = AccountRow.query.filter_by(email=normalize_email(email)).first()
            return row.to_domain() if row else None

    def find_by_id(self, account_id: str) -> Optional[Account]:
        with self._guard():
            row = db.session.get(AccountRow, account_id)
            return row.to_domain() if row else None

    def create(self, name: str, email: str, password_hash: str) -> Account:
        row = AccountRow(
            id=new_account_id(),
            name=name,
            email=normalize_email(email),
            password_hash=password_hash,
            score=0,
            spins_left=self._initial_spins,
            is_admin=False,
            version=0,
        )
        try:
            db.session.add(row)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise DuplicateEmail() from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError() from exc
        return row.to_domain()

    def persist(self, account: Account) -> Account:
        with self._guard():
            row = db.session.get(AccountRow, account.id)
            if row is None:
                raise PersistenceError(f'Account {account.id} does not exist')
            stored = row.to_domain()
            if stored.version != account.version:
                db.session.rollback()
                raise ConcurrentUpdate()
            if stored.state() == account.state():
                return stored
            known = len(stored.history)
            if not account.extends_history_of(stored):
                db.session.rollback()
                raise PersistenceError('Spin history is append-only')

            updated = AccountRow.query.filter_by(id=account.id, version=account.version).update({
                'name': account.name,
                'score': account.score,
                'spins_left': account.spins_left,
                'is_admin': account.is_admin,
                'version': account.version + 1,
            }, synchronize_session=False)
            if updated != 1:
                db.session.rollback()
                raise ConcurrentUpdate()
            for position, entry in enumerate(account.history[known:], start=known):
                db.session.add(SpinRow(
                    account_id=account.id,
                    position=position,
                    points=entry.points,
                    created_at=entry.date,
                ))
            try:
                db.session.commit()
            except IntegrityError as exc:
                # Another writer claimed the same history positions
                db.session.rollback()
                raise ConcurrentUpdate() from exc
            db.session.expire_all()
            return db.session.get(AccountRow, account.id).to_domain()

    def top_by_score(self, limit: int) -> List[LeaderboardEntry]:
        if limit <= 0:
            return []
        with self._guard():
            rows = (
                db.session.query(AccountRow.name, AccountRow.score)
                .order_by(AccountRow.score.desc(), AccountRow.created_at.asc(), AccountRow.id.asc())
                .limit(limit)
                .all()
            )
            return [LeaderboardEntry(name=name, score=score) for name, score in rows]
