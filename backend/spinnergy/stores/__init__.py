"""Account store implementations and start-up selection.

The store is chosen once when the application is created. If the durable
store cannot be reached the process keeps running on the in-memory store
(degraded mode) for its whole lifetime.
"""

from typing import List, Tuple

from sqlalchemy.exc import SQLAlchemyError

from spinnergy.accounts import Account, AccountStore, new_account_id
from .memory import MemoryAccountStore
from .sql import SqlAccountStore


DEMO_ACCOUNTS = [
    ('Demo Runner', 'runner@spinnergy.dev', 100),
    ('Demo Cyclist', 'cyclist@spinnergy.dev', 50),
    ('Demo Walker', 'walker@spinnergy.dev', 20),
]


def demo_accounts(hasher, initial_spins: int = 5, password: str = 'password') -> List[Account]:
    password_hash = hasher.generate_password_hash(password).decode('utf-8')
    return [
        Account(
            id=new_account_id(),
            name=name,
            email=email,
            password_hash=password_hash,
            score=score,
            spins_left=initial_spins,
        )
        for name, email, score in DEMO_ACCOUNTS
    ]


def build_account_store(app, hasher) -> Tuple[AccountStore, bool]:
    """Return ``(store, degraded)`` for the configured ``ACCOUNT_STORE``."""
    initial_spins = int(app.config.get('INITIAL_SPINS', 5))
    seed = demo_accounts(hasher, initial_spins) if app.config.get('SEED_DEMO_ACCOUNTS') else []
    kind = app.config.get('ACCOUNT_STORE', 'sql')

    if kind == 'memory':
        app.logger.info('[store] using in-memory account store')
        return MemoryAccountStore(initial_spins=initial_spins, seed=seed), False
    if kind != 'sql':
        raise RuntimeError(f"Unknown ACCOUNT_STORE {kind!r}; expected 'sql' or 'memory'")

    store = SqlAccountStore(initial_spins=initial_spins)
    try:
        with app.app_context():
            store.probe()
    except SQLAlchemyError as exc:
        app.logger.warning(
            f'[degraded] durable account store unavailable ({exc.__class__.__name__}); '
            'falling back to in-memory store for this process'
        )
        return MemoryAccountStore(initial_spins=initial_spins, seed=seed), True
    app.logger.info('[store] using SQL account store')
    return store, False
