from datetime import datetime, timezone

import pytest

from conftest import TestConfig as BaseConfig
from spinnergy import create_app, get_services
from spinnergy.accounts import Account, HistoryEntry
from spinnergy.errors import ConcurrentUpdate, DuplicateEmail, PersistenceError
from spinnergy.stores.memory import MemoryAccountStore
from spinnergy.stores.sql import SqlAccountStore


def _seeded(name, email, score):
    return Account(id=f'id-{name.lower()}', name=name, email=email, password_hash='x', score=score)


def test_create_assigns_initial_state(store):
    account = store.create('Ann', 'A@X.com', 'hash')
    assert account.id
    assert account.email == 'a@x.com'
    assert account.score == 0
    assert account.spins_left == 5
    assert account.history == []
    assert account.is_admin is False


def test_find_by_email_is_case_insensitive(store):
    created = store.create('Ann', 'a@x.com', 'hash')
    found = store.find_by_email('  A@X.COM ')
    assert found is not None
    assert found.id == created.id
    assert store.find_by_email('nobody@x.com') is None


def test_duplicate_email_differing_by_case_is_rejected(store):
    store.create('Ann', 'a@x.com', 'hash')
    with pytest.raises(DuplicateEmail):
        store.create('Other Ann', 'A@x.COM', 'hash')


def test_find_by_id(store):
    created = store.create('Ann', 'a@x.com', 'hash')
    assert store.find_by_id(created.id).name == 'Ann'
    assert store.find_by_id('missing') is None


def test_returned_accounts_are_copies(store):
    created = store.create('Ann', 'a@x.com', 'hash')
    created.score = 999
    assert store.find_by_id(created.id).score == 0


def test_persist_applies_spin_and_bumps_version(store):
    account = store.create('Ann', 'a@x.com', 'hash')
    saved = store.persist(account.with_spin(30, datetime.now(timezone.utc)))
    assert saved.score == 30
    assert saved.spins_left == 4
    assert [e.points for e in saved.history] == [30]
    assert saved.version == account.version + 1
    assert store.find_by_id(account.id).score == 30


def test_persist_twice_unchanged_is_idempotent(store):
    account = store.create('Ann', 'a@x.com', 'hash')
    account = store.persist(account.with_spin(10, datetime.now(timezone.utc)))
    before = store.find_by_id(account.id)
    store.persist(account)
    store.persist(account)
    after = store.find_by_id(account.id)
    assert after.state() == before.state()
    assert after.version == before.version


def test_persist_with_stale_version_is_rejected(store):
    account = store.create('Ann', 'a@x.com', 'hash')
    store.persist(account.with_spin(10, datetime.now(timezone.utc)))
    with pytest.raises(ConcurrentUpdate):
        # Same starting version, different outcome: a lost update
        store.persist(account.with_spin(20, datetime.now(timezone.utc)))
    stored = store.find_by_id(account.id)
    assert stored.spins_left == 4
    assert stored.score == 10


def test_stale_write_with_identical_outcome_is_still_rejected(store):
    account = store.create('Ann', 'a@x.com', 'hash')
    store.persist(account.with_spin(10, datetime.now(timezone.utc)))
    with pytest.raises(ConcurrentUpdate):
        store.persist(account.with_spin(10, datetime.now(timezone.utc)))
    assert store.find_by_id(account.id).spins_left == 4


def test_top_by_score_orders_and_limits(make_store):
    store = make_store(seed=[
        _seeded('Low', 'low@x.com', 5),
        _seeded('High', 'high@x.com', 100),
        _seeded('Mid', 'mid@x.com', 50),
    ])
    ranked = store.top_by_score(2)
    assert [e.to_dict() for e in ranked] == [
        {'name': 'High', 'score': 100},
        {'name': 'Mid', 'score': 50},
    ]
    assert store.top_by_score(0) == []


def test_top_by_score_empty_store(store):
    assert store.top_by_score(10) == []


def test_memory_store_is_seeded_once_at_construction():
    store = MemoryAccountStore(seed=[_seeded('Seed', 'seed@x.com', 100)])
    assert store.find_by_email('seed@x.com').score == 100
    with pytest.raises(DuplicateEmail):
        MemoryAccountStore(seed=[_seeded('A', 'dup@x.com', 1), _seeded('B', 'DUP@x.com', 2)])


def test_memory_store_selected_by_config(memory_app):
    services = get_services()
    assert isinstance(services.store, MemoryAccountStore)
    assert services.degraded is False


def test_sql_store_selected_by_config(flask_app):
    services = get_services()
    assert isinstance(services.store, SqlAccountStore)
    assert services.degraded is False


def test_unreachable_database_falls_back_to_memory(tmp_path, caplog):
    unreachable = f"sqlite:///{tmp_path / 'missing' / 'spinnergy.db'}"
    config = type('UnreachableConfig', (BaseConfig,), {'SQLALCHEMY_DATABASE_URI': unreachable})

    application = create_app(config)

    services = application.extensions['spinnergy']
    assert services.degraded is True
    assert isinstance(services.store, MemoryAccountStore)
    assert any('[degraded]' in r.getMessage() for r in caplog.records)

    client = application.test_client()
    res = client.post('/api/auth/register', json={'name': 'Ann', 'email': 'a@x.com', 'password': 'p1'})
    assert res.status_code == 201
    assert client.get('/').get_json()['degraded'] is True


def test_persist_rejects_truncated_history(store):
    account = store.create('Ann', 'a@x.com', 'hash')
    account = store.persist(account.with_spin(10, datetime.now(timezone.utc)))
    account.history = []
    account.spins_left = 5
    with pytest.raises(PersistenceError):
        store.persist(account)
    assert [e.points for e in store.find_by_id(account.id).history] == [10]


def test_persist_rejects_rewritten_history(store):
    account = store.create('Ann', 'a@x.com', 'hash')
    account = store.persist(account.with_spin(10, datetime.now(timezone.utc)))
    tampered = account.with_spin(20, datetime.now(timezone.utc))
    tampered.history[0] = HistoryEntry(points=100, date=tampered.history[0].date)
    with pytest.raises(PersistenceError):
        store.persist(tampered)
    stored = store.find_by_id(account.id)
    assert [e.points for e in stored.history] == [10]
    assert stored.spins_left == 4
