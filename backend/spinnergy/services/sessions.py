from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import JWTError, jwt

from spinnergy.accounts import Account, AccountStore
from spinnergy.errors import InvalidCredentials, InvalidToken, UnknownAccount


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionIssuer:
    """Verifies credentials and mints/resolves stateless bearer tokens.

    Tokens are JWTs whose only claims are the account id (``sub``) and the
    issue/expiry timestamps. There is no revocation list.
    """

    def __init__(
        self,
        store: AccountStore,
        hasher,
        secret_key: str,
        ttl: timedelta = timedelta(hours=4),
        algorithm: str = 'HS256',
        clock: Callable[[], datetime] = _utcnow,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not secret_key:
            raise ValueError('A non-empty signing key is required')
        self._store = store
        self._hasher = hasher
        self._secret_key = secret_key
        self._ttl = ttl
        self._algorithm = algorithm
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        # Checked against when the email is unknown so both failure paths hash once
        self._dummy_hash = hasher.generate_password_hash(secrets.token_hex(16)).decode('utf-8')

    def hash_password(self, password: str) -> str:
        return self._hasher.generate_password_hash(password).decode('utf-8')

    def authenticate(self, email: str, password: str) -> Account:
        account = self._store.find_by_email(email)
        candidate_hash = account.password_hash if account else self._dummy_hash
        password_ok = self._hasher.check_password_hash(candidate_hash, password)
        if account is None or not password_ok:
            raise InvalidCredentials()
        return account

    def issue(self, account: Account) -> str:
        issued_at = self._clock()
        claims = {
            'sub': account.id,
            'iat': int(issued_at.timestamp()),
            'exp': int((issued_at + self._ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def resolve(self, token: str) -> Account:
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            raise InvalidToken() from exc
        account_id = claims.get('sub')
        if not account_id:
            raise InvalidToken()
        account = self._store.find_by_id(account_id)
        if account is None:
            self._logger.info(f'[token] valid token for unknown account={account_id}')
            raise UnknownAccount()
        return account
