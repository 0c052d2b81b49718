from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from spinnergy.accounts import Account, AccountStore
from spinnergy.errors import ConcurrentUpdate, NoSpinsLeft, PersistenceError, SpinFailed, UnknownAccount


@dataclass(frozen=True)
class RewardWheel:
    """An ordered, finite set of reward segments."""

    segments: Tuple[int, ...]
    extra_rotations: int = 5

    def __post_init__(self):
        if not self.segments:
            raise ValueError('Reward wheel needs at least one segment')
        if any(int(v) < 0 for v in self.segments):
            raise ValueError('Reward values must be non-negative')
        if self.extra_rotations < 0:
            raise ValueError('extra_rotations must be non-negative')
        object.__setattr__(self, 'segments', tuple(int(v) for v in self.segments))

    def __len__(self):
        return len(self.segments)

    @property
    def degrees_per_segment(self) -> float:
        return 360.0 / len(self.segments)

    def landing_rotation(self, index: int) -> float:
        """Final wheel angle for a segment: full turns plus the segment's midpoint."""
        if not 0 <= index < len(self.segments):
            raise IndexError(f'segment index {index} out of range')
        step = self.degrees_per_segment
        return 360.0 * self.extra_rotations + index * step + step / 2


@dataclass(frozen=True)
class SpinOutcome:
    value: int
    new_score: int
    spins_left: int
    landing_rotation: float
    message: str

    def to_dict(self):
        return {
            'value': self.value,
            'newScore': self.new_score,
            'spinsLeft': self.spins_left,
            'landingRotation': self.landing_rotation,
            'message': self.message,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameEngine:
    """Resolves spins. The only code path that changes score, quota or history."""

    def __init__(
        self,
        store: AccountStore,
        wheel: RewardWheel,
        message_template: str = 'Congratulations! You won {value} points!',
        max_attempts: int = 3,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utcnow,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError('max_attempts must be at least 1')
        self._store = store
        self.wheel = wheel
        self._message_template = message_template
        self._max_attempts = max_attempts
        self._rng = rng or random.SystemRandom()
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    def spin(self, account: Account) -> SpinOutcome:
        current = account
        for attempt in range(1, self._max_attempts + 1):
            if current.spins_left <= 0:
                raise NoSpinsLeft()

            index = self._rng.randrange(len(self.wheel))
            value = self.wheel.segments[index]
            try:
                saved = self._store.persist(current.with_spin(value, self._clock()))
            except ConcurrentUpdate:
                self._logger.info(f'[spin-retry] account={account.id} attempt={attempt} stale version={current.version}')
                current = self._reload(account.id)
                continue
            except PersistenceError as exc:
                self._logger.error(f'[spin-failed] account={account.id} error={exc}')
                raise SpinFailed() from exc

            self._logger.info(
                f'[spin] account={saved.id} index={index} value={value} score={saved.score} spins_left={saved.spins_left}'
            )
            return SpinOutcome(
                value=value,
                new_score=saved.score,
                spins_left=saved.spins_left,
                landing_rotation=self.wheel.landing_rotation(index),
                message=self._message_template.format(value=value),
            )

        self._logger.error(f'[spin-failed] account={account.id} gave up after {self._max_attempts} attempts')
        raise SpinFailed()

    def _reload(self, account_id: str) -> Account:
        try:
            fresh = self._store.find_by_id(account_id)
        except PersistenceError as exc:
            raise SpinFailed() from exc
        if fresh is None:
            raise UnknownAccount()
        return fresh
