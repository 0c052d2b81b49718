from datetime import datetime, timezone

from spinnergy import db
from spinnergy.accounts import Account, HistoryEntry


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AccountRow(db.Model):
    __tablename__ = 'account'
    id = db.Column(db.String(32), primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    spins_left = db.Column(db.Integer, nullable=False, default=5)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    version = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    spins = db.relationship('SpinRow', back_populates='account', order_by='SpinRow.position',
                            cascade='all, delete-orphan')

    __table_args__ = (
        db.CheckConstraint('spins_left >= 0', name='ck_account_spins_left_non_negative'),
    )

    def to_domain(self) -> Account:
        return Account(
            id=self.id,
            name=self.name,
            email=self.email,
            password_hash=self.password_hash,
            score=self.score,
            spins_left=self.spins_left,
            history=[s.to_domain() for s in self.spins],
            is_admin=bool(self.is_admin),
            version=self.version,
        )


class SpinRow(db.Model):
    __tablename__ = 'spin'
    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.String(32), db.ForeignKey('account.id'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    points = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    account = db.relationship('AccountRow', back_populates='spins')

    __table_args__ = (
        db.UniqueConstraint('account_id', 'position', name='uq_spin_account_position'),
    )

    def to_domain(self) -> HistoryEntry:
        return HistoryEntry(points=self.points, date=as_utc(self.created_at))
