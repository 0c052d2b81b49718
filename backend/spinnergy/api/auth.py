from flask import Blueprint, jsonify
from flask_login import UserMixin, login_required, current_user
from spinnergy import get_services
from spinnergy.api import json_body
from spinnergy.errors import ValidationError

auth = Blueprint('auth', __name__)


class AccountPrincipal(UserMixin):
    """Flask-Login wrapper around the account a bearer token resolved to."""

    def __init__(self, account):
        self.account = account

    def get_id(self):
        return self.account.id


def _require(data, *fields):
    missing = [f for f in fields if not str(data.get(f) or '').strip()]
    if missing:
        raise ValidationError(f"Missing {', '.join(missing)}")


@auth.route('/register', methods=['POST'])
def register():
    data = json_body()
    _require(data, 'name', 'email', 'password')

    services = get_services()
    account = services.store.create(
        name=str(data['name']).strip(),
        email=str(data['email']),
        password_hash=services.sessions.hash_password(str(data['password'])),
    )
    return jsonify({
        'message': 'User registered successfully',
        'user': {'name': account.name, 'email': account.email},
    }), 201


@auth.route('/login', methods=['POST'])
def login():
    data = json_body()
    _require(data, 'email', 'password')

    sessions = get_services().sessions
    account = sessions.authenticate(str(data['email']), str(data['password']))
    return jsonify({'token': sessions.issue(account), 'user': account.to_public_dict()})


@auth.route('/profile', methods=['GET'])
@login_required
def profile():
    account = current_user.account
    payload = account.to_public_dict()
    payload['spinsLeft'] = account.spins_left
    payload['history'] = [entry.to_dict() for entry in account.history]
    return jsonify(payload)
