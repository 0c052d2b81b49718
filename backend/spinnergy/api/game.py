from flask import Blueprint, current_app, request, jsonify
from flask_login import login_required, current_user
from spinnergy import get_services, socketio
from spinnergy.errors import SpinnergyError, ValidationError

game = Blueprint('game', __name__)


def leaderboard_payload(limit=None):
    return [entry.to_dict() for entry in get_services().leaderboard.rank(limit)]


@game.route('/spin', methods=['POST'])
@login_required
def spin():
    outcome = get_services().engine.spin(current_user.account)
    # Spin already committed; the push is best-effort
    try:
        socketio.emit('leaderboard_update', {'leaderboard': leaderboard_payload()}, namespace='/ws')
    except SpinnergyError as exc:
        current_app.logger.warning(f'[push] leaderboard_update skipped: {exc}')
    return jsonify(outcome.to_dict())


@game.route('/leaderboard', methods=['GET'])
def leaderboard():
    raw = request.args.get('limit')
    try:
        limit = int(raw) if raw is not None else None
    except ValueError:
        raise ValidationError('limit must be an integer')
    return jsonify(leaderboard_payload(limit))


@game.route('/history', methods=['GET'])
@login_required
def history():
    return jsonify([entry.to_dict() for entry in current_user.account.history])
