from flask_socketio import emit
from spinnergy import socketio


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_subscribe_leaderboard(data=None):
    from spinnergy.api.game import leaderboard_payload
    if data is not None and not isinstance(data, dict):
        emit('error', {'message': 'payload must be an object'})
        return
    limit = (data or {}).get('limit')
    try:
        limit = int(limit) if limit is not None else None
    except (TypeError, ValueError):
        emit('error', {'message': 'limit must be an integer'})
        return
    emit('leaderboard', {'leaderboard': leaderboard_payload(limit)})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('subscribe_leaderboard', handle_subscribe_leaderboard, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('subscribe_leaderboard', handle_subscribe_leaderboard, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
