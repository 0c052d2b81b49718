"""Error taxonomy surfaced at the API boundary.

Every error carries an HTTP status and a human-readable message; the app
factory renders them as ``{"message": ...}`` JSON bodies.
"""


class SpinnergyError(Exception):
    status_code = 500
    message = 'Something went wrong'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self):
        return {'message': self.message}


class ValidationError(SpinnergyError):
    status_code = 400
    message = 'Invalid request'


class AuthError(SpinnergyError):
    status_code = 401
    message = 'Authentication required'


class InvalidCredentials(AuthError):
    status_code = 400
    message = 'Invalid email or password'


class InvalidToken(AuthError):
    message = 'Invalid or expired token'


class UnknownAccount(AuthError):
    message = 'Account not found'


class ConflictError(SpinnergyError):
    status_code = 400
    message = 'Conflict'


class DuplicateEmail(ConflictError):
    message = 'Email already registered'


class QuotaExceeded(SpinnergyError):
    status_code = 400
    message = 'Quota exceeded'


class NoSpinsLeft(QuotaExceeded):
    message = 'No spins left'


class PersistenceError(SpinnergyError):
    status_code = 500
    message = 'Account store unavailable'


class ConcurrentUpdate(PersistenceError):
    message = 'Account was modified concurrently'


class SpinFailed(PersistenceError):
    message = 'Spin failed, please try again'


class UpstreamError(SpinnergyError):
    status_code = 500
    message = 'Upstream service error'
