# utils/errors.py
class VSLAError(Exception):
    """Base for errors raised by domain helpers and rendered as JSON by the app."""
    status_code = 400

    def __init__(self, message, status_code=None, details=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self):
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class NotFound(VSLAError):
    status_code = 404


class BusinessRuleError(VSLAError):
    status_code = 400


class Conflict(VSLAError):
    status_code = 409


class Forbidden(VSLAError):
    status_code = 403
