class SchoolError(Exception):
    """Base class for errors that are reported back to the user."""

    http_status = 400

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self):
        payload = {"error": self.message}
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationError(SchoolError):
    http_status = 400


class AccessDeniedError(SchoolError):
    http_status = 403


class NotFoundError(SchoolError):
    http_status = 404


class StoreError(SchoolError):
    """A read or write against the database failed. The driver error is kept on __cause__."""

    http_status = 500


class ConsistencyWarning(UserWarning):
    pass
