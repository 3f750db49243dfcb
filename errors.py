"""
Error taxonomy for the API.

Services and request guards raise these; ``main`` renders every one of them
as ``{"message": ...}`` with the status code carried by the class.
"""


class ServiceError(Exception):
    status_code = 500
    message = "internal server error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class Unauthenticated(ServiceError):
    status_code = 401
    message = "unauthorized access"


class Forbidden(ServiceError):
    status_code = 403
    message = "forbidden access"


class InvalidId(ServiceError):
    status_code = 400
    message = "Invalid id"


class InvalidState(ServiceError):
    status_code = 400


class NotFound(ServiceError):
    status_code = 404
    message = "Not found"


class Conflict(ServiceError):
    status_code = 409
