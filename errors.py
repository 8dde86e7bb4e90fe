class JobBoardError(Exception):
    status_code = 500
    message = "Internal error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class NotFound(JobBoardError):
    status_code = 404
    message = "Not found"


class Forbidden(JobBoardError):
    status_code = 403
    message = "Not the owner of this resource"


class Unauthenticated(JobBoardError):
    status_code = 401
    message = "Authentication required"


class DuplicateEmail(JobBoardError):
    status_code = 409
    message = "Email already registered"


class InvalidCredentials(JobBoardError):
    """Wrong email or password. Deliberately silent about which one."""

    status_code = 401
    message = "Invalid email or password"


class BadParams(InvalidCredentials):
    status_code = 400
    message = "Missing or invalid parameters"


class IndexOutOfRange(JobBoardError):
    status_code = 422
    message = "Index out of range"


class Conflict(JobBoardError):
    status_code = 409
    message = "Board changed concurrently, reload and retry"
