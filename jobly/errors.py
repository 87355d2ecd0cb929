class JoblyError(Exception):
    """Base exception for jobly errors."""

    status_code = 500


class BadRequestError(JoblyError):
    """Caller input is empty, malformed, or breaks a business rule."""

    status_code = 400


class NotFoundError(JoblyError):
    """The targeted record does not exist."""

    status_code = 404


class DuplicateKeyError(JoblyError):
    """A uniqueness constraint would be violated."""

    status_code = 409
