from .config import DbConfig
from .db.session import DbSession
from .errors import BadRequestError, DuplicateKeyError, JoblyError, NotFoundError
from .models import Company, Job

__all__ = [
    "DbConfig",
    "DbSession",
    "Company",
    "Job",
    "JoblyError",
    "BadRequestError",
    "NotFoundError",
    "DuplicateKeyError",
]
