from .company import Company
from .job import Job

__all__ = ["Company", "Job"]
