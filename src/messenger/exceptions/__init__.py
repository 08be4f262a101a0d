from .base import RepositoryError, NotFoundError, DuplicateError, InvalidFieldError
from .mapper import db_error_handler, raise_mapped_integrity_error

__all__ = [
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError",
    "db_error_handler",
    "raise_mapped_integrity_error",
]
