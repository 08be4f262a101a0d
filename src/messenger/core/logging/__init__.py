from .builder import setup_logging, make_dict_config
from .filters import set_request_id, get_request_id, reset_request_id, request_context, RequestIdFilter, RedactFilter

__all__ = [
    "setup_logging",
    "make_dict_config",
    "set_request_id",
    "get_request_id",
    "reset_request_id",
    "request_context",
    "RequestIdFilter",
    "RedactFilter",
]
