from .errors import FieldErrorItem, FieldErrorList
from .request_options import RequestOptions

__all__ = [
    "FieldErrorItem",
    "FieldErrorList",
    "RequestOptions",
]
