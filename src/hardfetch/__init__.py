__version__ = "0.1.0"

from .errors import ClientError, HardFetchError, SerializationError, ValidationError
from .http.client.auth import ApiKeyAuth, BasicAuth, BearerAuth, auth_from_dict
from .http.client.client import HttpClient
from .http.client.request import RequestSpec
from .http.client.response import Response
from .util.logging import configure_logging

__all__ = [
    'HttpClient',
    'RequestSpec',
    'Response',
    'BearerAuth',
    'BasicAuth',
    'ApiKeyAuth',
    'auth_from_dict',
    'HardFetchError',
    'ValidationError',
    'SerializationError',
    'ClientError',
    'configure_logging',
]
