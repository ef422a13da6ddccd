"""Service configuration, read once from the environment."""
import logging
import os

from hellohttp.durations import parse_duration
from hellohttp.payload import parse_size

logger = logging.getLogger(__name__)


class Settings:

    def __init__(self, host='0.0.0.0', port=3000, size_response_len=None, idle_timeout=None):
        self.host = host
        self.port = port
        # raw SIZE_RESPONSE_LEN, compared as a string against ?byte_size=
        self.size_response_len = size_response_len
        self.idle_timeout = idle_timeout

    @property
    def size_buffer_len(self):
        """SIZE_RESPONSE_LEN as a non-negative int, or None when it is unset or invalid."""
        if self.size_response_len is None:
            return None
        try:
            return parse_size(self.size_response_len)
        except ValueError:
            return None

    @classmethod
    def from_env(cls, environ=None):
        if environ is None:
            environ = os.environ

        port = environ.get('PORT') or '3000'

        size_response_len = environ.get('SIZE_RESPONSE_LEN')
        settings = cls(
            host=environ.get('HOST') or '0.0.0.0',
            port=int(port),
            size_response_len=size_response_len,
            idle_timeout=_idle_timeout(environ.get('IDLE_TIMEOUT')),
        )
        if size_response_len is not None and settings.size_buffer_len is None:
            logger.warning('Ignoring SIZE_RESPONSE_LEN=%r: not a non-negative integer', size_response_len)
        return settings


def _idle_timeout(value):
    if not value:
        return None
    try:
        seconds = parse_duration(value)
    except ValueError as e:
        logger.warning('Ignoring IDLE_TIMEOUT=%r: %s', value, e)
        return None
    if seconds <= 0:
        return None
    return seconds
