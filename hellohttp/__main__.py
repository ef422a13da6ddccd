"""
hellohttp server entrypoint
Dumps the environment, then serves the API with the threaded Werkzeug server.
"""
import logging
import os
import sys

from werkzeug.serving import WSGIRequestHandler

from hellohttp.api import create_app
from hellohttp.settings import Settings

logger = logging.getLogger('hellohttp')


class RequestHandler(WSGIRequestHandler):
    protocol_version = 'HTTP/1.1'


def request_handler(idle_timeout):
    """Handler class whose connections time out after `idle_timeout` seconds of silence."""
    if idle_timeout is None:
        return RequestHandler
    return type('IdleTimeoutRequestHandler', (RequestHandler,), {'timeout': idle_timeout})


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
        stream=sys.stdout,
    )

    for key, value in os.environ.items():
        print(f'{key}={value}')
    sys.stdout.flush()

    settings = Settings.from_env()
    app = create_app(settings)

    logger.info('listening on %s', settings.port)
    if settings.idle_timeout is not None:
        logger.info('idle timeout %ss', settings.idle_timeout)
    app.run(
        host=settings.host,
        port=settings.port,
        threaded=True,
        request_handler=request_handler(settings.idle_timeout),
    )


if __name__ == '__main__':
    main()
