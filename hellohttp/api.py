"""
hellohttp API
A Flask app with fixed diagnostic endpoints for probing proxies and load balancers.
"""
import logging
import os
import secrets
import shutil
import sys
import time

from flask import Blueprint, Flask, current_app, request
from werkzeug.exceptions import ClientDisconnected
from werkzeug.routing import Rule

from hellohttp import payload, proxy
from hellohttp.durations import parse_duration
from hellohttp.settings import Settings

INSTANCE_HEADER = 'X-HelloHttp-Instance'
BODY_LENGTH_HEADER = 'X-HelloHttp-Req-Body-Length'

logger = logging.getLogger(__name__)

bp = Blueprint('hellohttp', __name__)


def route(path):
    """Register a view for `path` that matches every HTTP method, including TRACE and custom ones."""
    def decorator(view):
        endpoint = f'{bp.name}.{view.__name__}'

        def register(state):
            # Flask's add_url_rule always pins methods; a bare Rule leaves them open
            state.app.url_map.add(Rule(path, endpoint=endpoint))
            state.app.view_functions[endpoint] = view

        bp.record(register)
        return view
    return decorator


class Instance:
    """Per-process state shared by every request."""

    def __init__(self, settings):
        self.settings = settings
        self.id = secrets.token_hex(4)
        self.healthy = True
        self.size_buffer = None
        if settings.size_buffer_len is not None:
            self.size_buffer = payload.generate(settings.size_buffer_len)


def instance():
    return current_app.extensions['hellohttp']


def create_app(settings=None):
    app = Flask(__name__)
    app.extensions['hellohttp'] = Instance(settings or Settings.from_env())
    app.register_blueprint(bp)
    return app


@bp.after_app_request
def add_instance_header(response):
    response.headers[INSTANCE_HEADER] = instance().id
    return response


@bp.app_errorhandler(404)
def not_found(error):
    return '', 404


@route('/')
@route('/ping')
def ping():
    try:
        body = request.get_data(cache=False)
    except (ClientDisconnected, OSError):
        return '', 500
    return 'PONG', 200, {BODY_LENGTH_HEADER: str(len(body))}


@route('/log')
def log_request():
    """Dump the request line details and headers to stdout"""
    proto = request.environ.get('SERVER_PROTOCOL', '')
    connection = request.headers.get('Connection', '').lower()
    if proto == 'HTTP/1.0':
        close = 'keep-alive' not in connection
    else:
        close = 'close' in connection
    transfer_encoding = [t.strip() for t in request.headers.get('Transfer-Encoding', '').split(',') if t.strip()]
    remote = request.remote_addr
    if request.environ.get('REMOTE_PORT'):
        remote = f"{remote}:{request.environ['REMOTE_PORT']}"

    print('')
    print('Proto', proto)
    print('TransferEncoding', transfer_encoding)
    print('Close', close)
    print('Host', request.host)
    print('RemoteAddr', remote)
    for name, value in request.headers.items():
        print('Header', name, value)
    sys.stdout.flush()

    return 'PONG', 200


@route('/client')
def client():
    url = request.headers.get('X-Req-URL')
    if not url:
        return 'missing X-Req-URL', 400

    try:
        target = proxy.parse_target(url)
    except ValueError as e:
        return str(e), 400

    return proxy.forward(target, request)


@route('/size')
def size():
    byte_size = request.args.get('byte_size')
    if not byte_size:
        return 'missing byte_size query var', 400

    inst = instance()
    if inst.size_buffer is not None and byte_size == inst.settings.size_response_len:
        body = inst.size_buffer
    else:
        try:
            body = payload.generate(payload.parse_size(byte_size))
        except ValueError:
            return 'invalid byte_size query var', 400

    return body, 200, {'Content-Type': 'application/octet-stream'}


@route('/delay')
def delay():
    duration = request.args.get('duration')
    if not duration:
        return 'missing duration query var', 400

    try:
        seconds = parse_duration(duration)
    except ValueError as e:
        return str(e), 400

    time.sleep(max(seconds, 0))
    return '', 200


@route('/exfil')
def exfil():
    """Write the request body to the file named by X-Filename"""
    filename = request.headers.get('X-Filename')
    if not filename:
        return '', 400

    try:
        fd = os.open(filename, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o755)
    except OSError as e:
        logger.error('os.open %s: %s', filename, e)
        return '', 500

    try:
        with os.fdopen(fd, 'wb') as f:
            shutil.copyfileobj(request.stream, f)
    except (ClientDisconnected, OSError) as e:
        logger.error('Writing %s failed: %s', filename, e)
        return '', 500

    return '', 200


@route('/404')
def always_not_found():
    return '', 404


@route('/health')
def health():
    if instance().healthy:
        return '', 200
    return '', 500


@route('/health/pass')
def health_pass():
    instance().healthy = True
    return '', 200


@route('/health/fail')
def health_fail():
    instance().healthy = False
    return '', 200
