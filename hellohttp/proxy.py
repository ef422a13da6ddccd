"""
Request forwarding for /client
Sends the incoming request to a single upstream host and streams the answer back.
"""
import logging
from urllib.parse import urlsplit

import requests
from flask import Response

logger = logging.getLogger(__name__)

# RFC 7230 section 6.1, plus the ones proxies commonly strip
HOP_BY_HOP = {
    'connection',
    'keep-alive',
    'proxy-authenticate',
    'proxy-authorization',
    'proxy-connection',
    'te',
    'trailer',
    'transfer-encoding',
    'upgrade',
}

# requests adds these by default; an incoming request without them must not gain them
DEFAULT_CLIENT_HEADERS = ('User-Agent', 'Accept', 'Accept-Encoding')

CHUNK_SIZE = 32 * 1024


def parse_target(value):
    """Validate an X-Req-URL value and return its SplitResult, or raise ValueError."""
    try:
        if any(ord(c) < 0x20 or ord(c) == 0x7f for c in value):
            raise ValueError('invalid control character in URL')
        target = urlsplit(value)
        # raises on a non-numeric or out of range port
        target.port
        if target.scheme not in ('http', 'https'):
            raise ValueError(f'unsupported protocol scheme "{target.scheme}"')
        if not target.hostname:
            raise ValueError('missing host')
    except ValueError as e:
        raise ValueError(f'parse "{value}": {e}') from e
    return target


def join_path(a, b):
    a = a or '/'
    if a.endswith('/') and b.startswith('/'):
        return a + b[1:]
    if not a.endswith('/') and not b.startswith('/'):
        return a + '/' + b
    return a + b


def join_query(a, b):
    if a and b:
        return a + '&' + b
    return a + b


def _hop_by_hop(headers):
    names = set(HOP_BY_HOP)
    for token in headers.get('Connection', '').split(','):
        if token.strip():
            names.add(token.strip().lower())
    return names


def outbound_headers(incoming, remote_addr):
    drop = _hop_by_hop(incoming)
    drop.add('content-length')
    headers = {}
    for name, value in incoming.items():
        if name.lower() in drop:
            continue
        if name in headers:
            headers[name] = headers[name] + ', ' + value
        else:
            headers[name] = value

    if remote_addr:
        prior = headers.get('X-Forwarded-For')
        headers['X-Forwarded-For'] = f'{prior}, {remote_addr}' if prior else remote_addr

    for name in DEFAULT_CLIENT_HEADERS:
        if name not in incoming:
            headers[name] = None
    return headers


def target_host(target):
    """host[:port] of `target`, without any userinfo."""
    host = target.hostname
    if ':' in host:
        host = f'[{host}]'
    if target.port is not None:
        host = f'{host}:{target.port}'
    return host


def forward(target, request):
    """Forward the Flask `request` to `target` and return the upstream answer as a streamed Response."""
    url = f'{target.scheme}://{target_host(target)}{join_path(target.path, request.path)}'
    query = join_query(target.query, request.query_string.decode('latin-1'))
    if query:
        url = f'{url}?{query}'

    body = request.get_data(cache=False)
    try:
        upstream = requests.request(
            request.method,
            url,
            headers=outbound_headers(request.headers, request.remote_addr),
            data=body or None,
            stream=True,
            allow_redirects=False,
        )
    except requests.RequestException as e:
        logger.error('Proxy request to %s failed: %s', url, e)
        return Response(str(e), status=502, mimetype='text/plain')

    drop = _hop_by_hop(upstream.raw.headers)
    headers = [(name, value) for name, value in upstream.raw.headers.items() if name.lower() not in drop]

    def stream():
        try:
            for chunk in upstream.raw.stream(CHUNK_SIZE, decode_content=False):
                yield chunk
        finally:
            upstream.close()

    return Response(stream(), status=upstream.status_code, headers=headers)
