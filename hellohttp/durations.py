"""
Duration strings
Parses the duration grammar used by IDLE_TIMEOUT and /delay, e.g. "500ms", "2s", "1m30s".
"""
import re

UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'μs': 1e-6,
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}

# largest duration that fits in int64 nanoseconds
MAX_SECONDS = (2**63 - 1) / 1e9

_PART = re.compile(r'(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)')


def parse_duration(value):
    """Return the duration in seconds as a float, or raise ValueError."""
    original = value
    if not value:
        raise ValueError(f'invalid duration "{original}"')

    sign = 1.0
    if value[0] in '+-':
        if value[0] == '-':
            sign = -1.0
        value = value[1:]

    # "0" is the only unitless duration
    if value == '0':
        return 0.0
    if not value:
        raise ValueError(f'invalid duration "{original}"')

    total = 0.0
    pos = 0
    while pos < len(value):
        match = _PART.match(value, pos)
        if match is None:
            if value[pos].isdigit() or value[pos] == '.':
                raise ValueError(f'missing unit in duration "{original}"')
            raise ValueError(f'invalid duration "{original}"')
        number, unit = match.groups()
        total += float(number) * UNITS[unit]
        pos = match.end()

    if total > MAX_SECONDS:
        raise ValueError(f'invalid duration "{original}"')
    return sign * total
