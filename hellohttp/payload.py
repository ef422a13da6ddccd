import string

ALPHABET = string.ascii_lowercase.encode()


def parse_size(value):
    """Parse a payload size: ASCII decimal digits with an optional leading '+'."""
    digits = value[1:] if value.startswith('+') else value
    if not (digits.isascii() and digits.isdigit()):
        raise ValueError(f'invalid size "{value}"')
    return int(digits)


def generate(size):
    """Return `size` bytes where byte i is 'a' + i % 26."""
    if size < 0:
        raise ValueError('size must be non-negative')
    repeats, remainder = divmod(size, len(ALPHABET))
    return ALPHABET * repeats + ALPHABET[:remainder]
