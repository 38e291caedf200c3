"""
Exact integer arithmetic for reward accounting.

Fixed-point values are ints scaled by PRECISION (1e18), so 1x == ONE.
Amounts are plain ints in the token's smallest unit. Nothing in here touches floats.
"""

PRECISION = 10 ** 18
ONE = PRECISION
MAX_UINT256 = 2 ** 256 - 1
SECONDS_PER_DAY = 86400


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)"""
    if denominator == 0:
        raise ZeroDivisionError('mul_div by zero')
    return a * b // denominator


def mul(a: int, b: int) -> int:
    """multiply two fixed-point values (or an amount by a fixed-point value)"""
    return a * b // PRECISION


def div(a: int, b: int) -> int:
    """divide, returning a fixed-point result"""
    if b == 0:
        raise ZeroDivisionError('fixed-point division by zero')
    return a * PRECISION // b


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > MAX_UINT256 or result < 0:
        raise OverflowError(f'{a} + {b} leaves uint256 range')
    return result


def checked_sub(a: int, b: int) -> int:
    result = a - b
    if result < 0:
        raise OverflowError(f'{a} - {b} underflows')
    return result


def saturating_sub(a: int, b: int) -> int:
    return a - b if a > b else 0


def clamp(x: int, low: int, high: int) -> int:
    if low > high:
        raise ValueError('clamp bounds are inverted')
    return max(low, min(x, high))


def pow_fixed(base: int, exponent: int) -> int:
    """
    base ** exponent for a fixed-point base and a non-negative integer exponent.
    Exponentiation by squaring: O(log exponent) multiplications, each rounded down.
    """
    if exponent < 0:
        raise ValueError('exponent must be non-negative')
    result = ONE
    while exponent > 0:
        if exponent & 1:
            result = result * base // PRECISION
        exponent >>= 1
        if exponent:
            base = base * base // PRECISION
    return result
