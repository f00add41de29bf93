import gmpy2


def find_divisor(n, start: int, end: int) -> int | None:
    """Smallest d in [start, end] with 1 < d <= isqrt(n) and n % d == 0."""
    n = gmpy2.mpz(n)
    if n < 4:
        return None
    lo = max(2, int(start))
    hi = min(int(end), int(gmpy2.isqrt(n)))
    for d in range(lo, hi + 1):
        if gmpy2.is_divisible(n, d):
            return d
    return None
