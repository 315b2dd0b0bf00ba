"""
NTT-friendly primes and roots of unity.
"""

import math

from sympy import isprime

from .exceptions import ParameterError


def find_ntt_prime(start, N, step=None):
    """Find the smallest prime q >= start satisfying q = 1 mod 2N.

    `step` overrides the congruence modulus (it must be a multiple of 2N),
    e.g. lcm(2N, p) to also get q = 1 mod p.
    """
    m = 2 * N if step is None else step
    if m % (2 * N) != 0:
        raise ParameterError(f"step {m} is not a multiple of 2N={2 * N}")
    # Align with m: q = 1 mod m
    q = ((start - 1 + m - 1) // m) * m + 1
    if q < 2:
        q += m
    while not isprime(q):
        q += m
    return q


def ntt_prime_above_bits(bits, N, step=None):
    """Smallest NTT-friendly prime above 2^bits."""
    return find_ntt_prime((1 << bits) + 1, N, step)


def primitive_root_2n(q, N):
    """Return a primitive 2N-th root of unity mod the prime q.

    For N a power of two, psi = x^((q-1)/2N) has order exactly 2N iff
    psi^N = -1, so no factorisation of q - 1 is needed.
    """
    if N & (N - 1) != 0:
        raise ParameterError(f"N={N} must be a power of 2")
    if not isprime(q):
        raise ParameterError(f"modulus {q} is not prime")
    if (q - 1) % (2 * N) != 0:
        raise ParameterError(
            f"no primitive {2 * N}-th root of unity mod {q} (q != 1 mod 2N)")
    k = (q - 1) // (2 * N)
    x = 2
    while x < q:
        psi = pow(x, k, q)
        if pow(psi, N, q) == q - 1:
            return psi
        x += 1
    raise ParameterError(f"no primitive {2 * N}-th root of unity mod {q}")


def has_primitive_root_2n(q, N):
    return N & (N - 1) == 0 and (q - 1) % (2 * N) == 0 and isprime(q)


def lcm(a, b):
    return a * b // math.gcd(a, b)
