"""
Scheme parameters for BFV and BGV.

BFVParams.generate() follows the PALISADE parameter generator: grow the ring
dimension until the modulus needed for the requested multiplicative depth is
secure for that dimension.
"""

import logging
import math
from dataclasses import dataclass

from .config import (DEFAULT_ALPHA, DEFAULT_RELIN_WINDOW, DEFAULT_SIGMA,
                     MIN_RING_DIM, SecurityLevel, std_ring_dim)
from .exceptions import ParameterError
from .polynomial import PolynomialRing
from .primes import find_ntt_prime, lcm, ntt_prime_above_bits

logger = logging.getLogger(__name__)


def _check_plain_modulus(p, q):
    if not 1 < p < q:
        raise ParameterError(f"plaintext modulus p={p} must satisfy 1 < p < q={q}")
    if math.gcd(p, q) != 1:
        raise ParameterError(f"plaintext modulus p={p} is not coprime to q={q}")


def _check_relin_window(relin_window):
    if not isinstance(relin_window, int) or relin_window < 1:
        raise ParameterError(f"relin_window must be a positive int, got {relin_window!r}")


def big_modulus_bits(N, q, p):
    """Bit size of an auxiliary modulus that holds p * N * q^2."""
    return 2 * q.bit_length() + N.bit_length() + p.bit_length() + 3


@dataclass(frozen=True)
class BFVParams:
    # The ciphertext ring over which operations are performed
    ring: PolynomialRing
    # The big ring used during multiplication
    ring_big: PolynomialRing
    # The plaintext ring
    ring_plain: PolynomialRing
    relin_window: int
    sigma: float
    delta: int

    def __post_init__(self):
        if not self.ring.has_ntt or not self.ring_big.has_ntt:
            raise ParameterError("ciphertext and auxiliary rings need a primitive 2N-th root")
        if not self.ring.N == self.ring_big.N == self.ring_plain.N:
            raise ParameterError("rings must share the same dimension N")
        _check_plain_modulus(self.p, self.q)
        _check_relin_window(self.relin_window)
        # Enough for tensor products of ciphertexts with up to 2p components
        if self.q_big <= self.p * self.n * self.q ** 2:
            raise ParameterError(
                f"auxiliary modulus 2^{self.q_big.bit_length()} too small, "
                f"needs > p*N*q^2 ~ 2^{(self.p * self.n * self.q ** 2).bit_length()}")
        if self.delta != self.q // self.p:
            raise ParameterError(f"delta must be floor(q/p)={self.q // self.p}")

    @property
    def n(self):
        return self.ring.N

    @property
    def q(self):
        return self.ring.q

    @property
    def p(self):
        return self.ring_plain.q

    @property
    def q_big(self):
        return self.ring_big.q

    @property
    def n_windows(self):
        """Number of base-2^relin_window digits of q."""
        return -(-self.q.bit_length() // self.relin_window)

    @classmethod
    def from_moduli(cls, n, q, p, q_big=None, sigma=DEFAULT_SIGMA,
                    relin_window=DEFAULT_RELIN_WINDOW):
        if q_big is None:
            q_big = ntt_prime_above_bits(big_modulus_bits(n, q, p), n)
        params = cls(
            ring=PolynomialRing(n, q, require_ntt=True),
            ring_big=PolynomialRing(n, q_big, require_ntt=True),
            ring_plain=PolynomialRing(n, p),
            relin_window=relin_window,
            sigma=sigma,
            delta=q // p,
        )
        logger.info("BFV Parameters: N=%d, p=%d, q~2^%d, q_big~2^%d, window=%d",
                    n, p, q.bit_length(), q_big.bit_length(), relin_window)
        return params

    @classmethod
    def generate(cls, p, sigma=DEFAULT_SIGMA, alpha=DEFAULT_ALPHA, r=1,
                 eval_mult_count=0, security=SecurityLevel.HEStd_128_classic,
                 relin_window=DEFAULT_RELIN_WINDOW):
        """Pick N and q for `eval_mult_count` multiplications at `security`.

        `security` is a SecurityLevel, or a float interpreted as the root
        Hermite factor.
        """
        if r < 1:
            raise ParameterError(f"r must be >= 1, got {r}")
        n, q = select_ring(p, sigma, alpha, r, eval_mult_count, security)
        q_prime = ntt_prime_above_bits(math.ceil(math.log2(q)) + 1, n)
        logger.debug("selected N=%d for q bound 2^%.1f", n, math.log2(q))
        return cls.from_moduli(n, q_prime, p, sigma=sigma, relin_window=relin_window)


def select_ring(p, sigma, alpha, r, eval_mult_count, security):
    """Fixed-point search for (N, q bound)."""
    b_err = sigma * math.sqrt(alpha)
    b_key = b_err
    depth = eval_mult_count

    def delta_n(n):
        return 2 * math.sqrt(n)

    def v_norm(n):
        return b_err * (1 + 2 * delta_n(n) * b_key)

    def c1(n):
        eps1 = 4 / delta_n(n) * b_key
        return (1 + eps1) * delta_n(n) ** 2 * p * b_key

    def c2(n, q_prev):
        return (delta_n(n) ** 2 * p * b_key * (b_key + p ** 2)
                + delta_n(n) * (math.floor(math.log2(q_prev) / r) + 1) * 2 ** r * b_err)

    def q_bfv(n, q_prev):
        if depth == 0:
            return p ** 2 + 2 * p * v_norm(n)
        try:
            q = p ** 2 + 2 * p * (c1(n) ** depth * v_norm(n)
                                  + depth * c1(n) ** (depth - 1) * c2(n, q_prev))
        except OverflowError:
            q = math.inf
        if not math.isfinite(q):
            raise ParameterError(f"modulus bound overflows for depth {depth} at N={n}")
        return q

    def n_rlwe(q):
        if isinstance(security, SecurityLevel):
            dim = std_ring_dim(security, math.ceil(math.log2(q)))
            if dim is None:
                raise ParameterError(
                    f"no standard ring dimension for log2(q)={math.log2(q):.1f} "
                    f"at {security.name}")
            return dim
        return math.log2(q / sigma) / (4 * math.log2(security))

    def converge(n, q_prev):
        q = q_bfv(n, q_prev)
        while abs(q - q_prev) > 0.001 * q:
            q_prev, q = q, q_bfv(n, q)
        return q

    n = MIN_RING_DIM
    q = converge(n, 1e6)
    while n_rlwe(q) > n:
        n *= 2
        q = converge(n, q)
    return n, q


@dataclass(frozen=True)
class BGVParams:
    # The ciphertext ring over which operations are performed
    ring: PolynomialRing
    # Plaintexts are elements mod p
    ring_plain: PolynomialRing
    sigma: float
    relin_window: int = DEFAULT_RELIN_WINDOW

    def __post_init__(self):
        if not self.ring.has_ntt:
            raise ParameterError("ciphertext ring needs a primitive 2N-th root")
        if self.ring.N != self.ring_plain.N:
            raise ParameterError("rings must share the same dimension N")
        _check_plain_modulus(self.p, self.q)
        _check_relin_window(self.relin_window)

    @property
    def n(self):
        return self.ring.N

    @property
    def q(self):
        return self.ring.q

    @property
    def p(self):
        return self.ring_plain.q

    @property
    def n_windows(self):
        return -(-self.q.bit_length() // self.relin_window)

    @classmethod
    def from_moduli(cls, n, q, p, sigma=DEFAULT_SIGMA,
                    relin_window=DEFAULT_RELIN_WINDOW):
        params = cls(
            ring=PolynomialRing(n, q, require_ntt=True),
            ring_plain=PolynomialRing(n, p),
            sigma=sigma,
            relin_window=relin_window,
        )
        logger.info("BGV Parameters: N=%d, p=%d, q~2^%d, window=%d",
                    n, p, q.bit_length(), relin_window)
        return params

    def with_modulus(self, q_new):
        """Same N, p and sigma over a new ciphertext modulus (q_new = q mod p)."""
        if q_new % self.p != self.q % self.p:
            raise ParameterError(
                f"modulus switch needs q' = q mod p, got {q_new % self.p} != {self.q % self.p}")
        return type(self).from_moduli(self.n, q_new, self.p, self.sigma, self.relin_window)

    def is_lower_step(self, other):
        """True when `other` is these parameters over a smaller modulus q' = q mod p."""
        return (isinstance(other, BGVParams)
                and other.n == self.n and other.p == self.p
                and other.sigma == self.sigma and other.relin_window == self.relin_window
                and other.q < self.q and other.q % self.p == self.q % self.p)


def bgv_modulus_chain(n, p, bit_sizes):
    """NTT-friendly primes q_i = 1 mod lcm(2N, p), one per requested size.

    All of them are congruent mod p, so BGV ciphertexts can be switched
    down the chain.
    """
    step = lcm(2 * n, p)
    return [find_ntt_prime((1 << bits) + 1, n, step) for bits in bit_sizes]
