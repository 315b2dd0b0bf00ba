"""
Error / uniform samplers for ring elements.

Every sampler takes an explicit numpy Generator; reusing a generator
seeded the same way reproduces the same draws.
"""

import numpy as np

_INT64_LIMIT = 1 << 63


def _uniform_ints(rng, q, size):
    if q < _INT64_LIMIT:
        return rng.integers(0, q, size=size, dtype=np.int64).astype(object)

    # Wide moduli: rejection sampling over raw bytes
    nbits = q.bit_length()
    nbytes = (nbits + 7) // 8
    excess = nbytes * 8 - nbits
    out = []
    while len(out) < size:
        x = int.from_bytes(rng.bytes(nbytes), "little") >> excess
        if x < q:
            out.append(x)
    return np.array(out, dtype=object)


def sample_uniform(rng, ring):
    """Ring element with coefficients uniform in [0, q)."""
    return ring.element(_uniform_ints(rng, ring.q, ring.N))


class DiscreteGaussian:
    """Rounded normal distribution centred at 0."""

    def __init__(self, sigma, N):
        self.sigma = sigma
        self.N = N

    def sample(self, rng):
        return np.round(rng.normal(0, self.sigma, self.N)).astype(np.int64)

    def sample_poly(self, rng, ring):
        # Negative values map to q - |x|
        return ring.element(self.sample(rng))


def sample_discrete_gaussian(rng, ring, sigma):
    """Ring element with small Gaussian coefficients, reduced mod q."""
    return DiscreteGaussian(sigma, ring.N).sample_poly(rng, ring)
