"""
Shared fixtures: small parameter sets and seeded generators.
"""

import numpy as np
import pytest

from toyfhe import BFVParams, BGVParams, bgv_modulus_chain
from toyfhe.primes import ntt_prime_above_bits


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture(scope="session")
def toy_params():
    """N=8, p=2, q a ~20-bit prime with a primitive 16th root of unity."""
    q = ntt_prime_above_bits(20, 8)
    return BFVParams.from_moduli(8, q, 2)


@pytest.fixture(scope="session")
def bfv_params():
    q = ntt_prime_above_bits(80, 16)
    return BFVParams.from_moduli(16, q, 16, relin_window=16)


@pytest.fixture(scope="session")
def bgv_chain():
    return bgv_modulus_chain(16, 17, [60, 40])


@pytest.fixture(scope="session")
def bgv_params(bgv_chain):
    return BGVParams.from_moduli(16, bgv_chain[0], 17, relin_window=8)
