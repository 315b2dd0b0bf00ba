"""
Ring arithmetic tests: NTT multiplication, negacyclic reduction, rounding.
"""

import numpy as np
import pytest

from toyfhe import Modulus, ParameterError, PolynomialRing, ShapeMismatch
from toyfhe.polynomial import digit_decompose, div_round, mul_round, switch_modulus
from toyfhe.primes import find_ntt_prime, ntt_prime_above_bits, primitive_root_2n


def schoolbook(a, b, q):
    n = len(a)
    out = [0] * n
    for i in range(n):
        for j in range(n):
            k = i + j
            if k < n:
                out[k] += a[i] * b[j]
            else:
                out[k - n] -= a[i] * b[j]
    return [x % q for x in out]


class TestPrimes:

    def test_find_ntt_prime(self):
        q = find_ntt_prime(1000, 8)
        assert q >= 1000
        assert (q - 1) % 16 == 0

    def test_primitive_root_order(self):
        q = ntt_prime_above_bits(30, 64)
        psi = primitive_root_2n(q, 64)
        assert pow(psi, 64, q) == q - 1
        assert pow(psi, 128, q) == 1

    def test_no_root(self):
        with pytest.raises(ParameterError):
            primitive_root_2n(101, 8)


class TestModulus:

    def test_to_signed_is_balanced(self):
        m = Modulus(17)
        signed = m.to_signed(np.array([0, 1, 8, 9, 16], dtype=object))
        assert list(signed) == [0, 1, 8, -8, -1]

    def test_even_modulus(self):
        m = Modulus(4)
        assert list(m.to_signed([0, 1, 2, 3])) == [0, 1, 2, -1]

    def test_inverse(self):
        m = Modulus(97)
        assert 5 * m.inverse(5) % 97 == 1


class TestRounding:

    @pytest.mark.parametrize("num,den,expected", [
        (5, 2, 3), (-5, 2, -3), (3, 2, 2), (-3, 2, -2),
        (7, 4, 2), (-1, 4, 0), (-2, 4, -1), (2, 4, 1), (0, 9, 0),
    ])
    def test_half_away_from_zero(self, num, den, expected):
        assert div_round(num, den) == expected

    def test_mul_round_vectorised(self):
        out = mul_round(np.array([-3, -1, 1, 3], dtype=object), 1, 2)
        assert list(out) == [-2, -1, 1, 2]


class TestPolynomialRing:

    @pytest.fixture
    def ring(self):
        return PolynomialRing(16, ntt_prime_above_bits(40, 16), require_ntt=True)

    def test_requires_power_of_two(self):
        with pytest.raises(ParameterError):
            PolynomialRing(12, 97)

    def test_require_ntt(self):
        with pytest.raises(ParameterError):
            PolynomialRing(8, 101, require_ntt=True)
        assert not PolynomialRing(8, 101).has_ntt

    def test_ntt_matches_schoolbook(self, ring, rng):
        a = [int(x) for x in rng.integers(0, ring.q, ring.N)]
        b = [int(x) for x in rng.integers(0, ring.q, ring.N)]
        got = (ring(a) * ring(b)).to_list()
        assert got == schoolbook(a, b, ring.q)

    def test_schoolbook_fallback(self, rng):
        ring = PolynomialRing(8, 256)
        a = [int(x) for x in rng.integers(0, 256, 8)]
        b = [int(x) for x in rng.integers(0, 256, 8)]
        assert (ring(a) * ring(b)).to_list() == schoolbook(a, b, 256)

    def test_negacyclic(self, ring):
        x_top = ring([0] * (ring.N - 1) + [1])
        x = ring([0, 1])
        assert x_top * x == -ring.one()

    def test_wide_modulus(self, rng):
        ring = PolynomialRing(8, ntt_prime_above_bits(130, 8), require_ntt=True)
        a = [ring.q - 1 - i for i in range(8)]
        b = [3 ** 70 + i for i in range(8)]
        assert (ring(a) * ring(b)).to_list() == schoolbook(a, b, ring.q)

    def test_elements_are_immutable(self, ring):
        a = ring([1, 2, 3])
        with pytest.raises(ValueError):
            a.coeffs[0] = 5
        b = a + a
        assert a.to_list()[:3] == [1, 2, 3]
        assert b.to_list()[:3] == [2, 4, 6]

    def test_coeffs_array(self, ring):
        a = ring([1, -1])
        assert isinstance(a.coeffs, np.ndarray)
        assert a.coeffs.dtype == object
        assert a.coeffs.shape == (ring.N,)
        assert a.to_list()[:2] == [1, ring.q - 1]

    def test_scalar_and_negation(self, ring):
        a = ring([1, 2])
        assert (a * 3).to_list()[:2] == [3, 6]
        assert (-a).to_list()[:2] == [ring.q - 1, ring.q - 2]
        assert (1 - a).to_list()[:2] == [0, ring.q - 2]

    def test_power(self, ring):
        a = ring([1, 1])
        assert a ** 0 == ring.one()
        assert a ** 3 == a * a * a

    def test_mixed_rings(self, ring):
        other = PolynomialRing(16, ntt_prime_above_bits(30, 16))
        with pytest.raises(ShapeMismatch):
            ring.one() + other.one()

    def test_too_many_coefficients(self, ring):
        with pytest.raises(ValueError):
            ring(list(range(ring.N + 1)))


class TestModulusSwitch:

    def test_switch_up_and_down(self):
        small = PolynomialRing(8, ntt_prime_above_bits(20, 8))
        big = PolynomialRing(8, ntt_prime_above_bits(60, 8))
        a = small([-5, 3, small.q // 2, -(small.q // 2)])
        up = switch_modulus(a, big)
        assert list(up.signed_coeffs()) == list(a.signed_coeffs())
        assert switch_modulus(up, small) == a

    def test_digit_decompose(self):
        ring = PolynomialRing(8, ntt_prime_above_bits(30, 8))
        a = ring([ring.q - 1, 12345, 7, 0, 1])
        digits = digit_decompose(a, 4, -(-ring.q.bit_length() // 4))
        total = ring.zero()
        for i, d in enumerate(digits):
            assert all(0 <= c < 16 for c in d.to_list())
            total = total + d * (1 << (4 * i))
        assert total == a
