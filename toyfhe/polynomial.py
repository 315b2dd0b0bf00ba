"""
Polynomial Ring Operations
Implements polynomial arithmetic in R_q = Z_q[X]/(X^N + 1)

Coefficients are kept in numpy object arrays of Python ints, so the same
code handles the ciphertext ring and the (much wider) auxiliary ring used
during multiplication without 64-bit overflow.
"""

import numpy as np

from .exceptions import ParameterError, ShapeMismatch
from .primes import has_primitive_root_2n, primitive_root_2n


def div_round(num, den):
    """num / den rounded half away from zero, for den > 0."""
    quot, rem = divmod(abs(num), den)
    if 2 * rem >= den:
        quot += 1
    return quot if num >= 0 else -quot


_div_round = np.frompyfunc(div_round, 2, 1)


def mul_round(a, num, den):
    """Coefficient-wise round(a * num / den), half away from zero."""
    return _div_round(np.asarray(a, dtype=object) * num, den)


def _as_object_array(values):
    if isinstance(values, np.ndarray):
        if values.dtype == object:
            return values
        return values.astype(object)
    return np.array([int(v) for v in values], dtype=object)


class Modulus:
    """Arithmetic mod q over object arrays (any width)."""

    def __init__(self, value):
        value = int(value)
        if value < 2:
            raise ParameterError(f"modulus must be >= 2, got {value}")
        self.value = value
        self.half = value // 2

    def reduce(self, a):
        return _as_object_array(a) % self.value

    def add(self, a, b):
        return (a + b) % self.value

    def sub(self, a, b):
        return (a - b) % self.value

    def mul(self, a, b):
        return (a * b) % self.value

    def neg(self, a):
        return (-a) % self.value

    def to_signed(self, a):
        """Balanced representative in (-q/2, q/2]."""
        a = self.reduce(a)
        return np.where(a > self.half, a - self.value, a)

    def inverse(self, x):
        return pow(int(x), -1, self.value)

    def __eq__(self, other):
        return isinstance(other, Modulus) and other.value == self.value

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return f"Modulus({self.value})"


class PolynomialRing:
    """Negacyclic ring Z_q[X]/(X^N + 1).

    Multiplication goes through the NTT when q admits a primitive 2N-th
    root of unity, otherwise through exact schoolbook convolution.
    """

    def __init__(self, N, q, require_ntt=False):
        if N < 1 or N & (N - 1) != 0:
            raise ParameterError(f"N must be a power of 2, got {N}")
        self.N = N
        self.modulus = q if isinstance(q, Modulus) else Modulus(q)
        self.q = self.modulus.value
        self.psi = None
        if has_primitive_root_2n(self.q, N):
            self._setup_ntt()
        elif require_ntt:
            # Raises ParameterError with the reason
            primitive_root_2n(self.q, N)

    @property
    def has_ntt(self):
        return self.psi is not None

    def _setup_ntt(self):
        N, q = self.N, self.q
        psi = primitive_root_2n(q, N)
        psi_inv = self.modulus.inverse(psi)
        omega = psi * psi % q
        omega_inv = self.modulus.inverse(omega)
        n_inv = self.modulus.inverse(N)

        def powers(base, count, scale=1):
            out = []
            x = scale % q
            for _ in range(count):
                out.append(x)
                x = x * base % q
            return np.array(out, dtype=object)

        self.psi = psi
        self._psi_pows = powers(psi, N)
        # N^-1 folded into the untwist
        self._psi_inv_pows = powers(psi_inv, N, n_inv)
        self._omega_pows = powers(omega, max(N // 2, 1))
        self._omega_inv_pows = powers(omega_inv, max(N // 2, 1))

        bits = N.bit_length() - 1
        self._bitrev = np.array(
            [int(format(i, f"0{bits}b")[::-1], 2) if bits else 0 for i in range(N)],
            dtype=np.int64)

    def _ntt(self, a, omega_pows):
        """Iterative cyclic NTT of length N (decimation in time)."""
        N, q = self.N, self.q
        a = a[self._bitrev]
        m = 2
        while m <= N:
            half = m // 2
            w = omega_pows[::N // m][:half]
            blocks = a.reshape(-1, m)
            u = blocks[:, :half]
            v = blocks[:, half:] * w % q
            a = np.concatenate(((u + v) % q, (u - v) % q), axis=1).reshape(-1)
            m *= 2
        return a

    def _mul_ntt(self, a, b):
        mod = self.modulus
        fa = self._ntt(mod.mul(a, self._psi_pows), self._omega_pows)
        fb = self._ntt(mod.mul(b, self._psi_pows), self._omega_pows)
        c = self._ntt(mod.mul(fa, fb), self._omega_inv_pows)
        return mod.mul(c, self._psi_inv_pows)

    def _mul_schoolbook(self, a, b):
        # Standard convolution
        conv = np.convolve(a, b)
        # Negacyclic Reduction (X^N = -1)
        result = conv[:self.N].copy()
        result[:len(conv) - self.N] -= conv[self.N:]
        return result % self.q

    def _check(self, a):
        if not isinstance(a, RingElement):
            raise ShapeMismatch(f"expected RingElement, got {type(a).__name__}")
        if a.ring != self:
            raise ShapeMismatch(f"element of {a.ring!r} used in {self!r}")

    def element(self, values):
        """Build an element from an int (constant), a sequence or an array."""
        if isinstance(values, RingElement):
            self._check(values)
            return values
        if isinstance(values, (int, np.integer)):
            coeffs = np.zeros(self.N, dtype=object)
            coeffs[0] = int(values)
        else:
            coeffs = _as_object_array(values)
            if coeffs.ndim != 1 or len(coeffs) > self.N:
                raise ValueError(
                    f"expected at most {self.N} coefficients, got shape {coeffs.shape}")
            if len(coeffs) < self.N:
                coeffs = np.concatenate(
                    (coeffs, np.zeros(self.N - len(coeffs), dtype=object)))
        return RingElement(self, coeffs % self.q)

    __call__ = element

    def zero(self):
        return RingElement(self, np.zeros(self.N, dtype=object))

    def one(self):
        return self.element(1)

    def add(self, a, b):
        self._check(a)
        self._check(b)
        return RingElement(self, self.modulus.add(a._coeffs, b._coeffs))

    def sub(self, a, b):
        self._check(a)
        self._check(b)
        return RingElement(self, self.modulus.sub(a._coeffs, b._coeffs))

    def neg(self, a):
        self._check(a)
        return RingElement(self, self.modulus.neg(a._coeffs))

    def mul_scalar(self, a, scalar):
        self._check(a)
        return RingElement(self, self.modulus.mul(a._coeffs, int(scalar)))

    def mul(self, a, b):
        """Multiply two polynomials in R_q."""
        self._check(a)
        self._check(b)
        if self.has_ntt:
            coeffs = self._mul_ntt(a._coeffs, b._coeffs)
        else:
            coeffs = self._mul_schoolbook(a._coeffs, b._coeffs)
        return RingElement(self, coeffs)

    def __eq__(self, other):
        return (isinstance(other, PolynomialRing)
                and other.N == self.N and other.q == self.q)

    def __hash__(self):
        return hash((self.N, self.q))

    def __repr__(self):
        return f"PolynomialRing(N={self.N}, q={self.q})"


class RingElement:
    """Immutable element of a PolynomialRing. Operations return new elements."""

    __slots__ = ("ring", "_coeffs")

    def __init__(self, ring, coeffs):
        coeffs = np.array(coeffs, dtype=object)
        coeffs.flags.writeable = False
        self.ring = ring
        self._coeffs = coeffs

    @property
    def coeffs(self):
        """Read-only view of the coefficients in [0, q)."""
        return self._coeffs

    def signed_coeffs(self):
        return self.ring.modulus.to_signed(self._coeffs)

    def to_list(self):
        return [int(c) for c in self._coeffs]

    def lift(self, ring):
        """Embed coefficient-wise ([0, q) representatives) into another ring."""
        if ring.N != self.ring.N:
            raise ShapeMismatch(f"cannot lift N={self.ring.N} into N={ring.N}")
        return ring.element(self._coeffs)

    def __add__(self, other):
        if isinstance(other, (int, np.integer)):
            other = self.ring.element(other)
        elif not isinstance(other, RingElement):
            return NotImplemented
        return self.ring.add(self, other)

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, (int, np.integer)):
            other = self.ring.element(other)
        elif not isinstance(other, RingElement):
            return NotImplemented
        return self.ring.sub(self, other)

    def __rsub__(self, other):
        if not isinstance(other, (int, np.integer)):
            return NotImplemented
        return self.ring.sub(self.ring.element(other), self)

    def __mul__(self, other):
        if isinstance(other, (int, np.integer)):
            return self.ring.mul_scalar(self, other)
        if not isinstance(other, RingElement):
            return NotImplemented
        return self.ring.mul(self, other)

    __rmul__ = __mul__

    def __neg__(self):
        return self.ring.neg(self)

    def __pow__(self, k):
        if not isinstance(k, int) or k < 0:
            raise ValueError(f"exponent must be a non-negative int, got {k!r}")
        result = self.ring.one()
        base = self
        while k:
            if k & 1:
                result = result * base
            base = base * base
            k >>= 1
        return result

    def __eq__(self, other):
        return (isinstance(other, RingElement) and other.ring == self.ring
                and bool(np.all(other._coeffs == self._coeffs)))

    def __hash__(self):
        return hash((self.ring, tuple(self.to_list())))

    def __repr__(self):
        head = self.to_list()[:4]
        more = ", ..." if self.ring.N > 4 else ""
        return f"RingElement({head}{more} mod {self.ring.q})"


def digit_decompose(a, window, count):
    """Split `a` into `count` elements of base-2^window digits.

    Element i collects digit i of every coefficient, so that
    sum(d_i * 2^(i*window)) == a.
    """
    mask = (1 << window) - 1
    coeffs = a.coeffs
    return [a.ring.element((coeffs >> (i * window)) & mask) for i in range(count)]


def switch_modulus(a, ring):
    """Move `a` into `ring` through its balanced representative.

    Used both to lift ciphertexts into the auxiliary ring before the tensor
    product and to bring rescaled components back down.
    """
    if a.ring.N != ring.N:
        raise ShapeMismatch(f"cannot switch N={a.ring.N} into N={ring.N}")
    return ring.element(a.signed_coeffs())
