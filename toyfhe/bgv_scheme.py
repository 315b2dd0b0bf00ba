"""
BGV (Brakerski-Gentry-Vaikuntanathan) Encryption Scheme

Plaintexts sit in the low bits: the error is scaled by p and decryption
reduces the phase c0 - s*c1 mod p directly. Multiplication does not
rescale; noise is brought back down with mod_switch between products.
"""

import logging

import numpy as np

from .ciphertext import CipherText, check_same_params
from .exceptions import ParameterError, ShapeMismatch
from .keys import EvalKey, KeyPair, PrivateKey, PublicKey
from .polynomial import RingElement, digit_decompose, div_round, switch_modulus
from .sampling import sample_discrete_gaussian, sample_uniform

logger = logging.getLogger(__name__)


def _gaussian(rng, params):
    return sample_discrete_gaussian(rng, params.ring, params.sigma)


def _priv(key):
    return key.priv if isinstance(key, KeyPair) else key


def _pub(key):
    return key.pub if isinstance(key, KeyPair) else key


def keygen(rng, params):
    ring = params.ring
    a = sample_uniform(rng, ring)
    s = _gaussian(rng, params)
    e = _gaussian(rng, params)

    b = a * s + e * params.p

    logger.debug("generated BGV key pair (N=%d)", ring.N)
    return KeyPair(PrivateKey(params, s), PublicKey(params, a, b))


def _embed(params, value):
    if isinstance(value, RingElement):
        if value.ring != params.ring_plain:
            raise ShapeMismatch("plaintext does not live in the plaintext ring")
    else:
        value = params.ring_plain.element(value)
    return value.lift(params.ring)


def encrypt(rng, key, value):
    key = _pub(key)
    params = key.params

    v = _gaussian(rng, params)
    e0 = _gaussian(rng, params)
    e1 = _gaussian(rng, params)

    c0 = key.b * v + e0 * params.p + _embed(params, value)
    c1 = key.a * v + e1 * params.p
    return CipherText(params, (c0, c1))


def phase(key, ct):
    """c0 - s*c1 for linear ciphertexts, c0 - s*c1 - s^2*c2 for products."""
    key = _priv(key)
    if key.params != ct.params:
        raise ShapeMismatch("key and ciphertext were built under different parameters")
    if len(ct) not in (2, 3):
        raise ShapeMismatch(f"BGV decrypt needs 2 or 3 components, got {len(ct)}")
    s = key.secret
    b = ct[0] - s * ct[1]
    if len(ct) == 3:
        b = b - s * s * ct[2]
    return b


def decrypt(key, ct):
    key = _priv(key)
    params = key.params
    b = phase(key, ct)
    return params.ring_plain.element(b.signed_coeffs() % params.p)


def add(ct1, ct2):
    params = check_same_params(ct1, ct2)
    n = max(len(ct1), len(ct2))
    return CipherText(params, tuple(
        ct2[i] if i >= len(ct1) else
        ct1[i] if i >= len(ct2) else
        ct1[i] + ct2[i]
        for i in range(n)))


def sub(ct1, ct2):
    params = check_same_params(ct1, ct2)
    n = max(len(ct1), len(ct2))
    return CipherText(params, tuple(
        -ct2[i] if i >= len(ct1) else
        ct1[i] if i >= len(ct2) else
        ct1[i] - ct2[i]
        for i in range(n)))


def multiply(ct1, ct2):
    """(c0*d0, c0*d1 + c1*d0, -c1*d1); noise grows multiplicatively."""
    params = check_same_params(ct1, ct2)
    if not (ct1.is_linear and ct2.is_linear):
        raise ShapeMismatch("BGV multiply needs two linear ciphertexts")
    c0, c1 = ct1
    d0, d1 = ct2
    logger.debug("multiplied BGV ciphertexts")
    return CipherText(params, (c0 * d0, c0 * d1 + c1 * d0, -(c1 * d1)))


def make_eval_key(rng, old, new_key):
    """Key-switching key from `old` to `new_key`.

    a_i = b_i * s_new + p * e_i - old * 2^(i*r), b_i uniform, so that
    sum_i d_i * (a_i - s_new * b_i) = -old * x + p * (small) when the d_i are
    the base-2^r digits of x.
    """
    params = new_key.params
    ring = params.ring
    if not isinstance(old, RingElement) or old.ring != ring:
        raise ShapeMismatch("old secret must live in the ciphertext ring")

    base = 1 << params.relin_window
    eval_a = []
    eval_b = []
    digit = old
    for _ in range(params.n_windows):
        a = sample_uniform(rng, ring)
        e = _gaussian(rng, params)
        eval_b.append(a)
        eval_a.append(a * new_key.secret + e * params.p - digit)
        digit = digit * base

    logger.debug("generated BGV eval key with %d digits", len(eval_a))
    return EvalKey(params, tuple(eval_a), tuple(eval_b))


def relin_key(rng, priv):
    priv = _priv(priv)
    return make_eval_key(rng, priv.secret ** 2, priv)


def key_switch(ek, ct):
    """Fold the last component of `ct` into a linear ciphertext.

    For a product (x0, x1, x2) and a key from s^2 this relinearizes; for a
    linear (x0, x1) and a key from another secret it rotates the key.
    """
    params = ek.params
    if ek.params != ct.params:
        raise ShapeMismatch("eval key and ciphertext were built under different parameters")
    if len(ct) not in (2, 3):
        raise ShapeMismatch(f"key switch needs 2 or 3 components, got {len(ct)}")

    c0 = ct[0]
    c1 = ct[1] if len(ct) == 3 else params.ring.zero()

    digits = digit_decompose(ct[-1], params.relin_window, len(ek))
    for a_i, b_i, d_i in zip(ek.a, ek.b, digits):
        c0 = c0 + a_i * d_i
        c1 = c1 + b_i * d_i

    logger.debug("key switched BGV ciphertext of size %d", len(ct))
    return CipherText(params, (c0, c1))


def relinearize(ek, ct):
    if ct.is_linear:
        return ct
    return key_switch(ek, ct)


def _scale_coeff(x, q, q_new, p):
    # Closest integer to x*q'/q that is congruent to x mod p
    y = div_round(x * q_new, q)
    d = (x - y) % p
    if d > p // 2:
        d -= p
    return y + d


_scale = np.frompyfunc(_scale_coeff, 4, 1)


def mod_switch(ct, new_params):
    """Move `ct` to a smaller modulus q' = q mod p, shrinking its noise by q'/q."""
    params = ct.params
    if new_params.n != params.n or new_params.p != params.p:
        raise ParameterError("modulus switch needs identical N and p")
    if new_params.q % params.p != params.q % params.p:
        raise ParameterError("modulus switch needs q' = q mod p")

    out = []
    for c in ct:
        scaled = _scale(c.signed_coeffs(), params.q, new_params.q, params.p)
        out.append(new_params.ring.element(scaled))

    logger.debug("switched modulus 2^%d -> 2^%d",
                 params.q.bit_length(), new_params.q.bit_length())
    return CipherText(new_params, tuple(out))


def switch_key(priv, new_params):
    """The same secret, viewed over the ring of `new_params`."""
    priv = _priv(priv)
    return PrivateKey(new_params, switch_modulus(priv.secret, new_params.ring))


class BGVScheme:
    """Stateful wrapper: owns the keys and the random generator."""

    def __init__(self, params, seed=None):
        self.params = params
        self.rng = np.random.default_rng(seed)
        self.secret_key = None
        self.public_key = None
        self.relin_key = None

    def key_generation(self):
        kp = keygen(self.rng, self.params)
        self.secret_key, self.public_key = kp.priv, kp.pub
        return self.secret_key, self.public_key

    def generate_relin_key(self):
        if self.secret_key is None:
            raise ValueError("Keys not generated")
        self.relin_key = relin_key(self.rng, self.secret_key)
        return self.relin_key

    def encrypt(self, value):
        if self.public_key is None:
            raise ValueError("No Public Key")
        return encrypt(self.rng, self.public_key, value)

    def decrypt(self, ct):
        if self.secret_key is None:
            raise ValueError("No Secret Key")
        key = self.secret_key
        if ct.params != self.params:
            if not self.params.is_lower_step(ct.params):
                raise ShapeMismatch("ciphertext was not built under this scheme's modulus chain")
            # Ciphertext was switched down the modulus chain
            key = switch_key(key, ct.params)
        return decrypt(key, ct)

    def add(self, ct1, ct2):
        return add(ct1, ct2)

    def sub(self, ct1, ct2):
        return sub(ct1, ct2)

    def multiply(self, ct1, ct2):
        return multiply(ct1, ct2)

    def relinearize(self, ct):
        if self.relin_key is None:
            raise ValueError("Relinearization key not generated")
        return relinearize(self.relin_key, ct)

    def mod_switch(self, ct, new_params):
        return mod_switch(ct, new_params)
