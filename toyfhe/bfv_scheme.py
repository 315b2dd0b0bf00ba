"""
BFV (Brakerski-Fan-Vercauteren) Encryption Scheme

Scale-invariant scheme: plaintexts are carried in the high bits of the
ciphertext (scaled by delta = floor(q/p)). Multiplication computes the
exact tensor product in an auxiliary ring and rescales by p/q.
"""

import logging
import math

import numpy as np

from .ciphertext import CipherText, check_same_params
from .exceptions import ShapeMismatch
from .keys import EvalKey, KeyPair, PrivateKey, PublicKey
from .params import BFVParams
from .polynomial import RingElement, digit_decompose, mul_round, switch_modulus
from .sampling import sample_discrete_gaussian, sample_uniform

logger = logging.getLogger(__name__)


def _gaussian(rng, params):
    return sample_discrete_gaussian(rng, params.ring, params.sigma)


def _priv(key):
    return key.priv if isinstance(key, KeyPair) else key


def _pub(key):
    return key.pub if isinstance(key, KeyPair) else key


def _check_key(key, ct):
    if key.params != ct.params:
        raise ShapeMismatch("key and ciphertext were built under different parameters")


def keygen(rng, params):
    ring = params.ring
    a = sample_uniform(rng, ring)
    s = _gaussian(rng, params)
    e = _gaussian(rng, params)

    # b = -(as + e)
    logger.debug("generated BFV key pair (N=%d)", ring.N)
    return KeyPair(PrivateKey(params, s), PublicKey(params, a, -(a * s + e)))


def make_eval_key(rng, old, new_key):
    """Key-switching key from `old` (a secret, or s^2) to `new_key`.

    For each digit position i: a_i = old * 2^(i*r) - a'_i * s_new - e_i and
    b_i = a'_i, with a'_i uniform and e_i Gaussian.
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
        eval_a.append(digit - (a * new_key.secret + e))
        digit = digit * base

    logger.debug("generated eval key with %d digits of %d bits",
                 len(eval_a), params.relin_window)
    return EvalKey(params, tuple(eval_a), tuple(eval_b))


def relin_key(rng, priv):
    """Eval key from s^2 to s, used to relinearize products."""
    priv = _priv(priv)
    return make_eval_key(rng, priv.secret ** 2, priv)


def plaintext(params, value):
    """Coerce an int, a coefficient sequence or a ring element to the plaintext ring."""
    if isinstance(value, RingElement):
        if value.ring != params.ring_plain:
            raise ShapeMismatch("plaintext does not live in the plaintext ring")
        return value
    return params.ring_plain.element(value)


def embed(params, value):
    """Lift a plaintext coefficient-wise into the ciphertext ring."""
    return plaintext(params, value).lift(params.ring)


def encrypt(rng, key, value):
    key = _pub(key)
    params = key.params

    u = _gaussian(rng, params)
    e1 = _gaussian(rng, params)
    e2 = _gaussian(rng, params)

    # c1 = b*u + e1 + delta*m
    c1 = key.b * u + e1 + embed(params, value) * params.delta
    # c2 = a*u + e2
    c2 = key.a * u + e2

    return CipherText(params, (c1, c2))


def decrypt_raw(key, ct):
    """Phase c_1 + s*c_2 + s^2*c_3 + ... over the ciphertext ring."""
    key = _priv(key)
    _check_key(key, ct)
    s = key.secret

    b = ct[0]
    spow = s
    for i, c in enumerate(ct[1:]):
        b = b + spow * c
        if i + 2 < len(ct):
            spow = spow * s
    return b


def decrypt(key, ct):
    """Decrypt to a plaintext ring element.

    Never fails: a ciphertext whose noise exceeded the budget silently
    decrypts to a wrong plaintext.
    """
    key = _priv(key)
    params = key.params
    b = decrypt_raw(key, ct)

    # Scale: round(b * p / q) on the balanced representative
    scaled = mul_round(b.signed_coeffs(), params.p, params.q)
    return params.ring_plain.element(scaled % params.p)


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


def negate(ct):
    return CipherText(ct.params, tuple(-c for c in ct))


def add_plain(ct, value):
    params = ct.params
    c0 = ct[0] + embed(params, value) * params.delta
    return CipherText(params, (c0,) + tuple(ct[1:]))


def multiply_plain(ct, value):
    params = ct.params
    # Balanced lift keeps the noise growth at |m|
    m = switch_modulus(plaintext(params, value), params.ring)
    return CipherText(params, tuple(c * m for c in ct))


def mod_switch_up(params, a):
    """Ciphertext ring -> auxiliary ring."""
    return switch_modulus(a, params.ring_big)


def mod_switch_down(params, a):
    """Auxiliary ring -> ciphertext ring."""
    return switch_modulus(a, params.ring)


def _rescale(params, c):
    # round(c * p / q) on the signed value, then back to R_q
    scaled = mul_round(c.signed_coeffs(), params.p, params.q)
    return mod_switch_down(params, params.ring_big.element(scaled))


def multiply(ct1, ct2):
    """Homomorphic multiplication (tensor product, rescale by p/q).

    Two linear inputs give a 3-component ciphertext that should be
    relinearized before further operations.
    """
    params = check_same_params(ct1, ct2)
    # Tensor coefficients reach min(L1, L2) * N * q^2 / 4 and must stay below q_big / 2
    if min(len(ct1), len(ct2)) * params.n * params.q ** 2 >= 2 * params.q_big:
        raise ShapeMismatch(
            f"auxiliary modulus too small for a {len(ct1)}x{len(ct2)} component product")

    c1 = [mod_switch_up(params, c) for c in ct1]
    c2 = [mod_switch_up(params, c) for c in ct2]

    out = [params.ring_big.zero() for _ in range(len(c1) + len(c2) - 1)]
    for i, x in enumerate(c1):
        for j, y in enumerate(c2):
            out[i + j] = out[i + j] + x * y

    logger.debug("multiplied ciphertexts of size %d and %d", len(c1), len(c2))
    return CipherText(params, tuple(_rescale(params, c) for c in out))


def key_switch(ek, ct):
    """Switch the last component of `ct` through the eval key.

    Accepts 2- or 3-component ciphertexts, returns a 2-component one.
    """
    params = ek.params
    _check_key(ek, ct)
    if len(ct) not in (2, 3):
        raise ShapeMismatch(f"key switch needs 2 or 3 components, got {len(ct)}")

    c1 = ct[0]
    c2 = ct[1] if len(ct) == 3 else params.ring.zero()

    digits = digit_decompose(ct[-1], params.relin_window, len(ek))
    for a_i, b_i, d_i in zip(ek.a, ek.b, digits):
        c1 = c1 + a_i * d_i
        c2 = c2 + b_i * d_i

    logger.debug("key switched ciphertext of size %d", len(ct))
    return CipherText(params, (c1, c2))


def relinearize(ek, ct):
    if ct.is_linear:
        return ct
    return key_switch(ek, ct)


def invariant_noise_budget(key, ct):
    """Invariant noise budget, -log2(2||v||) = log2(q) - log2(p) - 1 - max_i log2(|v_i|).

    If this quantity is > 0 the ciphertext is expected to decrypt correctly
    with high probability. The notion comes from the SEAL library, see
    Costache, Laine and Player, "Homomorphic noise growth in practice:
    comparing BGV and FV" (https://eprint.iacr.org/2019/493.pdf).
    """
    key = _priv(key)
    params = key.params
    b = decrypt_raw(key, ct)
    delta = params.delta

    worst = 0
    for x in b.coeffs:
        r = x % delta
        if r > delta // 2:
            r = delta - r
        worst = max(worst, r)
    if worst == 0:
        return math.inf

    return (math.log2(params.q) - math.log2(params.p) - 1
            - math.log2(worst))


noise_budget = invariant_noise_budget


class BFVScheme:
    """Stateful wrapper: owns the keys and the random generator."""

    def __init__(self, params, seed=None):
        self.params = params
        self.rng = np.random.default_rng(seed)
        self.secret_key = None
        self.public_key = None
        self.relin_key = None

    @classmethod
    def generate(cls, t, eval_mult_count=1, seed=None, **kwargs):
        return cls(BFVParams.generate(t, eval_mult_count=eval_mult_count, **kwargs), seed)

    @property
    def t(self):
        return self.params.p

    def key_generation(self):
        kp = keygen(self.rng, self.params)
        self.secret_key, self.public_key = kp.priv, kp.pub
        return self.secret_key, self.public_key

    def generate_relin_key(self):
        if self.secret_key is None:
            raise ValueError("Keys not generated")
        self.relin_key = relin_key(self.rng, self.secret_key)
        return self.relin_key

    def encode(self, values):
        if isinstance(values, (int, np.integer)):
            values = [values]
        return plaintext(self.params, [int(v) % self.t for v in values])

    def decode(self, pt, num_values=None, centered=False):
        coeffs = pt.signed_coeffs() if centered else pt.coeffs
        values = [int(c) for c in coeffs]
        return values if num_values is None else values[:num_values]

    def encrypt(self, pt):
        if self.public_key is None:
            raise ValueError("No Public Key")
        return encrypt(self.rng, self.public_key, pt)

    def decrypt(self, ct):
        if self.secret_key is None:
            raise ValueError("No Secret Key")
        return decrypt(self.secret_key, ct)

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

    def noise_budget(self, ct):
        if self.secret_key is None:
            raise ValueError("No Secret Key")
        return invariant_noise_budget(self.secret_key, ct)
