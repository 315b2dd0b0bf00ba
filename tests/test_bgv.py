"""
BGV Scheme Tests
================
"""

import pytest

from toyfhe import (BGVParams, BGVScheme, CipherText, ParameterError, ShapeMismatch,
                    bgv_modulus_chain)
from toyfhe import bgv_scheme as bgv
from toyfhe.primes import find_ntt_prime


def random_plaintext(rng, params):
    return params.ring_plain([int(x) for x in rng.integers(0, params.p, params.n)])


class TestBGV:

    @pytest.fixture
    def kp(self, bgv_params, rng):
        return bgv.keygen(rng, bgv_params)

    def test_public_key_relation(self, kp, bgv_params):
        # b - a*s is p times a small error
        e = (kp.pub.b - kp.pub.a * kp.priv.secret).signed_coeffs()
        assert all(int(x) % bgv_params.p == 0 for x in e)
        assert max(abs(int(x)) for x in e) < 100 * bgv_params.p

    def test_round_trip(self, kp, bgv_params, rng):
        for _ in range(5):
            m = random_plaintext(rng, bgv_params)
            assert bgv.decrypt(kp, bgv.encrypt(rng, kp, m)) == m

    def test_add_sub(self, kp, bgv_params, rng):
        m1, m2 = random_plaintext(rng, bgv_params), random_plaintext(rng, bgv_params)
        c1, c2 = bgv.encrypt(rng, kp, m1), bgv.encrypt(rng, kp, m2)
        assert bgv.decrypt(kp, bgv.add(c1, c2)) == m1 + m2
        assert bgv.decrypt(kp, bgv.sub(c1, c2)) == m1 - m2

    def test_multiply(self, kp, bgv_params, rng):
        m1, m2 = random_plaintext(rng, bgv_params), random_plaintext(rng, bgv_params)
        product = bgv.multiply(bgv.encrypt(rng, kp, m1), bgv.encrypt(rng, kp, m2))
        assert len(product) == 3
        assert bgv.decrypt(kp, product) == m1 * m2

    def test_relinearize(self, kp, bgv_params, rng):
        ek = bgv.relin_key(rng, kp)
        for _ in range(3):
            m1, m2 = random_plaintext(rng, bgv_params), random_plaintext(rng, bgv_params)
            product = bgv.multiply(bgv.encrypt(rng, kp, m1), bgv.encrypt(rng, kp, m2))
            relin = bgv.relinearize(ek, product)
            assert len(relin) == 2
            assert bgv.decrypt(kp, relin) == m1 * m2

    def test_key_rotation(self, bgv_params, rng):
        old = bgv.keygen(rng, bgv_params)
        new = bgv.keygen(rng, bgv_params)
        ek = bgv.make_eval_key(rng, old.priv.secret, new.priv)
        m = random_plaintext(rng, bgv_params)
        switched = bgv.key_switch(ek, bgv.encrypt(rng, old, m))
        assert bgv.decrypt(new, switched) == m

    def test_multiply_needs_linear_inputs(self, kp, rng):
        ct = bgv.encrypt(rng, kp, 1)
        with pytest.raises(ShapeMismatch):
            bgv.multiply(bgv.multiply(ct, ct), ct)

    def test_key_switch_unsupported_length(self, kp, rng):
        ek = bgv.relin_key(rng, kp)
        ct = bgv.encrypt(rng, kp, 1)
        four = CipherText(ct.params, (ct[0],) * 4)
        with pytest.raises(ShapeMismatch):
            bgv.key_switch(ek, four)


class TestModSwitch:

    @pytest.fixture
    def lower(self, bgv_params, bgv_chain):
        return bgv_params.with_modulus(bgv_chain[1])

    def test_fresh_ciphertext(self, bgv_params, lower, rng):
        kp = bgv.keygen(rng, bgv_params)
        m = random_plaintext(rng, bgv_params)
        switched = bgv.mod_switch(bgv.encrypt(rng, kp, m), lower)
        assert switched.params == lower
        assert bgv.decrypt(bgv.switch_key(kp, lower), switched) == m

    def test_after_multiply(self, bgv_params, lower, rng):
        kp = bgv.keygen(rng, bgv_params)
        ek = bgv.relin_key(rng, kp)
        m1, m2 = random_plaintext(rng, bgv_params), random_plaintext(rng, bgv_params)
        ct = bgv.relinearize(ek, bgv.multiply(bgv.encrypt(rng, kp, m1),
                                               bgv.encrypt(rng, kp, m2)))
        switched = bgv.mod_switch(ct, lower)
        assert bgv.decrypt(bgv.switch_key(kp, lower), switched) == m1 * m2

    def test_wrong_residue(self, bgv_params):
        q = find_ntt_prime(1 << 40, 16)
        while q % 17 == bgv_params.q % 17:
            q = find_ntt_prime(q + 1, 16)
        other = BGVParams.from_moduli(16, q, 17)
        with pytest.raises(ParameterError):
            bgv.mod_switch(CipherText(bgv_params, (bgv_params.ring.one(),) * 2), other)


class TestBGVScheme:

    def test_scheme_flow(self, bgv_params, bgv_chain):
        fhe = BGVScheme(bgv_params, seed=11)
        fhe.key_generation()
        fhe.generate_relin_key()
        ct = fhe.relinearize(fhe.multiply(fhe.encrypt(6), fhe.encrypt(7)))
        assert fhe.decrypt(ct).to_list()[0] == 42 % 17
        assert fhe.decrypt(fhe.sub(fhe.encrypt(3), fhe.encrypt(5))).to_list()[0] == 15

        lower = fhe.mod_switch(ct, bgv_params.with_modulus(bgv_chain[1]))
        assert fhe.decrypt(lower).to_list()[0] == 42 % 17

    def test_ciphertext_from_another_scheme(self, bgv_params):
        fhe = BGVScheme(bgv_params, seed=11)
        fhe.key_generation()
        other = BGVScheme(BGVParams.from_moduli(16, bgv_modulus_chain(16, 257, [60])[0], 257),
                          seed=12)
        other.key_generation()
        with pytest.raises(ShapeMismatch):
            fhe.decrypt(other.encrypt(5))

    def test_ciphertext_above_own_modulus(self, bgv_params, bgv_chain):
        lower = BGVScheme(bgv_params.with_modulus(bgv_chain[1]), seed=11)
        lower.key_generation()
        fhe = BGVScheme(bgv_params, seed=11)
        fhe.key_generation()
        with pytest.raises(ShapeMismatch):
            lower.decrypt(fhe.encrypt(5))
