"""
Key containers shared by the BFV and BGV schemes.
"""

from dataclasses import dataclass
from typing import Any, Tuple

from .polynomial import RingElement


@dataclass(frozen=True)
class PrivateKey:
    params: Any
    secret: RingElement

    def __repr__(self):
        return f"PrivateKey(N={self.params.n}, q~2^{self.params.q.bit_length()})"


@dataclass(frozen=True)
class PublicKey:
    params: Any
    a: RingElement
    b: RingElement


@dataclass(frozen=True)
class EvalKey:
    """Key-switching key, one (a_i, b_i) pair per base-2^r digit.

    `a` holds the masked digit terms, `b` the raw uniform terms.
    """
    params: Any
    a: Tuple[RingElement, ...]
    b: Tuple[RingElement, ...]

    def __len__(self):
        return len(self.a)


@dataclass(frozen=True)
class KeyPair:
    priv: PrivateKey
    pub: PublicKey

    def __repr__(self):
        return "key pair"
