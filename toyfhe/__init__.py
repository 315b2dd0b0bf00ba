"""
toyfhe: RLWE homomorphic encryption (BFV and BGV) over negacyclic rings.
"""

from .bfv_scheme import BFVScheme
from .bgv_scheme import BGVScheme
from .ciphertext import CipherText
from .config import SecurityLevel
from .exceptions import FHEError, ParameterError, ShapeMismatch
from .keys import EvalKey, KeyPair, PrivateKey, PublicKey
from .params import BFVParams, BGVParams, bgv_modulus_chain
from .polynomial import Modulus, PolynomialRing, RingElement

__version__ = "0.1.0"

__all__ = [
    "BFVParams", "BFVScheme", "BGVParams", "BGVScheme", "CipherText",
    "EvalKey", "FHEError", "KeyPair", "Modulus", "ParameterError",
    "PolynomialRing", "PrivateKey", "PublicKey", "RingElement",
    "SecurityLevel", "ShapeMismatch", "bgv_modulus_chain",
]
