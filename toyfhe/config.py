"""
Default scheme constants and security tables.

The ring dimension tables follow the Homomorphic Encryption Standard
(error distribution, classical attacks): for each ring dimension n, the
largest log2(q) that still reaches the security level.
"""

import math
from enum import Enum

# Error width used by PALISADE / SEAL
DEFAULT_SIGMA = 8 / math.sqrt(2 * math.pi)
# Number of standard deviations for the error bound B_err = sigma * sqrt(alpha)
DEFAULT_ALPHA = 9
DEFAULT_RELIN_WINDOW = 1
# Smallest ring dimension considered by the parameter generator
MIN_RING_DIM = 512


class SecurityLevel(Enum):
    HEStd_128_classic = 128
    HEStd_192_classic = 192
    HEStd_256_classic = 256


# n -> max log2(q)
STD_RING_DIMS = {
    SecurityLevel.HEStd_128_classic: {
        1024: 29, 2048: 56, 4096: 111, 8192: 220, 16384: 440, 32768: 883,
    },
    SecurityLevel.HEStd_192_classic: {
        1024: 21, 2048: 39, 4096: 77, 8192: 153, 16384: 305, 32768: 612,
    },
    SecurityLevel.HEStd_256_classic: {
        1024: 16, 2048: 31, 4096: 60, 8192: 120, 16384: 239, 32768: 478,
    },
}


def std_ring_dim(security, log_q):
    """Smallest standard ring dimension reaching `security` for a log2(q) modulus.

    Returns None when no tabulated dimension is large enough.
    """
    table = STD_RING_DIMS[security]
    for n in sorted(table):
        if log_q <= table[n]:
            return n
    return None
