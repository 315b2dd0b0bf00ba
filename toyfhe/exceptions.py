"""
Exception types raised by the toyfhe schemes.

Decryption failures caused by noise overflow are NOT errors: the schemes
return a wrong plaintext and the caller is expected to watch the noise budget.
"""


class FHEError(Exception):
    """Base class for all toyfhe errors."""


class ParameterError(FHEError, ValueError):
    """Invalid scheme parameters (ring, moduli, auxiliary modulus, window)."""


class ShapeMismatch(FHEError, TypeError):
    """Operands built under different parameters, or of unsupported length."""
