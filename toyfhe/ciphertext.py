"""
Ciphertext container.

A ciphertext is a tuple of 2 (linear) or 3 (after multiplication, before
relinearization) ring elements over the ciphertext ring of its parameters.
"""

from dataclasses import dataclass
from typing import Any, Tuple

from .exceptions import ShapeMismatch
from .polynomial import RingElement


@dataclass(frozen=True)
class CipherText:
    params: Any
    components: Tuple[RingElement, ...]

    def __post_init__(self):
        components = tuple(self.components)
        if len(components) < 2:
            raise ShapeMismatch(f"ciphertext needs at least 2 components, got {len(components)}")
        for c in components:
            if not isinstance(c, RingElement) or c.ring != self.params.ring:
                raise ShapeMismatch("ciphertext components must live in the ciphertext ring")
        object.__setattr__(self, "components", components)

    @property
    def size(self):
        return len(self.components)

    @property
    def is_linear(self):
        return len(self.components) == 2

    def __len__(self):
        return len(self.components)

    def __getitem__(self, i):
        return self.components[i]

    def __iter__(self):
        return iter(self.components)

    def __repr__(self):
        return f"CipherText(size={self.size}, N={self.params.n}, q~2^{self.params.q.bit_length()})"


def check_same_params(*cts):
    """Raise ShapeMismatch unless every ciphertext shares the same params."""
    first = cts[0].params
    for ct in cts[1:]:
        if ct.params != first:
            raise ShapeMismatch("ciphertexts were built under different parameters")
    return first
