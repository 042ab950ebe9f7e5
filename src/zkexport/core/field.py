from __future__ import annotations
from dataclasses import dataclass

from zkexport.core.errors import ConsistencyError, EncodingError

BN254_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617
FIELD_SIZE = 32  # bytes per BN254 element


def modp(x: int, p: int) -> int:
    return x % p


@dataclass(frozen=True)
class FieldCodec:
    """
    Fixed-width little-endian codec for canonical field elements.
    One instance is shared by the r1cs and wtns encoders so both files agree on n8.
    """
    prime: int = BN254_PRIME
    n8: int = FIELD_SIZE

    def _to_fixed(self, value: int, what: str) -> bytes:
        if value < 0:
            raise EncodingError(f"{what} is negative: {value}")
        if (value.bit_length() + 7) // 8 > self.n8:
            raise EncodingError(
                f"{what} needs {(value.bit_length() + 7) // 8} bytes, field width is {self.n8}"
            )
        return value.to_bytes(self.n8, "little")

    def encode(self, value: int) -> bytes:
        value = int(value)
        if not 0 <= value < self.prime:
            raise EncodingError(f"value {value} is not a canonical element mod {self.prime}")
        return self._to_fixed(value, "field element")

    def encode_prime(self) -> bytes:
        return self._to_fixed(self.prime, "prime modulus")

    def require_prime(self, prime: int) -> None:
        """Refuse to label data from one field with another field's modulus."""
        if prime != self.prime:
            raise ConsistencyError(f"model prime {prime} differs from codec prime {self.prime}")

    def decode(self, data: bytes) -> int:
        if len(data) != self.n8:
            raise EncodingError(f"expected {self.n8} bytes, got {len(data)}")
        return int.from_bytes(data, "little")
