"""
Chain address primitives: format validation, canonical 20-byte addresses
and EIP-55 checksum rendering.
"""
from eth_utils import is_hex_address, to_checksum_address as _eth_checksum

from .errors import InvalidAddressError

ADDRESS_LENGTH = 20
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def validate_address(s: str) -> None:
    """
    Raises InvalidAddressError if s is not a well-formed chain address.

    An optional 0x/0X prefix followed by exactly 40 hex characters. Letter
    casing is not checked against the EIP-55 checksum.
    """
    if not is_hex_address(s):
        raise InvalidAddressError(
            s, f"address '{s}' is not a valid ethereum hex address"
        )


class Address:
    """
    A fixed-width 20-byte account address.

    Two addresses are equal when their bytes are equal, whatever letter
    casing the strings they were parsed from used.
    """
    __slots__ = ('_raw',)

    def __init__(self, raw: bytes):
        if len(raw) != ADDRESS_LENGTH:
            raise ValueError(
                f"Address must be {ADDRESS_LENGTH} bytes, got {len(raw)}"
            )
        self._raw = bytes(raw)

    @classmethod
    def from_bytes(cls, b: bytes) -> 'Address':
        """
        Build an address from arbitrary bytes.

        Longer input keeps its rightmost 20 bytes, shorter input is
        left-padded with zeros.
        """
        if len(b) > ADDRESS_LENGTH:
            b = b[-ADDRESS_LENGTH:]
        return cls(bytes(ADDRESS_LENGTH - len(b)) + bytes(b))

    def to_bytes(self) -> bytes:
        return self._raw

    def hex(self) -> str:
        """EIP-55 checksummed rendering."""
        return _eth_checksum('0x' + self._raw.hex())

    def __eq__(self, other):
        if not isinstance(other, Address):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self):
        return hash(self._raw)

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"Address({self.hex()})"


def _decode_hex(s: str) -> bytes:
    # Stops at the first pair that is not valid hex and keeps what came before.
    out = bytearray()
    for i in range(0, len(s), 2):
        pair = s[i:i + 2]
        if not all(c in HEX_DIGITS for c in pair):
            break
        out.append(int(pair, 16))
    return bytes(out)


def hex_to_address(s: str) -> Address:
    """
    Convert a hex string to its canonical address.

    The conversion never fails: callers that need strict parsing run
    validate_address first.
    """
    if s[:2] in ('0x', '0X'):
        s = s[2:]
    if len(s) % 2 == 1:
        s = '0' + s
    return Address.from_bytes(_decode_hex(s))


def to_checksum_address(s: str) -> str:
    """Checksummed rendering of a hex address string."""
    return hex_to_address(s).hex()
