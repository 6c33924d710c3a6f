"""Standard wallet addresses: base58 decoding, encoding and key validation."""

from __future__ import annotations

from functools import total_ordering

from Crypto.Hash import keccak

from p2pool.common import HASH_SIZE, U64_MAX, Hash, NetworkType

ADDRESS_LENGTH = 95

# Only regular addresses are accepted: no integrated addresses, no subaddresses.
_PREFIX_BY_NETWORK = {
    NetworkType.MAINNET: 18,
    NetworkType.TESTNET: 53,
    NetworkType.STAGENET: 24,
}
_NETWORK_BY_PREFIX = {prefix: net for net, prefix in _PREFIX_BY_NETWORK.items()}

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_REVERSE_ALPHABET = {ch: i for i, ch in enumerate(_ALPHABET)}
_BASE = len(_ALPHABET)

_FULL_BLOCK_CHARS = 11
_FULL_BLOCK_BYTES = 8
_BYTES_FOR_CHARS = {0: 0, 2: 1, 3: 2, 5: 3, 6: 4, 7: 5, 9: 6, 10: 7, 11: 8}
_CHARS_FOR_BYTES = {v: k for k, v in _BYTES_FOR_CHARS.items()}

_CHECKSUM_SIZE = 4
_PAYLOAD_SIZE = 1 + HASH_SIZE * 2

# Ed25519 curve parameters
_P = 2**255 - 19
_D = (-121665 * pow(121666, -1, _P)) % _P
_SQRT_M1 = pow(2, (_P - 1) // 4, _P)


def keccak256(data: bytes) -> bytes:
    """Original Keccak-256 (not SHA3-256) digest of ``data``."""
    digest = keccak.new(digest_bits=256)
    digest.update(bytes(data))
    return digest.digest()


def is_valid_point(key: Hash | bytes) -> bool:
    """True if ``key`` decompresses to a point on the Ed25519 curve."""
    raw = key.h if isinstance(key, Hash) else bytes(key)
    if len(raw) != HASH_SIZE:
        return False

    y = int.from_bytes(raw, "little") & ((1 << 255) - 1)
    sign = raw[31] >> 7
    if y >= _P:
        return False

    u = (y * y - 1) % _P
    v = (_D * y * y + 1) % _P
    x = u * pow(v, 3, _P) * pow(u * pow(v, 7, _P), (_P - 5) // 8, _P) % _P

    vxx = v * x * x % _P
    if vxx != u:
        if vxx != (-u) % _P:
            return False
        x = x * _SQRT_M1 % _P

    if (x & 1) != sign and x == 0:
        return False
    return True


@total_ordering
class Wallet:
    """A wallet identified by its spend and view public keys."""

    ADDRESS_LENGTH = ADDRESS_LENGTH

    def __init__(self, address: str | None) -> None:
        self.prefix = 0
        self.spend_public_key = Hash()
        self.view_public_key = Hash()
        self.checksum = 0
        self.network_type = NetworkType.INVALID
        self.decode(address)

    def valid(self) -> bool:
        return self.network_type != NetworkType.INVALID

    def decode(self, address: str | None) -> bool:
        """Decode a base58 address; return whether the result is a valid wallet."""
        self.network_type = NetworkType.INVALID

        if address is None or len(address) != ADDRESS_LENGTH:
            return False

        data = bytearray()
        for start in range(0, ADDRESS_LENGTH, _FULL_BLOCK_CHARS):
            chunk = address[start:start + _FULL_BLOCK_CHARS]
            num = 0
            for ch in chunk:
                digit = _REVERSE_ALPHABET.get(ch)
                if digit is None:
                    return False
                num = num * _BASE + digit
            if num > U64_MAX:
                return False
            nbytes = _BYTES_FOR_CHARS[len(chunk)]
            data += (num & ((1 << (8 * nbytes)) - 1)).to_bytes(nbytes, "big")

        self.prefix = data[0]
        network = _NETWORK_BY_PREFIX.get(self.prefix)
        if network is None:
            return False
        self.network_type = network

        self.spend_public_key = Hash(bytes(data[1:1 + HASH_SIZE]))
        self.view_public_key = Hash(bytes(data[1 + HASH_SIZE:_PAYLOAD_SIZE]))
        checksum_bytes = bytes(data[_PAYLOAD_SIZE:_PAYLOAD_SIZE + _CHECKSUM_SIZE])
        self.checksum = int.from_bytes(checksum_bytes, "little")

        if keccak256(bytes(data[:_PAYLOAD_SIZE]))[:_CHECKSUM_SIZE] != checksum_bytes:
            self.network_type = NetworkType.INVALID

        if not (is_valid_point(self.spend_public_key) and is_valid_point(self.view_public_key)):
            self.network_type = NetworkType.INVALID

        return self.valid()

    def assign(self, spend_pub_key: Hash, view_pub_key: Hash, network_type: NetworkType) -> bool:
        """Set the wallet from its public keys; False if a key is not a curve point."""
        if not (is_valid_point(spend_pub_key) and is_valid_point(view_pub_key)):
            return False

        self.prefix = _PREFIX_BY_NETWORK.get(network_type, 0)
        self.spend_public_key = spend_pub_key
        self.view_public_key = view_pub_key

        payload = bytes([self.prefix & 0xFF]) + spend_pub_key.h + view_pub_key.h
        self.checksum = int.from_bytes(keccak256(payload)[:_CHECKSUM_SIZE], "little")
        self.network_type = network_type
        return True

    def encode(self) -> str:
        """Return the 95-character base58 address."""
        data = (
            bytes([self.prefix & 0xFF])
            + self.spend_public_key.h
            + self.view_public_key.h
            + (self.checksum & 0xFFFFFFFF).to_bytes(_CHECKSUM_SIZE, "little")
        )
        out = []
        for start in range(0, len(data), _FULL_BLOCK_BYTES):
            block = data[start:start + _FULL_BLOCK_BYTES]
            n = int.from_bytes(block, "big")
            digits = []
            for _ in range(_CHARS_FOR_BYTES[len(block)]):
                n, digit = divmod(n, _BASE)
                digits.append(_ALPHABET[digit])
            out.append("".join(reversed(digits)))
        return "".join(out)

    def _keys(self) -> tuple[Hash, Hash]:
        return (self.spend_public_key, self.view_public_key)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Wallet):
            return NotImplemented
        return self._keys() < other._keys()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Wallet):
            return NotImplemented
        return self._keys() == other._keys()

    def __hash__(self) -> int:
        return hash(self._keys())

    def __repr__(self) -> str:
        return f"Wallet({self.encode()!r}, {self.network_type.name})"