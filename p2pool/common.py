"""Core value types shared across the pool: hashes, difficulties and chain data."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from functools import total_ordering

HASH_SIZE = 32
HARDFORK_VIEW_TAGS_VERSION = 15
HARDFORK_SUPPORTED_VERSION = 16
MINER_REWARD_UNLOCK_TIME = 60
NONCE_SIZE = 4
EXTRA_NONCE_SIZE = 4
EXTRA_NONCE_MAX_SIZE = EXTRA_NONCE_SIZE + 10
TX_VERSION = 2
TXIN_GEN = 0xFF
TXOUT_TO_KEY = 2
TXOUT_TO_TAGGED_KEY = 3
TX_EXTRA_TAG_PUBKEY = 1
TX_EXTRA_NONCE = 2
TX_EXTRA_MERGE_MINING_TAG = 3

U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_DEC_DIGITS = frozenset("0123456789")


def round_up(value: int, granularity: int) -> int:
    """Round ``value`` up to the nearest multiple of ``granularity``."""
    if granularity <= 0:
        raise ValueError("granularity must be positive")
    return ((value + granularity - 1) // granularity) * granularity


class NetworkType(enum.Enum):
    INVALID = 0
    MAINNET = 1
    TESTNET = 2
    STAGENET = 3


def _is_u64(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= U64_MAX


@total_ordering
@dataclass(frozen=True)
class Hash:
    """A 32-byte hash, ordered as a little-endian 256-bit number."""

    h: bytes = bytes(HASH_SIZE)

    def __post_init__(self) -> None:
        if isinstance(self.h, bytearray):
            object.__setattr__(self, "h", bytes(self.h))
        if not isinstance(self.h, bytes):
            raise TypeError("hash data must be bytes")
        if len(self.h) != HASH_SIZE:
            raise ValueError(f"hash must be {HASH_SIZE} bytes, got {len(self.h)}")

    @classmethod
    def from_hex(cls, text: str) -> "Hash":
        """Parse a hash from exactly 64 hexadecimal characters."""
        text = text.strip()
        if len(text) != HASH_SIZE * 2 or not set(text) <= _HEX_DIGITS:
            raise ValueError(f"invalid hash string: {text!r}")
        return cls(bytes.fromhex(text))

    def is_empty(self) -> bool:
        return not any(self.h)

    def _as_int(self) -> int:
        return int.from_bytes(self.h, "little")

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Hash):
            return NotImplemented
        return self._as_int() < other._as_int()

    def __str__(self) -> str:
        return self.h.hex()


@total_ordering
@dataclass(frozen=True, eq=False)
class Difficulty:
    """An unsigned 128-bit difficulty value with wrapping arithmetic."""

    value: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("difficulty must be an integer")
        if not 0 <= self.value <= U128_MAX:
            raise ValueError("difficulty out of 128-bit range")

    @classmethod
    def from_parts(cls, lo: int, hi: int) -> "Difficulty":
        if not (_is_u64(lo) and _is_u64(hi)):
            raise ValueError("lo and hi must be 64-bit unsigned integers")
        return cls((hi << 64) | lo)

    @classmethod
    def from_str(cls, text: str) -> "Difficulty":
        """Parse a decimal representation."""
        text = text.strip()
        if not text or not set(text) <= _DEC_DIGITS:
            raise ValueError(f"invalid difficulty string: {text!r}")
        value = int(text)
        if value > U128_MAX:
            raise ValueError("difficulty out of 128-bit range")
        return cls(value)

    @property
    def lo(self) -> int:
        return self.value & U64_MAX

    @property
    def hi(self) -> int:
        return self.value >> 64

    @staticmethod
    def _operand(other: object) -> int | None:
        if isinstance(other, Difficulty):
            return other.value
        if _is_u64(other):
            return other  # type: ignore[return-value]
        return None

    def __add__(self, other: object) -> "Difficulty":
        b = self._operand(other)
        if b is None:
            return NotImplemented
        return Difficulty((self.value + b) & U128_MAX)

    def __sub__(self, other: object) -> "Difficulty":
        b = self._operand(other)
        if b is None:
            return NotImplemented
        return Difficulty((self.value - b) & U128_MAX)

    def __mul__(self, other: object) -> "Difficulty":
        if not _is_u64(other):
            return NotImplemented
        return Difficulty((self.value * other) & U128_MAX)  # type: ignore[operator]

    def __floordiv__(self, other: object) -> "Difficulty":
        b = self._operand(other)
        if b is None:
            return NotImplemented
        return Difficulty(self.value // b)

    def __lt__(self, other: object) -> bool:
        b = self._operand(other)
        if b is None:
            return NotImplemented
        return self.value < b

    def __eq__(self, other: object) -> bool:
        b = self._operand(other)
        if b is None:
            return NotImplemented
        return self.value == b

    def __hash__(self) -> int:
        return hash(self.value)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)

    def to_double(self) -> float:
        return float(self.value)

    def is_empty(self) -> bool:
        return self.value == 0

    def target(self) -> int:
        """64-bit mining target, 2^64 / difficulty rounded up."""
        if self.hi:
            return 1
        if self.lo <= 1:
            return U64_MAX
        return -(-(1 << 64) // self.lo)

    def check_pow(self, pow_hash: Hash) -> bool:
        """True if ``pow_hash * difficulty`` stays below 2^256."""
        return int.from_bytes(pow_hash.h, "little") * self.value < (1 << 256)


DIFF_MAX = Difficulty(U128_MAX)


@dataclass
class TxMempoolData:
    id: Hash = field(default_factory=Hash)
    blob_size: int = 0
    weight: int = 0
    fee: int = 0
    time_received: int = 0

    def __lt__(self, other: "TxMempoolData") -> bool:
        if not isinstance(other, TxMempoolData):
            return NotImplemented
        # Products wrap at 64 bits, as the node's fee comparison does.
        a = (self.fee * other.weight) & U64_MAX
        b = (other.fee * self.weight) & U64_MAX
        if a != b:
            return a > b
        if self.weight != other.weight:
            return self.weight < other.weight
        return self.id < other.id


@dataclass
class MinerData:
    major_version: int = 0
    height: int = 0
    prev_id: Hash = field(default_factory=Hash)
    seed_hash: Hash = field(default_factory=Hash)
    difficulty: Difficulty = field(default_factory=Difficulty)
    median_weight: int = 0
    already_generated_coins: int = 0
    median_timestamp: int = 0
    tx_backlog: list[TxMempoolData] = field(default_factory=list)
    time_received: float = 0.0


@dataclass
class ChainMain:
    difficulty: Difficulty = field(default_factory=Difficulty)
    height: int = 0
    timestamp: int = 0
    reward: int = 0
    id: Hash = field(default_factory=Hash)


_LOCALHOST_V4 = bytes(10) + b"\xff\xff\x7f\x00\x00\x01"
_LOCALHOST_V6 = bytes(15) + b"\x01"
_IPV4_PREFIX = bytes(10) + b"\xff\xff"


@total_ordering
@dataclass(frozen=True)
class RawIP:
    """A 16-byte IP address; IPv4 addresses are stored IPv4-mapped."""

    data: bytes = bytes(16)

    def __post_init__(self) -> None:
        if isinstance(self.data, bytearray):
            object.__setattr__(self, "data", bytes(self.data))
        if not isinstance(self.data, bytes):
            raise TypeError("address data must be bytes")
        if len(self.data) != 16:
            raise ValueError("raw IP must be 16 bytes")

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RawIP):
            return NotImplemented
        return int.from_bytes(self.data, "little") < int.from_bytes(other.data, "little")

    def is_localhost(self) -> bool:
        return self.data in (_LOCALHOST_V4, _LOCALHOST_V6)

    def is_ipv4_prefix(self) -> bool:
        return self.data[:12] == _IPV4_PREFIX