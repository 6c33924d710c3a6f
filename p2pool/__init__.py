"""Building blocks of a decentralized Monero mining pool node."""

__version__ = "0.1.0"

__all__ = [
    "addresses",
    "bans",
    "common",
    "json_parsers",
    "loop_util",
    "socks5",
    "wallet",
    "zmq_reader",
]