"""Client side of the SOCKS5 handshake used when connecting to peers through a proxy."""

from __future__ import annotations

import enum
import logging

from p2pool.common import RawIP

log = logging.getLogger(__name__)

SOCKS5_VERSION = 5
_CMD_CONNECT = 1
_METHOD_NO_AUTH = 0
_ATYP_IPV4 = 1
_ATYP_DOMAIN = 3
_ATYP_IPV6 = 4


class Socks5State(enum.Enum):
    DEFAULT = 0
    METHOD_SELECTION_SENT = 1
    CONNECT_REQUEST_SENT = 2


class Socks5Error(Exception):
    """The proxy replied with something the handshake cannot accept."""


def method_selection_message() -> bytes:
    """Greeting offering a single method: no authentication."""
    return bytes([SOCKS5_VERSION, 1, _METHOD_NO_AUTH])


def connect_request(is_v6: bool, addr: RawIP, port: int) -> bytes:
    """CONNECT request for ``addr``:``port``; IPv4 uses the last four bytes of ``addr``."""
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"invalid port {port}")
    header = bytes([SOCKS5_VERSION, _CMD_CONNECT, 0])
    port_bytes = port.to_bytes(2, "big")
    if is_v6:
        return header + bytes([_ATYP_IPV6]) + addr.data + port_bytes
    return header + bytes([_ATYP_IPV4]) + addr.data[12:16] + port_bytes


class Socks5Handshake:
    """State machine for one proxied connection.

    Call :meth:`greeting` and send what it returns, then pass every chunk
    received from the proxy to :meth:`feed` until :meth:`done` is true.
    """

    def __init__(self, is_v6: bool, addr: RawIP, port: int) -> None:
        self.is_v6 = is_v6
        self.addr = addr
        self.port = port
        self.state = Socks5State.DEFAULT
        self._started = False
        self._buffer = bytearray()

    def greeting(self) -> bytes:
        """Start the handshake; return the method selection message to send."""
        self._started = True
        self._buffer.clear()
        self.state = Socks5State.METHOD_SELECTION_SENT
        return method_selection_message()

    def done(self) -> bool:
        """True once the proxy has accepted the CONNECT request."""
        return self._started and self.state == Socks5State.DEFAULT

    def feed(self, data: bytes) -> tuple[bytes, bytes]:
        """Consume bytes from the proxy.

        Returns ``(to_send, payload)``: bytes to send to the proxy (empty if
        none) and, once the handshake completes, any bytes that followed the
        proxy's reply and belong to the peer. Raises :class:`Socks5Error` on an
        invalid reply or if no handshake is in progress.
        """
        if self.state == Socks5State.DEFAULT:
            raise Socks5Error("no SOCKS5 handshake in progress")

        self._buffer += data
        buf = self._buffer
        consumed = 0
        to_send = b""

        if self.state == Socks5State.METHOD_SELECTION_SENT:
            if len(buf) >= 2:
                if buf[0] != SOCKS5_VERSION and buf[1] != _METHOD_NO_AUTH:
                    raise Socks5Error("SOCKS5 proxy returned an invalid METHOD selection message")
                consumed = 2
                to_send = connect_request(self.is_v6, self.addr, self.port)
                self.state = Socks5State.CONNECT_REQUEST_SENT
        elif len(buf) >= 4:
            if buf[0] != SOCKS5_VERSION and buf[1] != 0 and buf[2] != 0:
                raise Socks5Error("SOCKS5 proxy returned an invalid reply to CONNECT")
            atyp = buf[3]
            if atyp == _ATYP_IPV4:
                if len(buf) >= 10:
                    consumed = 10
            elif atyp == _ATYP_DOMAIN:
                if len(buf) >= 5 and len(buf) >= 7 + buf[4]:
                    consumed = 7 + buf[4]
            elif atyp == _ATYP_IPV6:
                if len(buf) >= 22:
                    consumed = 22
            else:
                raise Socks5Error(
                    f"SOCKS5 proxy returned an invalid reply to CONNECT (invalid address type {atyp})"
                )
            if consumed:
                self.state = Socks5State.DEFAULT

        del buf[:consumed]

        payload = b""
        if self.state == Socks5State.DEFAULT:
            payload = bytes(buf)
            buf.clear()
        return to_send, payload