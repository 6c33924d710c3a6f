# p2pool

Python building blocks for a decentralized Monero mining pool node.

## What is inside

- `p2pool.common`: 256-bit `Hash`, 128-bit `Difficulty` arithmetic with
  wrapping, mining targets and proof-of-work checks (`Difficulty.target`,
  `Difficulty.check_pow`), mempool transaction ordering (`TxMempoolData`),
  `MinerData`, `ChainMain`, `RawIP`, `NetworkType` and `round_up`.
- `p2pool.json_parsers`: typed field readers for decoded JSON objects
  (`parse_str`, `parse_uint8`, `parse_uint64`, `parse_bool`, `parse_hash`,
  `parse_difficulty`); each returns `None` when the field is missing or has
  the wrong type.
- `p2pool.wallet`: decoding, validating and encoding standard Monero
  addresses (`Wallet`), plus `keccak256` and `is_valid_point`.
- `p2pool.zmq_reader`: parsing of node ZeroMQ notifications
  (`ZMQMessageParser`) and a background subscriber (`ZMQReader`, usable as a
  context manager) that passes them to a `MinerCallbackHandler`.
- `p2pool.addresses`: `IP:port` list parsing (`parse_address_list`, yielding
  `ListenAddress` entries), `str_to_raw_ip` and `format_addr_string`.
- `p2pool.bans`: a thread-safe, time-limited `BanList` that never bans
  localhost.
- `p2pool.socks5`: a client-side SOCKS5 CONNECT handshake state machine
  (`Socks5Handshake`, `Socks5State`, `Socks5Error`) and the message builders
  `method_selection_message` and `connect_request`.
- `p2pool.loop_util`: a thread-safe `CallbackQueue` and `parallel_run`.

## Installation

```
pip install .
```

## Examples

```python
from p2pool.common import Difficulty, Hash

diff = Difficulty.from_str("334654765825")
print(diff.target())                              # 55121714
print(diff.check_pow(Hash.from_hex("00" * 32)))   # True
```

```python
from p2pool.wallet import Wallet

w = Wallet("49ccoSmrBTPJd5yf8VYCULh4J5rHQaXP1TeC8Cnqhd5H9Y2cMwkJ9w42euLmMghKtCiQcgZEiGYW1K6Ae4biZ7w1HLSexS6")
print(w.valid(), w.encode())
```

```python
from p2pool.zmq_reader import MinerCallbackHandler, ZMQMessageParser

class Printer(MinerCallbackHandler):
    def handle_tx(self, tx):
        print("tx", tx.id, tx.fee)

    def handle_miner_data(self, data):
        print("miner data", data.height)

    def handle_chain_main(self, data, extra):
        print("block", data.height, data.reward)

parser = ZMQMessageParser(Printer())
parser.parse(b'json-minimal-txpool_add:[{"id":"' + b"00" * 32 + b'","blob_size":1,"weight":1,"fee":1}]')
```

```python
from p2pool.addresses import parse_address_list, str_to_raw_ip
from p2pool.socks5 import Socks5Handshake

for entry in parse_address_list("127.0.0.1:37889,[::1]:37889"):
    print(entry.is_v6, entry.ip, entry.port)

hs = Socks5Handshake(False, str_to_raw_ip(False, "192.0.2.1"), 37889)
greeting = hs.greeting()            # send this to the proxy
to_send, payload = hs.feed(b"\x05\x00")   # to_send holds the CONNECT request
```

## What this package does not do

The package has no TCP peer server, no command-line program and no block or
sidechain storage. It provides the pieces such a node is built from (address
parsing, bans, the SOCKS5 handshake, a callback queue and the ZeroMQ
subscriber), but accepting and managing peer connections is left to the
application.

## Running the tests

```
pip install .[test]
pytest
```