"""Reading node notifications (new transactions, miner data, new blocks) over ZeroMQ."""

from __future__ import annotations

import abc
import ipaddress
import itertools
import json
import logging
import random
import threading
import time
from typing import Any

import zmq
from zmq.utils.monitor import recv_monitor_message

from p2pool.common import U64_MAX, ChainMain, MinerData, TxMempoolData
from p2pool.json_parsers import (
    parse_difficulty,
    parse_hash,
    parse_uint8,
    parse_uint64,
)

log = logging.getLogger(__name__)

TOPIC_TXPOOL_ADD = "json-minimal-txpool_add"
TOPIC_MINER_DATA = "json-full-miner_data"
TOPIC_CHAIN_MAIN = "json-full-chain_main"


class MinerCallbackHandler(abc.ABC):
    """Receiver of parsed node notifications."""

    @abc.abstractmethod
    def handle_tx(self, tx: TxMempoolData) -> None:
        """Called for each new mempool transaction."""

    @abc.abstractmethod
    def handle_miner_data(self, data: MinerData) -> None:
        """Called when the node publishes new miner data."""

    @abc.abstractmethod
    def handle_chain_main(self, data: ChainMain, extra: str) -> None:
        """Called for each new main chain block with its miner tx extra."""


def _relax_json(text: str) -> str:
    """Strip comments and trailing commas so the standard parser accepts the text."""
    out: list[str] = []
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            j = i + 1
            while j < n:
                if text[j] == "\\":
                    j += 2
                    continue
                j += 1
                if text[j - 1] == '"':
                    break
            out.extend(text[i:j])
            i = j
        elif text.startswith("//", i):
            j = text.find("\n", i)
            i = n if j < 0 else j
        elif text.startswith("/*", i):
            j = text.find("*/", i + 2)
            if j < 0:
                raise ValueError("unterminated comment")
            i = j + 2
        else:
            if ch in "]}":
                k = len(out) - 1
                while k >= 0 and out[k] in " \t\r\n":
                    k -= 1
                if k >= 0 and out[k] == ",":
                    del out[k]
            out.append(ch)
            i += 1
    return "".join(out)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _load_json(text: str) -> Any:
    return json.loads(_relax_json(text), parse_constant=_reject_constant)


class ZMQMessageParser:
    """Turns raw ``topic:json`` messages into handler calls."""

    def __init__(self, handler: MinerCallbackHandler) -> None:
        self.handler = handler

    def parse(self, message: bytes) -> None:
        topic_bytes, sep, payload = bytes(message).partition(b":")
        if not sep:
            log.warning("ZeroMQ message doesn't have ':' delimiter, skipping it")
            return

        try:
            doc = _load_json(payload.decode("utf-8"))
        except ValueError:
            log.warning("ZeroMQ message failed to parse, skipping it")
            return

        topic = topic_bytes.decode("utf-8", errors="replace")
        if topic == TOPIC_TXPOOL_ADD:
            self._parse_txpool_add(doc)
        elif topic == TOPIC_MINER_DATA:
            self._parse_miner_data(doc)
        elif topic == TOPIC_CHAIN_MAIN:
            self._parse_chain_main(doc)

    def _parse_txpool_add(self, doc: Any) -> None:
        if not isinstance(doc, list):
            log.warning("%s is not an array, skipping it", TOPIC_TXPOOL_ADD)
            return

        time_received = int(time.time())
        for index, item in enumerate(doc, 1):
            fields = (
                parse_hash(item, "id"),
                parse_uint64(item, "blob_size"),
                parse_uint64(item, "weight"),
                parse_uint64(item, "fee"),
            )
            if None in fields:
                log.warning("transaction #%d in %s failed to parse, skipped it", index, TOPIC_TXPOOL_ADD)
                continue
            tx_id, blob_size, weight, fee = fields
            self.handler.handle_tx(
                TxMempoolData(id=tx_id, blob_size=blob_size, weight=weight, fee=fee, time_received=time_received)
            )

    def _parse_miner_data(self, doc: Any) -> None:
        if not isinstance(doc, dict):
            log.warning("%s is not an object, skipping it", TOPIC_MINER_DATA)
            return

        fields = {
            "major_version": parse_uint8(doc, "major_version"),
            "height": parse_uint64(doc, "height"),
            "prev_id": parse_hash(doc, "prev_id"),
            "seed_hash": parse_hash(doc, "seed_hash"),
            "median_weight": parse_uint64(doc, "median_weight"),
            "already_generated_coins": parse_uint64(doc, "already_generated_coins"),
            "difficulty": parse_difficulty(doc, "difficulty"),
        }
        if any(value is None for value in fields.values()):
            log.warning("%s failed to parse, skipping it", TOPIC_MINER_DATA)
            return

        if "tx_backlog" not in doc:
            log.warning("%s doesn't have 'tx_backlog', skipping it", TOPIC_MINER_DATA)
            return

        backlog = doc["tx_backlog"]
        if not isinstance(backlog, list):
            log.warning("'tx_backlog' in %s is not an array, skipping it", TOPIC_MINER_DATA)
            return

        txs = []
        for index, item in enumerate(backlog, 1):
            tx_id = parse_hash(item, "id")
            weight = parse_uint64(item, "weight")
            fee = parse_uint64(item, "fee")
            if tx_id is None or weight is None or fee is None:
                log.warning("transaction #%d in %s `tx_backlog` failed to parse, skipped it", index, TOPIC_MINER_DATA)
                continue
            txs.append(TxMempoolData(id=tx_id, weight=weight, fee=fee))

        self.handler.handle_miner_data(MinerData(tx_backlog=txs, **fields))

    def _parse_chain_main(self, doc: Any) -> None:
        if not isinstance(doc, list):
            log.warning("%s is not an array, skipping it", TOPIC_CHAIN_MAIN)
            return

        for block in doc:
            timestamp = parse_uint64(block, "timestamp")
            if timestamp is None:
                log.warning("%s timestamp failed to parse, skipping it", TOPIC_CHAIN_MAIN)
                continue

            miner_tx = block.get("miner_tx")
            if not isinstance(miner_tx, dict):
                log.warning("%s miner_tx not found, skipping it", TOPIC_CHAIN_MAIN)
                continue

            extra = miner_tx.get("extra")
            if not isinstance(extra, str):
                log.warning("%s extra not found, skipping it", TOPIC_CHAIN_MAIN)
                continue

            inputs = miner_tx.get("inputs")
            if not isinstance(inputs, list):
                log.warning("%s inputs not found, skipping it", TOPIC_CHAIN_MAIN)
                continue

            reward = 0
            outputs = miner_tx.get("outputs")
            if isinstance(outputs, list):
                for output in outputs:
                    amount = parse_uint64(output, "amount")
                    if amount is not None:
                        reward = (reward + amount) & U64_MAX
            else:
                log.warning("%s outputs not found", TOPIC_CHAIN_MAIN)

            if not inputs or not isinstance(inputs[0], dict):
                log.warning("%s inputs is not an array, skipping it", TOPIC_CHAIN_MAIN)
                continue

            gen = inputs[0].get("gen")
            if not isinstance(gen, dict):
                log.warning("%s gen not found, skipping it", TOPIC_CHAIN_MAIN)
                continue

            height = parse_uint64(gen, "height")
            if height is None:
                log.warning("%s height not found, skipping it", TOPIC_CHAIN_MAIN)
                continue

            self.handler.handle_chain_main(ChainMain(height=height, timestamp=timestamp, reward=reward), extra)


def _is_localhost(address: str) -> bool:
    host = address.strip("[]")
    if host.lower() == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


_monitor_ids = itertools.count(random.getrandbits(64))


class ZMQReader:
    """Subscribes to a node's ZeroMQ notifications on a worker thread."""

    FIRST_PUBLISHER_PORT = 37891
    _POLL_MS = 200
    _CONNECT_WARN_SECONDS = 3.0

    def __init__(self, address: str, zmq_port: int, proxy: str, handler: MinerCallbackHandler) -> None:
        self._address = address
        self._zmq_port = zmq_port
        self._proxy = proxy
        if self._proxy and _is_localhost(address):
            log.info("not using proxy to connect to localhost address %s", address)
            self._proxy = ""

        self._parser = ZMQMessageParser(handler)
        self._finished = threading.Event()
        self._closed = False

        self._context = zmq.Context()
        self._publisher = self._context.socket(zmq.PUB)
        self._publisher.setsockopt(zmq.LINGER, 0)
        self._subscriber = self._context.socket(zmq.SUB)
        self._subscriber.setsockopt(zmq.LINGER, 0)

        try:
            self.publisher_port = self._bind_publisher()
        except RuntimeError:
            self._publisher.close()
            self._subscriber.close()
            self._context.term()
            raise

        self._worker = threading.Thread(target=self._run, name="ZMQReader", daemon=True)
        self._worker.start()

    def _bind_publisher(self) -> int:
        for port in range(self.FIRST_PUBLISHER_PORT, 65535):
            try:
                self._publisher.bind(f"tcp://127.0.0.1:{port}")
            except zmq.ZMQError as e:
                log.warning("failed to bind port %d for ZMQ publisher, error %s", port, e)
                continue
            return port
        log.error("failed to bind ZMQ publisher port, aborting")
        raise RuntimeError("failed to bind ZMQ publisher port")

    def _run(self) -> None:
        try:
            if self._proxy:
                self._subscriber.setsockopt(zmq.SOCKS_PROXY, self._proxy.encode())

            if not self._connect(f"tcp://{self._address}:{self._zmq_port}"):
                return

            self._subscriber.setsockopt(zmq.SOCKS_PROXY, b"")

            if not self._connect(f"tcp://127.0.0.1:{self.publisher_port}"):
                return

            for topic in (TOPIC_CHAIN_MAIN, TOPIC_MINER_DATA, TOPIC_TXPOOL_ADD):
                self._subscriber.setsockopt(zmq.SUBSCRIBE, topic.encode())

            log.info("worker thread ready")

            while not self._finished.is_set():
                if not self._subscriber.poll(self._POLL_MS):
                    continue
                message = self._subscriber.recv()
                if self._finished.is_set():
                    break
                self._parser.parse(message)
        except Exception as e:  # the worker must never die silently
            log.error("exception %s", e)
        finally:
            self._subscriber.close()
            log.info("worker thread stopped")

    def _connect(self, address: str) -> bool:
        monitor = self._subscriber.get_monitor_socket(
            zmq.EVENT_CONNECTED, addr=f"inproc://p2pool-connect-mon-{next(_monitor_ids)}"
        )
        try:
            self._subscriber.connect(address)
            start = time.monotonic()
            while True:
                if monitor.poll(self._POLL_MS):
                    event = recv_monitor_message(monitor)
                    if event["event"] == zmq.EVENT_CONNECTED:
                        log.info("connected to %s", address)
                        return True
                if self._finished.is_set():
                    return False
                now = time.monotonic()
                if now - start >= self._CONNECT_WARN_SECONDS:
                    log.error("failed to connect to %s", address)
                    start = now
        finally:
            self._subscriber.disable_monitor()
            monitor.close()

    def close(self) -> None:
        """Stop the worker thread and release the sockets."""
        if self._closed:
            return
        self._closed = True
        log.info("stopping")
        self._finished.set()
        try:
            self._publisher.send(f"{TOPIC_TXPOOL_ADD}:[]".encode())
        except zmq.ZMQError as e:
            log.error("exception %s", e)
        self._worker.join()
        self._publisher.close()
        self._context.term()

    def __enter__(self) -> "ZMQReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()