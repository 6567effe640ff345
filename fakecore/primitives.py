"""Bitcoin consensus data structures and their wire encoding."""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field
from enum import Enum

COIN_VALUE = 100_000_000
SEQUENCE_MAX = 0xFFFFFFFF
ZERO_HASH = bytes(32)


def sha256d(data: bytes) -> bytes:
    """Double SHA-256 of ``data``."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def hash_to_hex(digest: bytes) -> str:
    """Render a 32-byte hash in the usual byte-reversed hex form."""
    if len(digest) != 32:
        raise ValueError(f"hash must be 32 bytes, got {len(digest)}")
    return digest[::-1].hex()


def hex_to_hash(text: str) -> bytes:
    """Parse a byte-reversed hex hash into its internal byte order."""
    try:
        raw = bytes.fromhex(text)
    except ValueError as err:
        raise ValueError(f"invalid hash: {text!r}") from err
    if len(raw) != 32:
        raise ValueError(f"hash must be 32 bytes, got {len(raw)}")
    return raw[::-1]


class Network(Enum):
    BITCOIN = "bitcoin"
    TESTNET = "testnet"
    SIGNET = "signet"
    REGTEST = "regtest"

    def chain_name(self) -> str:
        """Name reported as ``chain`` by ``getblockchaininfo``."""
        return {
            Network.BITCOIN: "main",
            Network.TESTNET: "test",
            Network.SIGNET: "signet",
            Network.REGTEST: "regtest",
        }[self]

    def display_name(self) -> str:
        """Name used on the command line, with mainnet spelled out."""
        return "mainnet" if self is Network.BITCOIN else self.value


def _encode_varint(n: int) -> bytes:
    if n < 0:
        raise ValueError("varint must be non-negative")
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", n)
    if n <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", n)
    return b"\xff" + struct.pack("<Q", n)


def _encode_var_bytes(data: bytes) -> bytes:
    return _encode_varint(len(data)) + data


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def read(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._data):
            raise ValueError("unexpected end of data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.read(1)[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def i32(self) -> int:
        return struct.unpack("<i", self.read(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self.read(8))[0]

    def varint(self) -> int:
        first = self.u8()
        if first < 0xFD:
            return first
        if first == 0xFD:
            return struct.unpack("<H", self.read(2))[0]
        if first == 0xFE:
            return struct.unpack("<I", self.read(4))[0]
        return self.u64()

    def var_bytes(self) -> bytes:
        return self.read(self.varint())

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise ValueError(f"{len(self._data) - self._pos} trailing bytes")


@dataclass(frozen=True, order=True)
class OutPoint:
    txid: bytes = ZERO_HASH
    vout: int = 0xFFFFFFFF

    @staticmethod
    def null() -> OutPoint:
        return OutPoint(ZERO_HASH, 0xFFFFFFFF)

    def is_null(self) -> bool:
        return self == OutPoint.null()

    def __str__(self) -> str:
        return f"{hash_to_hex(self.txid)}:{self.vout}"


@dataclass
class TxIn:
    previous_output: OutPoint = field(default_factory=OutPoint.null)
    script_sig: bytes = b""
    sequence: int = SEQUENCE_MAX
    witness: list[bytes] = field(default_factory=list)

    def _encode(self) -> bytes:
        return (
            self.previous_output.txid
            + struct.pack("<I", self.previous_output.vout)
            + _encode_var_bytes(self.script_sig)
            + struct.pack("<I", self.sequence)
        )

    @staticmethod
    def _decode(reader: _Reader) -> TxIn:
        txid = reader.read(32)
        vout = reader.u32()
        script_sig = reader.var_bytes()
        sequence = reader.u32()
        return TxIn(OutPoint(txid, vout), script_sig, sequence, [])


@dataclass
class TxOut:
    value: int = 0
    script_pubkey: bytes = b""

    def _encode(self) -> bytes:
        return struct.pack("<Q", self.value) + _encode_var_bytes(self.script_pubkey)

    @staticmethod
    def _decode(reader: _Reader) -> TxOut:
        value = reader.u64()
        return TxOut(value, reader.var_bytes())


@dataclass
class Transaction:
    version: int = 0
    lock_time: int = 0
    inputs: list[TxIn] = field(default_factory=list)
    outputs: list[TxOut] = field(default_factory=list)

    def _has_witness(self) -> bool:
        return not self.inputs or any(txin.witness for txin in self.inputs)

    def _encode_ios(self) -> bytes:
        parts = [_encode_varint(len(self.inputs))]
        parts.extend(txin._encode() for txin in self.inputs)
        parts.append(_encode_varint(len(self.outputs)))
        parts.extend(txout._encode() for txout in self.outputs)
        return b"".join(parts)

    def _encode_base(self) -> bytes:
        return (
            struct.pack("<i", self.version)
            + self._encode_ios()
            + struct.pack("<I", self.lock_time)
        )

    def serialize(self) -> bytes:
        """Consensus encoding, with witness data where there is any."""
        if not self._has_witness():
            return self._encode_base()
        parts = [struct.pack("<i", self.version), b"\x00\x01", self._encode_ios()]
        for txin in self.inputs:
            parts.append(_encode_varint(len(txin.witness)))
            parts.extend(_encode_var_bytes(item) for item in txin.witness)
        parts.append(struct.pack("<I", self.lock_time))
        return b"".join(parts)

    @staticmethod
    def deserialize(data: bytes) -> Transaction:
        """Decode a transaction; raises ValueError on malformed input."""
        reader = _Reader(data)
        version = reader.i32()
        count = reader.varint()
        segwit = False
        if count == 0:
            flag = reader.u8()
            if flag != 1:
                raise ValueError(f"unsupported segwit flag {flag}")
            segwit = True
            count = reader.varint()
        inputs = [TxIn._decode(reader) for _ in range(count)]
        outputs = [TxOut._decode(reader) for _ in range(reader.varint())]
        if segwit:
            for txin in inputs:
                txin.witness = [reader.var_bytes() for _ in range(reader.varint())]
            if inputs and not any(txin.witness for txin in inputs):
                raise ValueError("superfluous witness record")
        lock_time = reader.u32()
        reader.finish()
        return Transaction(version, lock_time, inputs, outputs)

    def txid(self) -> bytes:
        return sha256d(self._encode_base())

    def wtxid(self) -> bytes:
        return sha256d(self.serialize())

    def vsize(self) -> int:
        weight = len(self._encode_base()) * 3 + len(self.serialize())
        return (weight + 3) // 4


@dataclass
class BlockHeader:
    version: int = 0
    prev_blockhash: bytes = ZERO_HASH
    merkle_root: bytes = ZERO_HASH
    time: int = 0
    bits: int = 0
    nonce: int = 0

    def serialize(self) -> bytes:
        return (
            struct.pack("<i", self.version)
            + self.prev_blockhash
            + self.merkle_root
            + struct.pack("<III", self.time, self.bits, self.nonce)
        )

    def block_hash(self) -> bytes:
        return sha256d(self.serialize())


@dataclass
class Block:
    header: BlockHeader = field(default_factory=BlockHeader)
    txdata: list[Transaction] = field(default_factory=list)

    def serialize(self) -> bytes:
        parts = [self.header.serialize(), _encode_varint(len(self.txdata))]
        parts.extend(tx.serialize() for tx in self.txdata)
        return b"".join(parts)

    def block_hash(self) -> bytes:
        return self.header.block_hash()


def _scriptint(value: int) -> bytes:
    if value == 0:
        return b""
    negative = value < 0
    magnitude = abs(value)
    out = bytearray()
    while magnitude:
        out.append(magnitude & 0xFF)
        magnitude >>= 8
    if out[-1] & 0x80:
        out.append(0x80 if negative else 0x00)
    elif negative:
        out[-1] |= 0x80
    return bytes(out)


def _push_slice(data: bytes) -> bytes:
    n = len(data)
    if n < 0x4C:
        return bytes([n]) + data
    if n <= 0xFF:
        return b"\x4c" + bytes([n]) + data
    if n <= 0xFFFF:
        return b"\x4d" + struct.pack("<H", n) + data
    return b"\x4e" + struct.pack("<I", n) + data


def push_int_script(value: int) -> bytes:
    """Script that pushes ``value`` using the shortest encoding."""
    if value == -1 or 1 <= value <= 16:
        return bytes([value - 1 + 0x51])
    if value == 0:
        return b"\x00"
    return _push_slice(_scriptint(value))


_GENESIS_MESSAGE = b"The Times 03/Jan/2009 Chancellor on brink of second bailout for banks"
_GENESIS_PUBKEY = bytes.fromhex(
    "04678afdb0fe5548271967f1a67130b7105cd6a828e03909a67962e0ea1f61de"
    "b649f6bc3f4cef38c4f35504e51ec112de5c384df7ba0b8d578a4c702b6bf11d"
    "5f"
)
_GENESIS_HEADERS = {
    Network.BITCOIN: (1231006505, 0x1D00FFFF, 2083236893),
    Network.TESTNET: (1296688602, 0x1D00FFFF, 414098458),
    Network.SIGNET: (1598918400, 0x1E0377AE, 52613770),
    Network.REGTEST: (1296688602, 0x207FFFFF, 2),
}


def _genesis_coinbase() -> Transaction:
    script_sig = (
        bytes.fromhex("04ffff001d0104")
        + bytes([len(_GENESIS_MESSAGE)])
        + _GENESIS_MESSAGE
    )
    script_pubkey = _push_slice(_GENESIS_PUBKEY) + b"\xac"
    return Transaction(
        version=1,
        lock_time=0,
        inputs=[TxIn(OutPoint.null(), script_sig, SEQUENCE_MAX, [])],
        outputs=[TxOut(50 * COIN_VALUE, script_pubkey)],
    )


def genesis_block(network: Network) -> Block:
    """The genesis block of ``network``."""
    time, bits, nonce = _GENESIS_HEADERS[network]
    coinbase = _genesis_coinbase()
    header = BlockHeader(
        version=1,
        prev_blockhash=ZERO_HASH,
        merkle_root=coinbase.txid(),
        time=time,
        bits=bits,
        nonce=nonce,
    )
    return Block(header, [coinbase])