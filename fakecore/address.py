"""Segwit address encoding and taproot key derivation on secp256k1."""

from __future__ import annotations

import hashlib
import secrets

from .primitives import Network

_P = 2**256 - 2**32 - 977
_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_G = (
    0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
    0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8,
)

_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_BECH32_CONST = 1
_BECH32M_CONST = 0x2BC830A3

_HRP = {
    Network.BITCOIN: "bc",
    Network.TESTNET: "tb",
    Network.SIGNET: "tb",
    Network.REGTEST: "bcrt",
}

_Point = "tuple[int, int] | None"


def _point_add(a, b):
    if a is None:
        return b
    if b is None:
        return a
    if a[0] == b[0] and (a[1] + b[1]) % _P == 0:
        return None
    if a == b:
        lam = 3 * a[0] * a[0] * pow(2 * a[1], -1, _P)
    else:
        lam = (b[1] - a[1]) * pow(b[0] - a[0], -1, _P)
    lam %= _P
    x = (lam * lam - a[0] - b[0]) % _P
    return x, (lam * (a[0] - x) - a[1]) % _P


def _point_mul(point, scalar: int):
    result = None
    while scalar:
        if scalar & 1:
            result = _point_add(result, point)
        point = _point_add(point, point)
        scalar >>= 1
    return result


def _lift_x(x: int) -> tuple[int, int]:
    if x >= _P:
        raise ValueError("x coordinate out of range")
    c = (pow(x, 3, _P) + 7) % _P
    y = pow(c, (_P + 1) // 4, _P)
    if y * y % _P != c:
        raise ValueError("not a point on the curve")
    return x, y if y % 2 == 0 else _P - y


def _tagged_hash(tag: str, message: bytes) -> bytes:
    tag_hash = hashlib.sha256(tag.encode()).digest()
    return hashlib.sha256(tag_hash + tag_hash + message).digest()


def xonly_public_key(secret: int | bytes) -> bytes:
    """32-byte x-only public key for a secret scalar."""
    scalar = int.from_bytes(secret, "big") if isinstance(secret, bytes) else secret
    if not 1 <= scalar < _N:
        raise ValueError("secret key out of range")
    point = _point_mul(_G, scalar)
    return point[0].to_bytes(32, "big")


def taproot_output_key(internal_key: bytes) -> bytes:
    """Tweak an internal key for a taproot output with no script tree."""
    if len(internal_key) != 32:
        raise ValueError("internal key must be 32 bytes")
    point = _lift_x(int.from_bytes(internal_key, "big"))
    tweak = int.from_bytes(_tagged_hash("TapTweak", internal_key), "big")
    if tweak >= _N:
        raise ValueError("tweak out of range")
    output = _point_add(point, _point_mul(_G, tweak))
    if output is None:
        raise ValueError("tweaked key is the point at infinity")
    return output[0].to_bytes(32, "big")


def _polymod(values) -> int:
    generator = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
    chk = 1
    for value in values:
        top = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ value
        for i, g in enumerate(generator):
            if (top >> i) & 1:
                chk ^= g
    return chk


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _convert_bits(data, from_bits: int, to_bits: int, pad: bool) -> list[int]:
    acc = 0
    bits = 0
    out = []
    maxv = (1 << to_bits) - 1
    for value in data:
        if value >> from_bits:
            raise ValueError("invalid data value")
        acc = (acc << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            out.append((acc >> bits) & maxv)
    if pad:
        if bits:
            out.append((acc << (to_bits - bits)) & maxv)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & maxv):
        raise ValueError("invalid padding")
    return out


def _check_program(witness_version: int, program: bytes) -> None:
    if not 0 <= witness_version <= 16:
        raise ValueError(f"invalid witness version {witness_version}")
    if not 2 <= len(program) <= 40:
        raise ValueError(f"invalid witness program length {len(program)}")
    if witness_version == 0 and len(program) not in (20, 32):
        raise ValueError(f"invalid v0 witness program length {len(program)}")


def bech32m_encode(hrp: str, witness_version: int, program: bytes) -> str:
    """Encode a segwit address; version 0 uses bech32, later versions bech32m."""
    _check_program(witness_version, program)
    const = _BECH32_CONST if witness_version == 0 else _BECH32M_CONST
    data = [witness_version] + _convert_bits(program, 8, 5, True)
    polymod = _polymod(_hrp_expand(hrp) + data + [0] * 6) ^ const
    checksum = [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]
    return hrp + "1" + "".join(_CHARSET[d] for d in data + checksum)


def decode_segwit_address(address: str) -> tuple[str, int, bytes]:
    """Decode a segwit address into (hrp, witness version, program)."""
    if address.lower() != address and address.upper() != address:
        raise ValueError("mixed-case address")
    address = address.lower()
    separator = address.rfind("1")
    if separator < 1 or separator + 7 > len(address) or len(address) > 90:
        raise ValueError("invalid address length or separator")
    hrp = address[:separator]
    if any(not 33 <= ord(c) <= 126 for c in hrp):
        raise ValueError("invalid human-readable part")
    try:
        data = [_CHARSET.index(c) for c in address[separator + 1:]]
    except ValueError as err:
        raise ValueError("invalid character in address") from err
    witness_version = data[0]
    const = _polymod(_hrp_expand(hrp) + data)
    expected = _BECH32_CONST if witness_version == 0 else _BECH32M_CONST
    if const != expected:
        raise ValueError("invalid checksum")
    program = bytes(_convert_bits(data[1:-6], 5, 8, False))
    _check_program(witness_version, program)
    return hrp, witness_version, program


def p2tr_address(internal_key: bytes, network: Network) -> str:
    """Key-path-only taproot address for ``internal_key`` on ``network``."""
    return bech32m_encode(_HRP[network], 1, taproot_output_key(internal_key))


def random_p2tr_address(network: Network) -> str:
    """Taproot address for a freshly generated key."""
    secret = secrets.randbelow(_N - 1) + 1
    return p2tr_address(xonly_public_key(secret), network)