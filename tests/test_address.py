import pytest

from fakecore.address import (
    bech32m_encode,
    decode_segwit_address,
    p2tr_address,
    random_p2tr_address,
    taproot_output_key,
    xonly_public_key,
)
from fakecore.primitives import Network

V0_ADDRESS = "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"
BIP86_INTERNAL = bytes.fromhex(
    "cc8a4bc64d897bddc5fbc2f670f7a8ba0b386779106cf1223c6fc5d7cd6fc115"
)
BIP86_ADDRESS = "bc1p5cyxnuxmeuwuvkwfem96lqzszd02n6xdcjrs20cac6yqjjwudpxqkedrcr"


def test_generator_x_coordinate():
    assert (
        xonly_public_key(1).hex()
        == "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    )


def test_secret_as_bytes_matches_int():
    assert xonly_public_key((5).to_bytes(32, "big")) == xonly_public_key(5)


@pytest.mark.parametrize("secret", [0, -1, 2**256])
def test_secret_out_of_range(secret):
    with pytest.raises(ValueError):
        xonly_public_key(secret)


def test_decode_v0_address():
    hrp, version, program = decode_segwit_address(V0_ADDRESS)
    assert (hrp, version) == ("bc", 0)
    assert program.hex() == "751e76e8199196d454941c45d1b3a323f1433bd6"


def test_encode_round_trip():
    hrp, version, program = decode_segwit_address(V0_ADDRESS)
    assert bech32m_encode(hrp, version, program) == V0_ADDRESS


def test_uppercase_address_decodes():
    assert decode_segwit_address(V0_ADDRESS.upper()) == decode_segwit_address(V0_ADDRESS)


def test_bip86_address():
    assert p2tr_address(BIP86_INTERNAL, Network.BITCOIN) == BIP86_ADDRESS


def test_bip86_output_key_matches_address_program():
    _, version, program = decode_segwit_address(BIP86_ADDRESS)
    assert version == 1
    assert program == taproot_output_key(BIP86_INTERNAL)


def test_bad_checksum_rejected():
    last = V0_ADDRESS[-1]
    replacement = "q" if last != "q" else "p"
    with pytest.raises(ValueError):
        decode_segwit_address(V0_ADDRESS[:-1] + replacement)


def test_mixed_case_rejected():
    with pytest.raises(ValueError):
        decode_segwit_address("BC1" + V0_ADDRESS[3:])


def test_v1_program_with_bech32_checksum_rejected():
    # a version 1 program encoded with the version 0 checksum constant
    encoded_v0 = bech32m_encode("bc", 0, bytes(32))
    tampered = encoded_v0[:3] + "p" + encoded_v0[4:]
    with pytest.raises(ValueError):
        decode_segwit_address(tampered)


def test_invalid_program_length_rejected():
    with pytest.raises(ValueError):
        bech32m_encode("bc", 0, bytes(25))
    with pytest.raises(ValueError):
        bech32m_encode("bc", 17, bytes(32))


def test_taproot_output_key_rejects_bad_length():
    with pytest.raises(ValueError):
        taproot_output_key(bytes(31))


def test_random_address_is_valid_taproot():
    first = random_p2tr_address(Network.BITCOIN)
    second = random_p2tr_address(Network.BITCOIN)
    assert first != second
    hrp, version, program = decode_segwit_address(first)
    assert hrp == decode_segwit_address(V0_ADDRESS)[0]
    assert version == 1
    assert len(program) == 32


def test_random_address_prefix_follows_network():
    hrps = {
        network: decode_segwit_address(random_p2tr_address(network))[0]
        for network in Network
    }
    assert hrps[Network.TESTNET] == hrps[Network.SIGNET]
    assert hrps[Network.REGTEST] != hrps[Network.BITCOIN]
    assert hrps[Network.TESTNET] != hrps[Network.BITCOIN]