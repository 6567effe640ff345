import pytest

from fakecore.primitives import (
    Block,
    BlockHeader,
    Network,
    OutPoint,
    Transaction,
    TxIn,
    TxOut,
    genesis_block,
    hash_to_hex,
    hex_to_hash,
    push_int_script,
)

GENESIS_TXID = "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"


def _sample_tx(witness=None):
    return Transaction(
        version=2,
        lock_time=7,
        inputs=[
            TxIn(OutPoint(bytes(range(32)), 3), b"\x51", 0xFFFFFFFE, witness or []),
            TxIn(OutPoint(bytes(32), 1), b"", 0xFFFFFFFF, []),
        ],
        outputs=[TxOut(1234, b"\x00\x14" + bytes(20)), TxOut(0, b"")],
    )


def test_genesis_coinbase_txid():
    block = genesis_block(Network.BITCOIN)
    assert hash_to_hex(block.txdata[0].txid()) == GENESIS_TXID


def test_mainnet_genesis_hash():
    block = genesis_block(Network.BITCOIN)
    assert (
        hash_to_hex(block.block_hash())
        == "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"
    )


def test_genesis_merkle_root_is_coinbase_txid():
    block = genesis_block(Network.REGTEST)
    assert block.header.merkle_root == block.txdata[0].txid()


def test_genesis_blocks_differ_between_networks():
    hashes = {genesis_block(network).block_hash() for network in Network}
    assert len(hashes) == len(Network)
    txids = {genesis_block(network).txdata[0].txid() for network in Network}
    assert len(txids) == 1


def test_hash_hex_round_trip():
    digest = bytes(range(32))
    text = hash_to_hex(digest)
    assert text.startswith("1f1e")
    assert hex_to_hash(text) == digest


@pytest.mark.parametrize("bad", ["00", "zz" * 32, "00" * 33])
def test_hex_to_hash_rejects_bad_input(bad):
    with pytest.raises(ValueError):
        hex_to_hash(bad)


def test_network_names():
    assert Network.BITCOIN.display_name() == "mainnet"
    assert [n.chain_name() for n in Network] == ["main", "test", "signet", "regtest"]
    others = [n.display_name() for n in Network if n is not Network.BITCOIN]
    assert len(set(others)) == 3
    assert "mainnet" not in others


def test_outpoint_null():
    assert OutPoint.null().is_null()
    assert not OutPoint(bytes(32), 0).is_null()
    assert str(OutPoint(hex_to_hash(GENESIS_TXID), 0)) == f"{GENESIS_TXID}:0"


def test_transaction_round_trip_without_witness():
    tx = _sample_tx()
    assert Transaction.deserialize(tx.serialize()) == tx
    assert tx.txid() == tx.wtxid()
    assert tx.vsize() == len(tx.serialize())


def test_transaction_round_trip_with_witness():
    tx = _sample_tx(witness=[bytes(64)])
    encoded = tx.serialize()
    assert encoded[4:6] == b"\x00\x01"
    assert Transaction.deserialize(encoded) == tx
    assert tx.txid() != tx.wtxid()
    assert tx.txid() == _sample_tx().txid()
    assert tx.vsize() < len(encoded)


def test_transaction_without_inputs_round_trip():
    tx = Transaction(outputs=[TxOut(5, b"")])
    assert Transaction.deserialize(tx.serialize()) == tx


def test_deserialize_rejects_trailing_bytes():
    with pytest.raises(ValueError):
        Transaction.deserialize(_sample_tx().serialize() + b"\x00")


def test_deserialize_rejects_truncated_data():
    encoded = _sample_tx().serialize()
    with pytest.raises(ValueError):
        Transaction.deserialize(encoded[:-1])
    with pytest.raises(ValueError):
        Transaction.deserialize(b"")


def test_header_is_eighty_bytes_and_hash_changes_with_nonce():
    header = BlockHeader(nonce=1)
    assert len(header.serialize()) == 80
    assert header.block_hash() != BlockHeader(nonce=2).block_hash()


def test_block_serialization_contains_transactions():
    tx = _sample_tx()
    block = Block(BlockHeader(), [tx])
    encoded = block.serialize()
    assert encoded[:80] == block.header.serialize()
    assert encoded.endswith(tx.serialize())
    assert block.block_hash() == block.header.block_hash()


def test_push_int_zero():
    assert push_int_script(0) == b"\x00"


def test_push_int_small_values_are_single_opcodes():
    opcodes = [push_int_script(n) for n in range(1, 17)]
    assert all(len(op) == 1 for op in opcodes)
    codes = [op[0] for op in opcodes]
    assert codes == list(range(codes[0], codes[0] + 16))


def test_push_int_larger_values_push_data():
    assert push_int_script(17) == b"\x01\x11"
    script = push_int_script(300)
    assert script[0] == len(script) - 1
    assert int.from_bytes(script[1:], "little") == 300