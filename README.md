# fakecore

`fakecore` keeps a small, in-memory imitation of a Bitcoin node's chain,
mempool and wallet bookkeeping. Tests can mine blocks, broadcast simple
transactions, track unspent outputs and count confirmations without a real
node. It has no dependencies beyond the standard library.

## Installation

```
pip install fakecore
```

To run the package's own tests:

```
pip install "fakecore[test]"
pytest
```

## Modules

### `fakecore.primitives`

Consensus data structures and their wire encoding:

- `Network` — `BITCOIN`, `TESTNET`, `SIGNET`, `REGTEST`.
  `chain_name()` gives `"main"`, `"test"`, `"signet"` or `"regtest"`;
  `display_name()` gives `"mainnet"` for `BITCOIN` and the enum value otherwise.
- `OutPoint(txid, vout)` — frozen and ordered; `OutPoint.null()` and
  `is_null()`; `str()` prints `<txid hex>:<vout>`.
- `TxIn`, `TxOut`, `Transaction` — `Transaction.serialize()` writes the segwit
  form when any input has a witness (or there are no inputs);
  `Transaction.deserialize(data)` raises `ValueError` on malformed input;
  `txid()`, `wtxid()` and `vsize()`.
- `BlockHeader` and `Block` with `serialize()` and `block_hash()`.
- `hash_to_hex(digest)` / `hex_to_hash(text)` — convert between internal byte
  order and the usual reversed hex form.
- `push_int_script(value)` — a script pushing an integer in its shortest form.
- `genesis_block(network)` — the genesis block of each network.
- `COIN_VALUE` (100,000,000 satoshis).

### `fakecore.address`

Segwit and taproot addresses, computed in pure Python:

- `bech32m_encode(hrp, witness_version, program)` — bech32 for version 0,
  bech32m for later versions.
- `decode_segwit_address(address)` — returns `(hrp, witness_version, program)`
  or raises `ValueError`.
- `xonly_public_key(secret)` — x-only public key for a secret given as an int
  or bytes.
- `taproot_output_key(internal_key)` — key-path-only taproot tweak.
- `p2tr_address(internal_key, network)` and `random_p2tr_address(network)` —
  addresses with prefix `bc`, `tb` (testnet and signet) or `bcrt`.

### `fakecore.state`

- `State(network, version, wallet_name, fail_lock_unspent)` starts from the
  network's genesis block. Its attributes (`blocks`, `hashes`, `mempool`,
  `transactions`, `utxos`, `locked`, `descriptors`, `sent`, `wallets`,
  `loaded_wallets`, ...) are plain dicts, lists and sets to read or modify.
- `push_block(subsidy)` mines the whole mempool into a block whose coinbase pays
  `subsidy` plus the fees of the mined transactions, and updates `utxos`
  (outpoint → satoshis). A transaction spending more than its inputs raises
  `ValueError`.
- `pop_block()` removes the tip block and returns its hash; transactions and
  UTXOs are left as they are.
- `broadcast_tx(template)` builds a transaction from a `TransactionTemplate`
  and adds it to the mempool, returning its txid. Template inputs are
  `(block height, tx index, vout)` triples; the input value minus `fee` must
  split evenly over `outputs`, unless `output_values` sets them, or
  `ValueError` is raised. `witness` goes on the first input only.
- `get_confirmations(tx)` — 1 for a transaction in the tip block, more for
  deeper ones, 0 if it is in no block.
- `Sent(amount, address, locked)` — a record of a payment and the outputs
  locked when it was made.

```python
from fakecore.primitives import COIN_VALUE, Network, hash_to_hex
from fakecore.state import State, TransactionTemplate

state = State(Network.REGTEST, 240000, "ord", False)
state.push_block(50 * COIN_VALUE)                     # block 1

txid = state.broadcast_tx(
    TransactionTemplate(inputs=[(1, 0, 0)], fee=10_000, outputs=2)
)
block = state.push_block(50 * COIN_VALUE)             # coinbase collects the fee
print(hash_to_hex(txid))
print(state.get_confirmations(block.txdata[1]))       # 1
```

Outputs of the genesis coinbase are not recorded in `transactions`, so a block
that mines a transaction spending them raises `KeyError`.

## What it does not do

`fakecore` has no JSON-RPC or HTTP server and no command-line program; it does
not answer RPC calls such as `getblockcount` or `sendtoaddress` by itself.
Wiring `State` to a transport is left to the code that uses it.