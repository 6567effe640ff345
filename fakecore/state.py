"""Chain, mempool and wallet state held by the fake node."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .primitives import (
    SEQUENCE_MAX,
    ZERO_HASH,
    Block,
    BlockHeader,
    Network,
    OutPoint,
    Transaction,
    TxIn,
    TxOut,
    genesis_block,
    push_int_script,
)


@dataclass(frozen=True)
class TransactionTemplate:
    """Shape of a transaction to broadcast.

    ``inputs`` holds (block height, transaction index, output index) triples.
    """

    fee: int = 0
    inputs: Sequence[tuple[int, int, int]] = ()
    output_values: Sequence[int] = ()
    outputs: int = 1
    witness: Sequence[bytes] = ()


@dataclass
class Sent:
    """A ``sendtoaddress`` call and the outputs locked when it was made."""

    amount: float
    address: str
    locked: list[OutPoint] = field(default_factory=list)


class State:
    """Blocks, transactions, UTXOs and wallet bookkeeping."""

    def __init__(
        self,
        network: Network,
        version: int,
        wallet_name: str,
        fail_lock_unspent: bool,
    ) -> None:
        genesis = genesis_block(network)
        genesis_hash = genesis.block_hash()
        self.blocks: dict[bytes, Block] = {genesis_hash: genesis}
        self.hashes: list[bytes] = [genesis_hash]
        self.descriptors: list[str] = []
        self.fail_lock_unspent = fail_lock_unspent
        self.locked: set[OutPoint] = set()
        self.mempool: list[Transaction] = []
        self.network = network
        self.nonce = 0
        self.sent: list[Sent] = []
        self.transactions: dict[bytes, Transaction] = {}
        self.utxos: dict[OutPoint, int] = {}
        self.version = version
        self.wallet_name = wallet_name
        self.wallets: set[str] = set()
        self.loaded_wallets: set[str] = set()

    def _collect_fee(self, tx: Transaction) -> int:
        spent = sum(
            self.transactions[txin.previous_output.txid]
            .outputs[txin.previous_output.vout]
            .value
            for txin in tx.inputs
        )
        fee = spent - sum(txout.value for txout in tx.outputs)
        if fee < 0:
            raise ValueError("transaction spends more than its inputs")
        self.transactions[tx.txid()] = tx
        return fee

    def push_block(self, subsidy: int) -> Block:
        """Mine the mempool into a new block paying ``subsidy`` plus fees."""
        fees = sum(self._collect_fee(tx) for tx in self.mempool)
        coinbase = Transaction(
            version=0,
            lock_time=0,
            inputs=[
                TxIn(
                    previous_output=OutPoint.null(),
                    script_sig=push_int_script(len(self.blocks)),
                    sequence=SEQUENCE_MAX,
                    witness=[],
                )
            ],
            outputs=[TxOut(subsidy + fees, b"")],
        )
        self.transactions[coinbase.txid()] = coinbase

        block = Block(
            header=BlockHeader(
                version=0,
                prev_blockhash=self.hashes[-1],
                merkle_root=ZERO_HASH,
                time=len(self.blocks),
                bits=0,
                nonce=self.nonce,
            ),
            txdata=[coinbase, *self.mempool],
        )
        self.mempool.clear()

        for tx in block.txdata:
            for txin in tx.inputs:
                self.utxos.pop(txin.previous_output, None)
            txid = tx.txid()
            for vout, txout in enumerate(tx.outputs):
                self.utxos[OutPoint(txid, vout)] = txout.value

        block_hash = block.block_hash()
        self.blocks[block_hash] = block
        self.hashes.append(block_hash)
        self.nonce += 1
        return block

    def pop_block(self) -> bytes:
        """Drop the tip block and return its hash."""
        block_hash = self.hashes.pop()
        self.blocks.pop(block_hash, None)
        return block_hash

    def broadcast_tx(self, template: TransactionTemplate) -> bytes:
        """Build a transaction from ``template``, add it to the mempool, return its txid."""
        total_value = 0
        inputs = []
        for i, (height, tx_index, vout) in enumerate(template.inputs):
            tx = self.blocks[self.hashes[height]].txdata[tx_index]
            total_value += tx.outputs[vout].value
            inputs.append(
                TxIn(
                    previous_output=OutPoint(tx.txid(), vout),
                    script_sig=b"",
                    sequence=SEQUENCE_MAX,
                    witness=list(template.witness) if i == 0 else [],
                )
            )

        remaining = total_value - template.fee
        if remaining < 0:
            raise ValueError("fee exceeds input value")
        value_per_output = remaining // template.outputs
        if value_per_output * template.outputs + template.fee != total_value:
            raise ValueError(
                f"input value {total_value} minus fee {template.fee} does not "
                f"split evenly into {template.outputs} outputs"
            )

        outputs = [
            TxOut(
                template.output_values[i]
                if i < len(template.output_values)
                else value_per_output,
                b"",
            )
            for i in range(template.outputs)
        ]
        tx = Transaction(version=0, lock_time=0, inputs=inputs, outputs=outputs)
        self.mempool.append(tx)
        return tx.txid()

    def get_confirmations(self, tx: Transaction) -> int:
        """Number of blocks from the tip down to the one holding ``tx``, or 0."""
        for depth, block_hash in enumerate(reversed(self.hashes), start=1):
            if tx in self.blocks[block_hash].txdata:
                return depth
        return 0