"""
tournaments/tokens.py - Token transfer boundary.

The engine never moves value itself; it asks a TokenLedger. A transfer either
succeeds completely or raises TransferFailedError, which rolls back the whole
engine call. Ledgers that are also Checkpointed have their own writes undone
with it; a Web3TokenLedger transfer that already mined stays mined.

Two implementations:
    InMemoryTokenLedger  balances in dicts, for tests and simulations
    Web3TokenLedger      ERC20/ERC721 contracts over JSON-RPC, signed locally
"""

import logging
from typing import Protocol, runtime_checkable

from eth_account import Account
from web3 import Web3

from podium.config import PodiumConfig
from podium.errors import TransferFailedError

logger = logging.getLogger(__name__)

_MISSING = object()


class TokenLedger(Protocol):
    """Value movement and ownership lookups the engine depends on."""

    def transfer(self, token_address: str, sender: str, recipient: str, amount: int) -> None:
        """Pay out from `sender`'s own balance (the engine's escrow)."""
        ...

    def transfer_from(self, token_address: str, owner: str, recipient: str, amount: int) -> None:
        """Pull `amount` from `owner` (entry fees, sponsored prizes)."""
        ...

    def transfer_nft(self, token_address: str, sender: str, recipient: str, token_id: int) -> None: ...

    def owner_of(self, token_address: str, token_id: int) -> str: ...

    def balance_of(self, token_address: str, owner: str) -> int: ...


@runtime_checkable
class Checkpointed(Protocol):
    """A collaborator whose writes the engine can undo along with its own state.

    checkpoint() calls nest; each is closed by exactly one rollback() or commit().
    """

    def checkpoint(self) -> int: ...

    def rollback(self, checkpoint: int) -> None: ...

    def commit(self, checkpoint: int) -> None: ...


# ============================================================================
# In-memory ledger
# ============================================================================


class InMemoryTokenLedger:
    """Fungible balances and NFT owners held in plain dicts.

    Addresses are compared case-insensitively. While a checkpoint is open every
    write is journaled so rollback() can undo it.
    """

    def __init__(self):
        self._balances: dict[tuple[str, str], int] = {}
        self._owners: dict[tuple[str, int], str] = {}
        self._journal: list[tuple[dict, tuple, object]] = []
        self._open_checkpoints = 0

    @staticmethod
    def _key(token_address: str, owner: str) -> tuple[str, str]:
        return token_address.lower(), owner.lower()

    # Setup helpers

    def mint(self, token_address: str, owner: str, amount: int) -> None:
        key = self._key(token_address, owner)
        self._write(self._balances, key, self._balances.get(key, 0) + amount)

    def mint_nft(self, token_address: str, owner: str, token_id: int) -> None:
        self._write(self._owners, (token_address.lower(), token_id), owner)

    # TokenLedger

    def transfer(self, token_address: str, sender: str, recipient: str, amount: int) -> None:
        self._move(token_address, sender, recipient, amount)

    def transfer_from(self, token_address: str, owner: str, recipient: str, amount: int) -> None:
        self._move(token_address, owner, recipient, amount)

    def transfer_nft(self, token_address: str, sender: str, recipient: str, token_id: int) -> None:
        key = (token_address.lower(), token_id)
        current = self._owners.get(key)
        if current is None or current.lower() != sender.lower():
            raise TransferFailedError(
                f"{sender} does not own token {token_id} of {token_address}"
            )
        self._write(self._owners, key, recipient)
        logger.debug(f"NFT {token_address}#{token_id}: {sender} -> {recipient}")

    def owner_of(self, token_address: str, token_id: int) -> str:
        owner = self._owners.get((token_address.lower(), token_id))
        if owner is None:
            raise TransferFailedError(f"token {token_id} of {token_address} does not exist")
        return owner

    def balance_of(self, token_address: str, owner: str) -> int:
        return self._balances.get(self._key(token_address, owner), 0)

    def _move(self, token_address: str, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise TransferFailedError(f"negative transfer amount {amount}")
        src = self._key(token_address, sender)
        balance = self._balances.get(src, 0)
        if balance < amount:
            raise TransferFailedError(
                f"{sender} has {balance} of {token_address}, needs {amount}"
            )
        dst = self._key(token_address, recipient)
        self._write(self._balances, src, balance - amount)
        self._write(self._balances, dst, self._balances.get(dst, 0) + amount)
        logger.debug(f"{token_address}: {sender} -> {recipient} {amount}")

    # Checkpoints

    def checkpoint(self) -> int:
        self._open_checkpoints += 1
        return len(self._journal)

    def rollback(self, checkpoint: int) -> None:
        while len(self._journal) > checkpoint:
            table, key, previous = self._journal.pop()
            if previous is _MISSING:
                del table[key]
            else:
                table[key] = previous
        self._release()

    def commit(self, checkpoint: int) -> None:
        self._release()

    def _release(self) -> None:
        self._open_checkpoints -= 1
        if self._open_checkpoints == 0:
            self._journal.clear()

    def _write(self, table: dict, key: tuple, value) -> None:
        if self._open_checkpoints:
            self._journal.append((table, key, table.get(key, _MISSING)))
        table[key] = value


# ============================================================================
# Web3 ledger
# ============================================================================

# Minimal ABIs: only the functions we call
ERC20_ABI = [
    {
        "name": "transfer",
        "type": "function",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "name": "transferFrom",
        "type": "function",
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "name": "balanceOf",
        "type": "function",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
]

ERC721_ABI = [
    {
        "name": "transferFrom",
        "type": "function",
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "tokenId", "type": "uint256"},
        ],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "name": "ownerOf",
        "type": "function",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
    },
]


def load_account(config: PodiumConfig):
    """Load a LocalAccount from the [wallet] section, or None if no key is configured."""
    if config.wallet is None or config.wallet.private_key is None:
        return None

    key = config.wallet.private_key
    # Ensure 0x prefix
    if not key.startswith("0x"):
        key = "0x" + key

    return Account.from_key(key)


class Web3TokenLedger:
    """TokenLedger backed by deployed ERC20/ERC721 contracts.

    Outgoing transfers are signed by `account`, which must be the settlement
    address holding escrow. transfer_from relies on the owner having approved
    that address beforehand.
    """

    def __init__(self, w3: Web3, account, receipt_timeout: int = 30):
        self.w3 = w3
        self.account = account
        self.receipt_timeout = receipt_timeout

    @classmethod
    def from_config(cls, config: PodiumConfig) -> "Web3TokenLedger":
        account = load_account(config)
        if account is None:
            raise ValueError("No wallet configured. Add a [wallet] private_key to config.toml")
        w3 = Web3(Web3.HTTPProvider(config.chain.rpc_url))
        return cls(w3, account)

    @property
    def address(self) -> str:
        return self.account.address

    def _erc20(self, token_address: str):
        return self.w3.eth.contract(address=Web3.to_checksum_address(token_address), abi=ERC20_ABI)

    def _erc721(self, token_address: str):
        return self.w3.eth.contract(address=Web3.to_checksum_address(token_address), abi=ERC721_ABI)

    def _send(self, fn, label: str) -> str:
        tx = fn.build_transaction(
            {
                "from": self.account.address,
                "nonce": self.w3.eth.get_transaction_count(self.account.address),
                "chainId": self.w3.eth.chain_id,
            }
        )

        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info(f"{label} tx sent: {tx_hash.hex()}")

        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt["status"] != 1:
            raise TransferFailedError(f"{label} reverted: {tx_hash.hex()}")

        logger.info(f"{label} confirmed in block {receipt['blockNumber']}")
        return tx_hash.hex()

    def _require_signer(self, sender: str) -> None:
        if sender.lower() != self.account.address.lower():
            raise TransferFailedError(f"cannot sign for {sender}; wallet is {self.account.address}")

    def transfer(self, token_address: str, sender: str, recipient: str, amount: int) -> None:
        self._require_signer(sender)
        fn = self._erc20(token_address).functions.transfer(
            Web3.to_checksum_address(recipient), amount
        )
        self._send(fn, f"transfer {amount} -> {recipient}")

    def transfer_from(self, token_address: str, owner: str, recipient: str, amount: int) -> None:
        fn = self._erc20(token_address).functions.transferFrom(
            Web3.to_checksum_address(owner), Web3.to_checksum_address(recipient), amount
        )
        self._send(fn, f"transferFrom {owner} -> {recipient} {amount}")

    def transfer_nft(self, token_address: str, sender: str, recipient: str, token_id: int) -> None:
        fn = self._erc721(token_address).functions.transferFrom(
            Web3.to_checksum_address(sender), Web3.to_checksum_address(recipient), token_id
        )
        self._send(fn, f"transferFrom #{token_id} {sender} -> {recipient}")

    def owner_of(self, token_address: str, token_id: int) -> str:
        return self._erc721(token_address).functions.ownerOf(token_id).call()

    def balance_of(self, token_address: str, owner: str) -> int:
        return self._erc20(token_address).functions.balanceOf(
            Web3.to_checksum_address(owner)
        ).call()
