from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from config import config
from db.db import init_db
from db.repositories import TokenEventRepository
from domain.token import Address, TokenEvent, TokenMetadata, parse_address
from domain.token_ledger import LedgerError, TokenLedger

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "0x1"


class ContractNotLoadedError(RuntimeError):
    def __init__(self) -> None:
        super().__init__("Contract not deployed or loaded")


class ContractNotFoundError(LookupError):
    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"No contract deployed at {address}")


@dataclass(frozen=True)
class TransactionReceipt:
    transaction_hash: str
    block_number: int
    status: str
    contract_address: Address
    caller: Address
    events: tuple[TokenEvent, ...]
    # False when the event archive rejected the write; the ledger change still stands.
    archived: bool = True


class TokenService:
    """Submits operations to deployed token ledgers on behalf of a caller identity.

    Stands where a node client would: it owns the deployed contracts, numbers
    blocks, issues receipts and archives the emitted events.
    """

    def __init__(
        self,
        *,
        default_caller: Address,
        default_metadata: TokenMetadata | None = None,
        event_repository: TokenEventRepository | None = None,
    ) -> None:
        self.default_caller = default_caller
        self.default_metadata = default_metadata or TokenMetadata()
        self.event_repository = event_repository
        self._contracts: dict[Address, TokenLedger] = {}
        self._contract: TokenLedger | None = None
        self._contract_address: Address | None = None
        self._deploy_nonce = 0
        self._block_number = 0
        self._lock = threading.Lock()

    @property
    def contract_address(self) -> Address | None:
        with self._lock:
            return self._contract_address

    def deploy_contract(self, metadata: TokenMetadata | None = None) -> Address:
        logger.info("Deploying token contract...")
        with self._lock:
            address = self._derive_contract_address(self.default_caller, self._deploy_nonce)
            self._deploy_nonce += 1
            ledger = TokenLedger(metadata or self.default_metadata)
            self._contracts[address] = ledger
            self._contract = ledger
            self._contract_address = address
        logger.info("Token contract %s (%s) deployed to: %s", ledger.name(), ledger.symbol(), address)
        return address

    def load_contract(self, address: Address) -> None:
        logger.info("Loading token contract from address: %s", address)
        with self._lock:
            ledger = self._contracts.get(address)
            if ledger is None:
                raise ContractNotFoundError(address)
            self._contract = ledger
            self._contract_address = address

    def ledger(self) -> TokenLedger:
        with self._lock:
            if self._contract is None:
                raise ContractNotLoadedError()
            return self._contract

    # Mutations

    def mint(self, to: Address, amount: int, *, caller: Address | None = None) -> TransactionReceipt:
        logger.info("Minting %d tokens to address: %s", amount, to)
        return self._submit("mint", caller, lambda ledger, _: ledger.mint(to, amount))

    def transfer(self, to: Address, amount: int, *, caller: Address | None = None) -> TransactionReceipt:
        logger.info("Transferring %d tokens to address: %s", amount, to)
        return self._submit("transfer", caller, lambda ledger, sender: ledger.transfer(sender, to, amount))

    def approve(self, spender: Address, amount: int, *, caller: Address | None = None) -> TransactionReceipt:
        logger.info("Approving %d tokens for address: %s", amount, spender)
        return self._submit("approve", caller, lambda ledger, sender: ledger.approve(sender, spender, amount))

    def transfer_from(
        self,
        from_address: Address,
        to: Address,
        amount: int,
        *,
        caller: Address | None = None,
    ) -> TransactionReceipt:
        logger.info("Transferring %d tokens from %s to %s", amount, from_address, to)
        return self._submit(
            "transferFrom",
            caller,
            lambda ledger, sender: ledger.transfer_from(sender, from_address, to, amount),
        )

    def burn(self, amount: int, *, caller: Address | None = None) -> TransactionReceipt:
        logger.info("Burning %d tokens", amount)
        return self._submit("burn", caller, lambda ledger, sender: ledger.burn(sender, amount))

    # Reads

    def balance_of(self, owner: Address) -> int:
        logger.info("Getting balance for address: %s", owner)
        return self.ledger().balance_of(owner)

    def allowance(self, owner: Address, spender: Address) -> int:
        logger.info("Getting allowance for owner: %s spender: %s", owner, spender)
        return self.ledger().allowance_of(owner, spender)

    def total_supply(self) -> int:
        logger.info("Getting total supply")
        return self.ledger().total_supply()

    def name(self) -> str:
        return self.ledger().name()

    def symbol(self) -> str:
        return self.ledger().symbol()

    def decimals(self) -> int:
        return self.ledger().decimals()

    def _submit(
        self,
        function: str,
        caller: Address | None,
        call: Callable[[TokenLedger, Address], TokenEvent],
    ) -> TransactionReceipt:
        sender = caller or self.default_caller
        with self._lock:
            if self._contract is None or self._contract_address is None:
                raise ContractNotLoadedError()
            ledger, contract_address = self._contract, self._contract_address
            try:
                call(ledger, sender)
            except LedgerError as err:
                logger.warning("%s from %s reverted: %s", function, sender, err)
                raise
            events = tuple(ledger.drain_events())
            self._block_number += 1
            receipt = TransactionReceipt(
                transaction_hash=self._transaction_hash(contract_address, self._block_number, sender, function),
                block_number=self._block_number,
                status=STATUS_SUCCESS,
                contract_address=contract_address,
                caller=sender,
                events=events,
            )
            # The archive session is shared, so writes stay under the lock.
            if self.event_repository is not None:
                try:
                    self.event_repository.create_many(contract_address, events)
                except SQLAlchemyError:
                    logger.exception("Archiving events of %s in block %d failed", function, receipt.block_number)
                    return replace(receipt, archived=False)
        return receipt

    @staticmethod
    def _derive_contract_address(deployer: Address, nonce: int) -> Address:
        digest = hashlib.sha256(f"{deployer}:{nonce}".encode()).hexdigest()
        return Address("0x" + digest[-40:])

    @staticmethod
    def _transaction_hash(contract_address: Address, block_number: int, sender: Address, function: str) -> str:
        digest = hashlib.sha256(f"{contract_address}:{block_number}:{sender}:{function}".encode()).hexdigest()
        return "0x" + digest


def build_token_service(database_url: str | None = None, *, reset: bool = False) -> TokenService:
    settings = config()
    session = init_db(database_url or settings.database_url, reset=reset)
    return TokenService(
        default_caller=parse_address(settings.default_caller),
        default_metadata=settings.token_metadata(),
        event_repository=TokenEventRepository(session),
    )
