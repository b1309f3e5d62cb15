"""
Transaction classification and per-kind dispatch.

Every raw record is classified into a TransactionKind and routed to the
mapper registered for that kind. Unknown records map to a Custom fallback.
"""
from typing import Awaitable, Callable, Dict, List

from core.exceptions import ConfigurationError
from core.logger import setup_logger
from core.schema import (
    CreationTransaction,
    EthereumTransaction,
    ModuleTransaction,
    MultisigTransaction,
    RawTransaction,
    Safe,
    UnknownTransaction,
)
from mappers.creation import CreationTransactionMapper
from mappers.custom import MAPPING_ERRORS, CustomTransactionMapper
from mappers.data_decoded import DataDecoder
from mappers.models import Transaction, TransactionKind, TransactionStatus
from mappers.module import ModuleTransactionMapper
from mappers.multisig import MultisigTransactionMapper
from mappers.transaction_info import transaction_ref
from mappers.transfers import TransferMapper, to_millis

logger = setup_logger(__name__)

KIND_BY_TX_TYPE = {
    "MULTISIG_TRANSACTION": TransactionKind.MULTISIG,
    "MODULE_TRANSACTION": TransactionKind.MODULE,
    "CREATION_TRANSACTION": TransactionKind.CREATION,
    "ETHEREUM_TRANSACTION": TransactionKind.TRANSFER,
}

Handler = Callable[[Safe, RawTransaction], Awaitable[List[Transaction]]]


def classify(transaction: RawTransaction) -> TransactionKind:
    """
    Kind of a raw transaction record.

    Args:
        transaction: Validated upstream record

    Returns:
        TransactionKind, CUSTOM for anything unrecognised
    """
    kind = KIND_BY_TX_TYPE.get(getattr(transaction, "tx_type", None))
    if kind is None:
        logger.debug(f"Unknown transaction type '{getattr(transaction, 'tx_type', None)}', mapping as custom")
        return TransactionKind.CUSTOM
    return kind


def check_exhaustive(handlers: Dict[TransactionKind, Handler]) -> None:
    """
    Raises:
        ConfigurationError: If a TransactionKind has no handler
    """
    missing = [kind.value for kind in TransactionKind if kind not in handlers]
    if missing:
        raise ConfigurationError(
            "Transaction mapper is missing handlers",
            details={"missing_kinds": missing},
        )


class CustomFallbackMapper:
    """Maps records of an unknown kind to a Custom transaction carrying only the method."""

    def __init__(self, data_decoder: DataDecoder, custom_transaction_mapper: CustomTransactionMapper):
        self.data_decoder = data_decoder
        self.custom_transaction_mapper = custom_transaction_mapper

    def map(self, safe_address: str, transaction: UnknownTransaction) -> Transaction:
        data_decoded = self.data_decoder.decode(transaction.data, transaction.data_decoded)
        tx_hash = transaction.tx_hash or transaction.transaction_hash
        return Transaction(
            id=f"custom_{safe_address}_{tx_hash or 'unknown'}",
            kind=TransactionKind.CUSTOM,
            tx_hash=tx_hash,
            timestamp=to_millis(transaction.execution_date),
            tx_status=TransactionStatus.SUCCESS,
            tx_info=self.custom_transaction_mapper.placeholder(
                to=transaction.to, value=transaction.value, data=transaction.data
            ).model_copy(update={"method_name": data_decoded.method if data_decoded else None}),
        )


class TransactionMapper:
    """Dispatches raw records to the mapper of their kind."""

    def __init__(
        self,
        multisig_transaction_mapper: MultisigTransactionMapper,
        module_transaction_mapper: ModuleTransactionMapper,
        creation_transaction_mapper: CreationTransactionMapper,
        transfer_mapper: TransferMapper,
        custom_fallback_mapper: CustomFallbackMapper,
    ):
        self.multisig_transaction_mapper = multisig_transaction_mapper
        self.module_transaction_mapper = module_transaction_mapper
        self.creation_transaction_mapper = creation_transaction_mapper
        self.transfer_mapper = transfer_mapper
        self.custom_fallback_mapper = custom_fallback_mapper
        self._handlers: Dict[TransactionKind, Handler] = {
            TransactionKind.MULTISIG: self._map_multisig,
            TransactionKind.MODULE: self._map_module,
            TransactionKind.CREATION: self._map_creation,
            TransactionKind.TRANSFER: self._map_transfers,
            TransactionKind.CUSTOM: self._map_custom,
        }
        check_exhaustive(self._handlers)

    async def map_transactions(self, safe: Safe, transaction: RawTransaction) -> List[Transaction]:
        """
        Map one raw record into list transactions.

        An ethereum transaction yields one transfer per inner transfer; every
        other kind yields exactly one transaction.

        Args:
            safe: Viewing Safe
            transaction: Validated upstream record

        Returns:
            Mapped transactions, in upstream order
        """
        kind = classify(transaction)
        try:
            return await self._handlers[kind](safe, transaction)
        except MAPPING_ERRORS as e:
            logger.warning(f"Mapping {kind.value} transaction {transaction_ref(transaction)} failed: {e}")
            return [self._placeholder(safe.address, kind, transaction)]

    async def _map_multisig(self, safe: Safe, transaction: MultisigTransaction) -> List[Transaction]:
        return [await self.multisig_transaction_mapper.map(safe, transaction)]

    async def _map_module(self, safe: Safe, transaction: ModuleTransaction) -> List[Transaction]:
        return [await self.module_transaction_mapper.map(safe.address, transaction)]

    async def _map_creation(self, safe: Safe, transaction: CreationTransaction) -> List[Transaction]:
        return [self.creation_transaction_mapper.map(safe.address, transaction)]

    async def _map_transfers(self, safe: Safe, transaction: EthereumTransaction) -> List[Transaction]:
        return [
            await self.transfer_mapper.map_transfer(safe.address, transfer)
            for transfer in transaction.transfers
        ]

    async def _map_custom(self, safe: Safe, transaction: UnknownTransaction) -> List[Transaction]:
        return [self.custom_fallback_mapper.map(safe.address, transaction)]

    @staticmethod
    def _placeholder(safe_address: str, kind: TransactionKind, transaction: RawTransaction) -> Transaction:
        ref = transaction_ref(transaction)
        return Transaction(
            id=f"{kind.value.lower()}_{safe_address}_{ref}",
            kind=kind,
            tx_hash=getattr(transaction, "transaction_hash", None) or getattr(transaction, "tx_hash", None),
            timestamp=to_millis(getattr(transaction, "execution_date", None)),
            tx_status=TransactionStatus.SUCCESS,
            tx_info=CustomTransactionMapper.placeholder(
                to=getattr(transaction, "to", None),
                value=getattr(transaction, "value", None),
                data=getattr(transaction, "data", None),
            ),
        )
