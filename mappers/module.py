"""Transactions executed through an enabled Safe module."""
from core.schema import ModuleTransaction
from mappers.models import ModuleExecutionInfo, Transaction, TransactionKind, TransactionStatus
from mappers.transaction_info import MultisigTransactionInfoMapper
from mappers.transfers import to_millis


class ModuleTransactionStatusMapper:
    def map(self, transaction: ModuleTransaction) -> TransactionStatus:
        return TransactionStatus.SUCCESS if transaction.is_successful else TransactionStatus.FAILED


class ModuleTransactionMapper:
    def __init__(
        self,
        status_mapper: ModuleTransactionStatusMapper,
        transaction_info_mapper: MultisigTransactionInfoMapper,
    ):
        self.status_mapper = status_mapper
        self.transaction_info_mapper = transaction_info_mapper

    async def map(self, safe_address: str, transaction: ModuleTransaction) -> Transaction:
        tx_info = await self.transaction_info_mapper.map_or_placeholder(safe_address, transaction)
        return Transaction(
            id=f"module_{safe_address}_{transaction.module_transaction_id}",
            kind=TransactionKind.MODULE,
            tx_hash=transaction.transaction_hash,
            timestamp=to_millis(transaction.execution_date),
            tx_status=self.status_mapper.map(transaction),
            tx_info=tx_info,
            execution_info=ModuleExecutionInfo(
                address=transaction.module,
                module_transaction_id=transaction.module_transaction_id,
            ),
        )
