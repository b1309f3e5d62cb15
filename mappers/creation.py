"""Safe creation transaction."""
from core.schema import CreationTransaction
from mappers.models import (
    CreationTransactionInfo,
    Transaction,
    TransactionKind,
    TransactionStatus,
)
from mappers.transfers import to_millis


class CreationTransactionMapper:
    def map(self, safe_address: str, transaction: CreationTransaction) -> Transaction:
        return Transaction(
            id=f"creation_{safe_address}",
            kind=TransactionKind.CREATION,
            tx_hash=transaction.transaction_hash,
            timestamp=to_millis(transaction.created),
            tx_status=TransactionStatus.SUCCESS,
            tx_info=CreationTransactionInfo(
                creator=transaction.creator,
                transaction_hash=transaction.transaction_hash,
                implementation=transaction.master_copy,
                factory=transaction.factory_address,
            ),
        )
