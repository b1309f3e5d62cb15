"""
Multisig transactions: status, execution info and list mapping.
"""
from core.schema import MultisigTransaction, Safe
from mappers.models import (
    MultisigExecutionInfo,
    Transaction,
    TransactionKind,
    TransactionStatus,
)
from mappers.transaction_info import MultisigTransactionInfoMapper
from mappers.transfers import to_millis


class MultisigTransactionStatusMapper:
    def map(self, transaction: MultisigTransaction, safe: Safe) -> TransactionStatus:
        """
        Status of a multisig transaction relative to the Safe's current nonce.

        Args:
            transaction: Multisig transaction
            safe: Safe the transaction belongs to

        Returns:
            Transaction status
        """
        if transaction.is_executed:
            if transaction.is_successful is False:
                return TransactionStatus.FAILED
            return TransactionStatus.SUCCESS
        # Another transaction already consumed this nonce
        if transaction.nonce < safe.nonce:
            return TransactionStatus.CANCELLED
        if len(transaction.confirmations) >= transaction.confirmations_required:
            return TransactionStatus.AWAITING_EXECUTION
        return TransactionStatus.AWAITING_CONFIRMATIONS


class MultisigTransactionExecutionInfoMapper:
    def map(
        self,
        transaction: MultisigTransaction,
        safe: Safe,
        tx_status: TransactionStatus,
    ) -> MultisigExecutionInfo:
        missing_signers = None
        if tx_status == TransactionStatus.AWAITING_CONFIRMATIONS:
            confirmed = {confirmation.owner.lower() for confirmation in transaction.confirmations}
            missing_signers = [owner for owner in safe.owners if owner.lower() not in confirmed]

        return MultisigExecutionInfo(
            nonce=transaction.nonce,
            confirmations_required=transaction.confirmations_required,
            confirmations_submitted=len(transaction.confirmations),
            missing_signers=missing_signers,
        )


class MultisigTransactionMapper:
    def __init__(
        self,
        status_mapper: MultisigTransactionStatusMapper,
        execution_info_mapper: MultisigTransactionExecutionInfoMapper,
        transaction_info_mapper: MultisigTransactionInfoMapper,
    ):
        self.status_mapper = status_mapper
        self.execution_info_mapper = execution_info_mapper
        self.transaction_info_mapper = transaction_info_mapper

    async def map(self, safe: Safe, transaction: MultisigTransaction) -> Transaction:
        tx_status = self.status_mapper.map(transaction, safe)
        tx_info = await self.transaction_info_mapper.map_or_placeholder(safe.address, transaction)
        return Transaction(
            id=f"multisig_{safe.address}_{transaction.safe_tx_hash}",
            kind=TransactionKind.MULTISIG,
            tx_hash=transaction.transaction_hash,
            safe_tx_hash=transaction.safe_tx_hash,
            nonce=transaction.nonce,
            timestamp=to_millis(transaction.execution_date),
            submitted_at=to_millis(transaction.submission_date),
            tx_status=tx_status,
            tx_info=tx_info,
            execution_info=self.execution_info_mapper.map(transaction, safe, tx_status),
        )
