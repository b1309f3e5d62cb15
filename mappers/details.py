"""
Single-transaction detail views.
"""
from typing import Optional, Union

from core.schema import CreationTransaction, ModuleTransaction, MultisigTransaction, Safe, Transfer
from mappers.creation import CreationTransactionMapper
from mappers.data_decoded import DataDecoder
from mappers.models import (
    ModuleExecutionDetails,
    MultisigConfirmationDetails,
    MultisigExecutionDetails,
    Transaction,
    TransactionData,
    TransactionDetails,
)
from mappers.module import ModuleTransactionMapper
from mappers.multisig import MultisigTransactionMapper
from mappers.transfers import TransferMapper, to_millis


class TransactionDataMapper:
    def __init__(self, data_decoder: DataDecoder):
        self.data_decoder = data_decoder

    def map(self, transaction: Union[MultisigTransaction, ModuleTransaction]) -> TransactionData:
        data_decoded = self.data_decoder.decode(transaction.data, transaction.data_decoded)
        return TransactionData(
            hex_data=transaction.data,
            data_decoded=data_decoded.model_dump(by_alias=True) if data_decoded else None,
            to=transaction.to,
            value=transaction.value,
            operation=transaction.operation,
        )


class MultisigExecutionDetailsMapper:
    def map(self, transaction: MultisigTransaction, safe: Safe) -> MultisigExecutionDetails:
        """
        Signing and gas details of a multisig transaction.

        Args:
            transaction: Multisig transaction
            safe: Safe the transaction belongs to; its owners are the signers

        Returns:
            MultisigExecutionDetails
        """
        return MultisigExecutionDetails(
            submitted_at=to_millis(transaction.submission_date),
            nonce=transaction.nonce,
            safe_tx_gas=transaction.safe_tx_gas,
            base_gas=transaction.base_gas,
            gas_price=transaction.gas_price,
            gas_token=transaction.gas_token,
            refund_receiver=transaction.refund_receiver,
            safe_tx_hash=transaction.safe_tx_hash,
            executor=transaction.executor,
            signers=list(safe.owners),
            confirmations_required=transaction.confirmations_required,
            confirmations=[
                MultisigConfirmationDetails(
                    signer=confirmation.owner,
                    signature=confirmation.signature,
                    submitted_at=to_millis(confirmation.submission_date),
                )
                for confirmation in transaction.confirmations
            ],
            trusted=transaction.trusted,
        )


class TransactionDetailsMapper:
    """Builds TransactionDetails from already fetched upstream entities."""

    def __init__(
        self,
        multisig_transaction_mapper: MultisigTransactionMapper,
        module_transaction_mapper: ModuleTransactionMapper,
        transfer_mapper: TransferMapper,
        creation_transaction_mapper: CreationTransactionMapper,
        transaction_data_mapper: TransactionDataMapper,
        multisig_execution_details_mapper: MultisigExecutionDetailsMapper,
    ):
        self.multisig_transaction_mapper = multisig_transaction_mapper
        self.module_transaction_mapper = module_transaction_mapper
        self.transfer_mapper = transfer_mapper
        self.creation_transaction_mapper = creation_transaction_mapper
        self.transaction_data_mapper = transaction_data_mapper
        self.multisig_execution_details_mapper = multisig_execution_details_mapper

    async def map_multisig(self, safe: Safe, transaction: MultisigTransaction) -> TransactionDetails:
        mapped = await self.multisig_transaction_mapper.map(safe, transaction)
        return self._details(
            safe.address,
            mapped,
            tx_data=self.transaction_data_mapper.map(transaction),
            detailed_execution_info=self.multisig_execution_details_mapper.map(transaction, safe),
        )

    async def map_module(self, safe_address: str, transaction: ModuleTransaction) -> TransactionDetails:
        mapped = await self.module_transaction_mapper.map(safe_address, transaction)
        return self._details(
            safe_address,
            mapped,
            tx_data=self.transaction_data_mapper.map(transaction),
            detailed_execution_info=ModuleExecutionDetails(address=transaction.module),
        )

    async def map_transfer(self, safe_address: str, transfer: Transfer) -> TransactionDetails:
        mapped = await self.transfer_mapper.map_transfer(safe_address, transfer)
        return self._details(safe_address, mapped)

    def map_creation(self, safe_address: str, transaction: CreationTransaction) -> TransactionDetails:
        mapped = self.creation_transaction_mapper.map(safe_address, transaction)
        return self._details(safe_address, mapped)

    @staticmethod
    def _details(
        safe_address: str,
        transaction: Transaction,
        tx_data: Optional[TransactionData] = None,
        detailed_execution_info=None,
    ) -> TransactionDetails:
        return TransactionDetails(
            safe_address=safe_address,
            tx_id=transaction.id,
            executed_at=transaction.timestamp,
            tx_status=transaction.tx_status,
            tx_info=transaction.tx_info,
            tx_data=tx_data,
            detailed_execution_info=detailed_execution_info,
            tx_hash=transaction.tx_hash,
        )
