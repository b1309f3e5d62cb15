"""
Transaction info for calls executed by a Safe (multisig or module).

Resolution order: swap order, settings change, native transfer, token
transfer, custom. A failing step degrades to the next one.
"""
from typing import Union

from core.logger import setup_logger
from core.schema import ModuleTransaction, MultisigTransaction
from mappers.custom import MAPPING_ERRORS, CustomTransactionMapper
from mappers.data_decoded import DataDecodedParamHelper, DataDecoder
from mappers.settings_change import SettingsChangeMapper
from mappers.swap_order import SwapOrderMapper
from mappers.transfers import TransferInfoMapper

logger = setup_logger(__name__)


class MultisigTransactionInfoMapper:
    def __init__(
        self,
        data_decoder: DataDecoder,
        param_helper: DataDecodedParamHelper,
        transfer_info_mapper: TransferInfoMapper,
        settings_change_mapper: SettingsChangeMapper,
        custom_transaction_mapper: CustomTransactionMapper,
        swap_order_mapper: SwapOrderMapper,
    ):
        self.data_decoder = data_decoder
        self.param_helper = param_helper
        self.transfer_info_mapper = transfer_info_mapper
        self.settings_change_mapper = settings_change_mapper
        self.custom_transaction_mapper = custom_transaction_mapper
        self.swap_order_mapper = swap_order_mapper

    async def map(self, safe_address: str, transaction: Union[MultisigTransaction, ModuleTransaction]):
        """
        Resolve the info of a Safe call.

        Args:
            safe_address: Viewing Safe
            transaction: Multisig or module transaction

        Returns:
            A new TransactionInfo value
        """
        to = transaction.to
        data_decoded = self.data_decoder.decode(transaction.data, transaction.data_decoded)

        if self.swap_order_mapper.is_swap_order(to, data_decoded):
            try:
                return await self.swap_order_mapper.map(to, data_decoded)
            except MAPPING_ERRORS as e:
                logger.warning(f"Swap order enrichment failed for {transaction_ref(transaction)}: {e}")

        if self.settings_change_mapper.is_settings_change(safe_address, to, data_decoded):
            return self.settings_change_mapper.map(to, data_decoded)

        has_data = transaction.data is not None and transaction.data != "0x"
        if not has_data and transaction.value != "0":
            return self.transfer_info_mapper.map_native_call(safe_address, to, transaction.value)

        if self.param_helper.is_transfer_method(data_decoded) and data_decoded.parameters:
            try:
                transfer_info = await self.transfer_info_mapper.map_token_call(safe_address, to, data_decoded)
                if transfer_info is not None:
                    return transfer_info
            except MAPPING_ERRORS as e:
                logger.warning(f"Token transfer resolution failed for {transaction_ref(transaction)}: {e}")

        is_cancellation = isinstance(transaction, MultisigTransaction) and (
            self.custom_transaction_mapper.is_cancellation(safe_address, transaction)
        )
        return self.custom_transaction_mapper.map(
            to=to,
            value=transaction.value,
            data=transaction.data,
            data_decoded=data_decoded,
            is_cancellation=is_cancellation,
        )

    async def map_or_placeholder(self, safe_address: str, transaction: Union[MultisigTransaction, ModuleTransaction]):
        """Like ``map`` but never raises: unresolvable info becomes a Custom placeholder."""
        try:
            return await self.map(safe_address, transaction)
        except MAPPING_ERRORS as e:
            logger.warning(f"Transaction info degraded for {transaction_ref(transaction)}: {e}")
            return self.custom_transaction_mapper.placeholder(
                to=transaction.to, value=transaction.value, data=transaction.data
            )


def transaction_ref(transaction) -> str:
    """Short identifier for log lines."""
    for attribute in ("safe_tx_hash", "module_transaction_id", "transaction_hash", "tx_hash"):
        value = getattr(transaction, attribute, None)
        if value:
            return value
    return "unknown transaction"
