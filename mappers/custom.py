"""Generic contract interactions and the Custom fallback."""
from typing import Optional

from core.addresses import same_address
from core.exceptions import GatewayException
from core.schema import DataDecoded, MultisigTransaction
from mappers.data_decoded import DataDecodedParamHelper
from mappers.human_description import HumanDescriptionMapper
from mappers.models import CustomTransactionInfo

# Failures a sub-mapper may raise that only degrade the affected field
MAPPING_ERRORS = (GatewayException, ValueError, TypeError, KeyError)


def data_size(data: Optional[str]) -> str:
    """Byte length of hex call data, as a string."""
    if not data or not data.startswith("0x"):
        return "0"
    return str((len(data) - 2) // 2)


class CustomTransactionMapper:
    def __init__(self, param_helper: DataDecodedParamHelper, human_description_mapper: HumanDescriptionMapper):
        self.param_helper = param_helper
        self.human_description_mapper = human_description_mapper

    def map(
        self,
        to: Optional[str],
        value: Optional[str],
        data: Optional[str],
        data_decoded: Optional[DataDecoded],
        is_cancellation: bool = False,
    ) -> CustomTransactionInfo:
        return CustomTransactionInfo(
            to=to,
            data_size=data_size(data),
            value=value,
            method_name=data_decoded.method if data_decoded else None,
            action_count=self.param_helper.get_action_count(data_decoded),
            is_cancellation=is_cancellation,
            human_description=self.human_description_mapper.map(data_decoded, to) if data_decoded else None,
        )

    @staticmethod
    def placeholder(to: Optional[str] = None, value: Optional[str] = None, data: Optional[str] = None) -> CustomTransactionInfo:
        """Info used when the real one could not be resolved."""
        return CustomTransactionInfo(to=to, data_size=data_size(data), value=value)

    @staticmethod
    def is_cancellation(safe_address: str, transaction: MultisigTransaction) -> bool:
        """A zero-value, empty-data self call that only burns a nonce."""
        return (
            same_address(safe_address, transaction.to)
            and transaction.value == "0"
            and (transaction.data is None or transaction.data == "0x")
            and transaction.operation == 0
            and (transaction.base_gas or "0") == "0"
            and (transaction.gas_price or "0") == "0"
            and (transaction.safe_tx_gas or "0") == "0"
        )
