"""
Transfer mapping: native coin, ERC20 and ERC721 movements seen from the viewing Safe.
"""
from typing import Optional

from core.addresses import same_address
from core.logger import setup_logger
from core.schema import DataDecoded, Token, Transfer
from mappers.custom import MAPPING_ERRORS, CustomTransactionMapper
from mappers.data_decoded import DataDecodedParamHelper
from mappers.human_description import HumanDescriptionMapper, format_amount
from mappers.models import (
    Erc20Transfer,
    Erc721Transfer,
    NativeCoinTransfer,
    Transaction,
    TransactionKind,
    TransactionStatus,
    TransferDirection,
    TransferTransactionInfo,
)

logger = setup_logger(__name__)


def get_transfer_direction(safe_address: str, sender: Optional[str], recipient: Optional[str]) -> TransferDirection:
    if same_address(safe_address, sender):
        return TransferDirection.OUTGOING
    if same_address(safe_address, recipient):
        return TransferDirection.INCOMING
    return TransferDirection.UNKNOWN


def to_millis(value) -> Optional[int]:
    return int(value.timestamp() * 1000) if value is not None else None


def build_token_transfer(token: Token, value: Optional[str], token_address: Optional[str] = None):
    """ERC20 or ERC721 transfer payload for a token, None for other token types."""
    address = token_address or token.address
    if token.type == "ERC20":
        return Erc20Transfer(
            token_address=address,
            token_name=token.name,
            token_symbol=token.symbol,
            logo_uri=token.logo_uri,
            decimals=token.decimals,
            value=value or "0",
            trusted=token.trusted,
        )
    if token.type == "ERC721":
        return Erc721Transfer(
            token_address=address,
            token_id=value or "0",
            token_name=token.name,
            token_symbol=token.symbol,
            logo_uri=token.logo_uri,
            trusted=token.trusted,
        )
    return None


class TransferInfoMapper:
    """Builds TransferTransactionInfo for calls and for indexed transfers."""

    def __init__(
        self,
        token_api,
        param_helper: DataDecodedParamHelper,
        human_description_mapper: HumanDescriptionMapper,
    ):
        """
        Initialize mapper.

        Args:
            token_api: Object exposing ``async get_token(address) -> Token``
            param_helper: Decoded parameter helper
            human_description_mapper: Description builder
        """
        self.token_api = token_api
        self.param_helper = param_helper
        self.human_description_mapper = human_description_mapper

    def map_native_call(self, safe_address: str, to: str, value: str) -> TransferTransactionInfo:
        """A Safe call that only moves native coin."""
        return TransferTransactionInfo(
            sender=safe_address,
            recipient=to,
            direction=get_transfer_direction(safe_address, safe_address, to),
            transfer_info=NativeCoinTransfer(value=value),
            human_description=self._native_description(value, to),
        )

    async def map_token_call(
        self,
        safe_address: str,
        to: str,
        data_decoded: DataDecoded,
    ) -> Optional[TransferTransactionInfo]:
        """
        A Safe call to a token's transfer method.

        Returns:
            Transfer info, or None when ``to`` is not an ERC20/ERC721 token
        """
        token = await self.token_api.get_token(to)
        value = self.param_helper.get_value_param(data_decoded, None)
        transfer_info = build_token_transfer(token, value, token_address=to)
        if transfer_info is None:
            return None

        sender = self.param_helper.get_from_param(data_decoded, safe_address)
        recipient = self.param_helper.get_to_param(data_decoded, to)
        return TransferTransactionInfo(
            sender=sender,
            recipient=recipient,
            direction=get_transfer_direction(safe_address, sender, recipient),
            transfer_info=transfer_info,
            human_description=self.human_description_mapper.map(data_decoded, to, token),
        )

    async def map_transfer(self, safe_address: str, transfer: Transfer) -> TransferTransactionInfo:
        """An indexed transfer from the history endpoint."""
        if transfer.type == "ETHER_TRANSFER":
            transfer_info = NativeCoinTransfer(value=transfer.value or "0")
        else:
            token = transfer.token_info
            if token is None:
                token = await self.token_api.get_token(transfer.token_address)
            value = transfer.value if transfer.type == "ERC20_TRANSFER" else transfer.token_id
            transfer_info = build_token_transfer(token, value, token_address=transfer.token_address)
            if transfer_info is None:
                raise ValueError(f"Token {token.address} of type {token.type} cannot be transferred")

        return TransferTransactionInfo(
            sender=transfer.from_,
            recipient=transfer.to,
            direction=get_transfer_direction(safe_address, transfer.from_, transfer.to),
            transfer_info=transfer_info,
        )

    def _native_description(self, value: str, to: str) -> Optional[str]:
        if not self.human_description_mapper.enabled:
            return None
        return f"Send {format_amount(value, 18)} native coin to {to}"


class TransferMapper:
    """Maps indexed transfers into history transactions."""

    def __init__(self, transfer_info_mapper: TransferInfoMapper):
        self.transfer_info_mapper = transfer_info_mapper

    async def map_transfer(self, safe_address: str, transfer: Transfer) -> Transaction:
        try:
            tx_info = await self.transfer_info_mapper.map_transfer(safe_address, transfer)
        except MAPPING_ERRORS as e:
            logger.warning(f"Transfer info degraded for {transfer.transfer_id}: {e}")
            tx_info = CustomTransactionMapper.placeholder(to=transfer.to, value=transfer.value)
        return Transaction(
            id=f"transfer_{safe_address}_{transfer.transfer_id}",
            kind=TransactionKind.TRANSFER,
            tx_hash=transfer.transaction_hash,
            timestamp=to_millis(transfer.execution_date),
            tx_status=TransactionStatus.SUCCESS,
            tx_info=tx_info,
        )
