"""
Swap-order enrichment for calls that pre-sign an order on a settlement contract.
"""
import asyncio
import decimal
from decimal import Decimal
from typing import List, Optional

from core.addresses import same_address
from core.logger import setup_logger
from core.schema import DataDecoded, SwapOrder, Token
from mappers.data_decoded import SET_PRE_SIGNATURE_METHOD, DataDecodedParamHelper
from mappers.human_description import HumanDescriptionMapper, format_amount
from mappers.models import SwapOrderTransactionInfo, TokenInfo

logger = setup_logger(__name__)

PRICE_PRECISION = 18


def compute_price(
    buy_amount: str,
    buy_decimals: Optional[int],
    sell_amount: str,
    sell_decimals: Optional[int],
) -> Optional[str]:
    """
    Buy-token units received per sell-token unit.

    Returns:
        Price string, or None when nothing was sold
    """
    sell = Decimal(sell_amount).scaleb(-(sell_decimals or 0))
    if sell == 0:
        return None
    buy = Decimal(buy_amount).scaleb(-(buy_decimals or 0))
    with decimal.localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        price = buy / sell
    return format(price.normalize(), "f")


def to_token_info(token: Token) -> TokenInfo:
    return TokenInfo(
        address=token.address,
        decimals=token.decimals,
        logo_uri=token.logo_uri,
        name=token.name,
        symbol=token.symbol,
        trusted=token.trusted,
    )


class SwapOrderMapper:
    """Resolves the order behind a ``setPreSignature`` call."""

    def __init__(
        self,
        swaps_api,
        token_api,
        param_helper: DataDecodedParamHelper,
        human_description_mapper: HumanDescriptionMapper,
        settlement_contracts: List[str],
        explorer_url: Optional[str] = None,
    ):
        """
        Initialize mapper.

        Args:
            swaps_api: Object exposing ``async get_order(uid) -> SwapOrder``
            token_api: Object exposing ``async get_token(address) -> Token``
            param_helper: Decoded parameter helper
            human_description_mapper: Description builder
            settlement_contracts: Contracts whose pre-signatures are swap orders
            explorer_url: Base URL of the order explorer
        """
        self.swaps_api = swaps_api
        self.token_api = token_api
        self.param_helper = param_helper
        self.human_description_mapper = human_description_mapper
        self.settlement_contracts = list(settlement_contracts)
        self.explorer_url = explorer_url.rstrip("/") if explorer_url else None

    def is_swap_order(self, to: Optional[str], data_decoded: Optional[DataDecoded]) -> bool:
        return (
            data_decoded is not None
            and data_decoded.method == SET_PRE_SIGNATURE_METHOD
            and any(same_address(to, contract) for contract in self.settlement_contracts)
        )

    async def map(self, to: str, data_decoded: DataDecoded) -> SwapOrderTransactionInfo:
        """
        Build swap-order info.

        Raises:
            ValueError: If the call carries no order uid
            FetchError, ValidationError: If the order or its tokens cannot be resolved
        """
        order_uid = self.param_helper.get_named_params(data_decoded).get("orderUid")
        if not isinstance(order_uid, str):
            raise ValueError("setPreSignature call without an order uid")

        order = await self.swaps_api.get_order(order_uid)
        sell_token, buy_token = await asyncio.gather(
            self.token_api.get_token(order.sell_token),
            self.token_api.get_token(order.buy_token),
        )
        return SwapOrderTransactionInfo(
            uid=order.uid,
            status=order.status,
            kind=order.kind,
            order_class=order.class_,
            valid_until=order.valid_to,
            sell_amount=order.sell_amount,
            buy_amount=order.buy_amount,
            executed_sell_amount=order.executed_sell_amount,
            executed_buy_amount=order.executed_buy_amount,
            sell_token=to_token_info(sell_token),
            buy_token=to_token_info(buy_token),
            limit_price=compute_price(order.buy_amount, buy_token.decimals, order.sell_amount, sell_token.decimals),
            executed_price=compute_price(
                order.executed_buy_amount, buy_token.decimals, order.executed_sell_amount, sell_token.decimals
            ),
            explorer_url=f"{self.explorer_url}/orders/{order.uid}" if self.explorer_url else None,
            human_description=self._describe(order, sell_token, buy_token),
        )

    def _describe(self, order: SwapOrder, sell_token: Token, buy_token: Token) -> Optional[str]:
        if not self.human_description_mapper.enabled:
            return None
        sell = format_amount(order.sell_amount, sell_token.decimals)
        buy = format_amount(order.buy_amount, buy_token.decimals)
        return f"Swap {sell} {sell_token.symbol} for {buy} {buy_token.symbol}"
