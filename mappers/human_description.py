"""
Human-readable descriptions of contract calls.
Templates are keyed by method name and filled with decoded parameter values.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from core.logger import setup_logger
from core.schema import DataDecoded, Token
from mappers.data_decoded import DataDecodedParamHelper

logger = setup_logger(__name__)

HUMAN_DESCRIPTION_TEMPLATES: Dict[str, str] = {
    "transfer": "Send {amount} to {to}",
    "transferFrom": "Send {amount} from {from} to {to}",
    "safeTransferFrom": "Send {symbol} #{tokenId} from {from} to {to}",
    "approve": "Approve {spender} to spend {amount}",
    "addOwnerWithThreshold": "Add owner {owner} and set threshold to {threshold}",
    "removeOwner": "Remove owner {owner} and set threshold to {threshold}",
    "swapOwner": "Replace owner {oldOwner} with {newOwner}",
    "changeThreshold": "Change threshold to {threshold}",
    "enableModule": "Enable module {module}",
    "disableModule": "Disable module {module}",
    "setFallbackHandler": "Set fallback handler to {handler}",
    "setGuard": "Set guard to {guard}",
    "changeMasterCopy": "Upgrade Safe to {masterCopy}",
    "multiSend": "Execute a batch of {actionCount} actions",
    "setPreSignature": "Sign swap order {orderUid}",
}

# Methods whose ``value``/``wad`` parameter is a token amount
AMOUNT_METHODS = ("transfer", "transferFrom", "approve")


def format_amount(value: Any, decimals: Optional[int]) -> str:
    """
    Scale a raw integer amount by token decimals.

    Args:
        value: Raw amount
        decimals: Token decimals, None leaves the amount unscaled

    Returns:
        Plain decimal string without exponent or trailing zeros
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return str(value)
    if decimals:
        amount = amount.scaleb(-decimals)
    text = format(amount.normalize(), "f")
    return text


class HumanDescriptionMapper:
    """Builds one-line descriptions of decoded calls."""

    def __init__(self, param_helper: DataDecodedParamHelper, enabled: bool = True):
        self.param_helper = param_helper
        self.enabled = enabled

    def map(
        self,
        data_decoded: Optional[DataDecoded],
        to: Optional[str],
        token: Optional[Token] = None,
    ) -> Optional[str]:
        """
        Describe a call.

        Args:
            data_decoded: Decoded call, None for plain value transfers
            to: Called contract
            token: Token behind ``to`` when it is one

        Returns:
            Description, the generic fallback when no template fits, or None when disabled
        """
        if not self.enabled:
            return None
        if data_decoded is None:
            return f"Interact with {to}" if to else None

        template = HUMAN_DESCRIPTION_TEMPLATES.get(data_decoded.method)
        if template is None:
            return self._generic(data_decoded.method, to)

        params = self._template_params(data_decoded, token)
        try:
            return template.format_map(params)
        except (KeyError, IndexError, ValueError) as e:
            logger.debug(f"Template for '{data_decoded.method}' missing parameter {e}")
            return self._generic(data_decoded.method, to)

    def _template_params(self, data_decoded: DataDecoded, token: Optional[Token]) -> Dict[str, Any]:
        params = self.param_helper.get_named_params(data_decoded)
        symbol = token.symbol if token else None
        if symbol:
            params["symbol"] = symbol
        elif "symbol" not in params:
            params["symbol"] = "token"

        if data_decoded.method in AMOUNT_METHODS:
            raw = params.get("value", params.get("wad", params.get("amount")))
            if raw is not None:
                amount = format_amount(raw, token.decimals if token else None)
                params["amount"] = f"{amount} {symbol}" if symbol else amount

        action_count = self.param_helper.get_action_count(data_decoded)
        if action_count is not None:
            params["actionCount"] = action_count
        return params

    @staticmethod
    def _generic(method: str, to: Optional[str]) -> str:
        if to:
            return f"Call {method} on {to}"
        return f"Call {method}"
