"""
Helpers over decoded call data, shared by every mapper that wraps a contract call.
"""
from typing import Any, Dict, List, Optional

from core.logger import setup_logger
from core.schema import DataDecoded

logger = setup_logger(__name__)

TRANSFER_METHOD = "transfer"
TRANSFER_FROM_METHOD = "transferFrom"
SAFE_TRANSFER_FROM_METHOD = "safeTransferFrom"
TRANSFER_METHODS = (TRANSFER_METHOD, TRANSFER_FROM_METHOD, SAFE_TRANSFER_FROM_METHOD)
MULTI_SEND_METHOD = "multiSend"
SET_PRE_SIGNATURE_METHOD = "setPreSignature"

# 4-byte selectors for calls upstream sometimes leaves undecoded
KNOWN_SELECTORS = {
    "0xa9059cbb": TRANSFER_METHOD,
    "0x23b872dd": TRANSFER_FROM_METHOD,
    "0x42842e0e": SAFE_TRANSFER_FROM_METHOD,
    "0x095ea7b3": "approve",
    "0x8d80ff0a": MULTI_SEND_METHOD,
    "0xec6cb13f": SET_PRE_SIGNATURE_METHOD,
}


class DataDecoder:
    """Resolves the decoded form of a call, degrading to None when unknown."""

    def decode(self, data: Optional[str], data_decoded: Optional[DataDecoded]) -> Optional[DataDecoded]:
        """
        Get decoded call data.

        Args:
            data: Raw hex call data
            data_decoded: Decoding provided by upstream, if any

        Returns:
            Decoded data; a parameterless decoding when only the selector is
            recognized; None otherwise
        """
        if data_decoded is not None:
            return data_decoded
        method = self.method_from_selector(data)
        if method is None:
            if data and data != "0x":
                logger.debug(f"Could not decode call data with selector {data[:10]}")
            return None
        return DataDecoded(method=method, parameters=[])

    @staticmethod
    def method_from_selector(data: Optional[str]) -> Optional[str]:
        if not data or len(data) < 10:
            return None
        return KNOWN_SELECTORS.get(data[:10].lower())


class DataDecodedParamHelper:
    """Positional and named access to decoded parameters."""

    def get_param(self, data_decoded: Optional[DataDecoded], index: int) -> Any:
        if data_decoded is None or index >= len(data_decoded.parameters):
            return None
        return data_decoded.parameters[index].value

    def get_named_params(self, data_decoded: Optional[DataDecoded]) -> Dict[str, Any]:
        """Parameter values keyed by name, with and without a leading underscore."""
        if data_decoded is None:
            return {}
        params = {}
        for parameter in data_decoded.parameters:
            params[parameter.name] = parameter.value
            params.setdefault(parameter.name.lstrip("_"), parameter.value)
        return params

    def get_from_param(self, data_decoded: Optional[DataDecoded], fallback: Optional[str]) -> Optional[str]:
        """
        Sender of a token transfer call.

        ``transfer`` moves tokens from the caller, so the fallback (usually the
        Safe) is returned for it.
        """
        if data_decoded is None:
            return fallback
        if data_decoded.method in (TRANSFER_FROM_METHOD, SAFE_TRANSFER_FROM_METHOD):
            value = self.get_param(data_decoded, 0)
            return value if isinstance(value, str) else fallback
        return fallback

    def get_to_param(self, data_decoded: Optional[DataDecoded], fallback: Optional[str]) -> Optional[str]:
        if data_decoded is None:
            return fallback
        if data_decoded.method == TRANSFER_METHOD:
            value = self.get_param(data_decoded, 0)
        elif data_decoded.method in (TRANSFER_FROM_METHOD, SAFE_TRANSFER_FROM_METHOD):
            value = self.get_param(data_decoded, 1)
        else:
            return fallback
        return value if isinstance(value, str) else fallback

    def get_value_param(self, data_decoded: Optional[DataDecoded], fallback: Optional[str]) -> Optional[str]:
        """Amount (ERC20) or token id (ERC721) of a token transfer call."""
        if data_decoded is None:
            return fallback
        if data_decoded.method == TRANSFER_METHOD:
            value = self.get_param(data_decoded, 1)
        elif data_decoded.method in (TRANSFER_FROM_METHOD, SAFE_TRANSFER_FROM_METHOD):
            value = self.get_param(data_decoded, 2)
        else:
            return fallback
        return str(value) if value is not None else fallback

    def is_transfer_method(self, data_decoded: Optional[DataDecoded]) -> bool:
        return data_decoded is not None and data_decoded.method in TRANSFER_METHODS

    def get_multi_send_actions(self, data_decoded: Optional[DataDecoded]) -> Optional[List[Any]]:
        """Inner calls of a multiSend, or None when not a decoded multiSend."""
        if data_decoded is None or data_decoded.method != MULTI_SEND_METHOD:
            return None
        if not data_decoded.parameters:
            return None
        actions = data_decoded.parameters[0].value_decoded
        return actions if isinstance(actions, list) else None

    def get_action_count(self, data_decoded: Optional[DataDecoded]) -> Optional[int]:
        actions = self.get_multi_send_actions(data_decoded)
        return len(actions) if actions is not None else None
