"""
Safe configuration changes: owners, threshold, modules, guard, fallback handler, master copy.
"""
from typing import Callable, Dict, Optional

from core.addresses import NULL_ADDRESS, same_address
from core.schema import DataDecoded
from mappers.data_decoded import DataDecodedParamHelper
from mappers.human_description import HumanDescriptionMapper
from mappers.models import SettingsChangeTransactionInfo, SettingsInfo


def _int_or_none(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SettingsChangeMapper:
    """Recognizes calls a Safe makes to itself that change its configuration."""

    def __init__(self, param_helper: DataDecodedParamHelper, human_description_mapper: HumanDescriptionMapper):
        self.param_helper = param_helper
        self.human_description_mapper = human_description_mapper
        self._builders: Dict[str, Callable[[Dict], SettingsInfo]] = {
            "addOwnerWithThreshold": lambda p: SettingsInfo(
                type="ADD_OWNER", owner=p.get("owner"), threshold=_int_or_none(p.get("threshold"))
            ),
            "removeOwner": lambda p: SettingsInfo(
                type="REMOVE_OWNER", owner=p.get("owner"), threshold=_int_or_none(p.get("threshold"))
            ),
            "swapOwner": lambda p: SettingsInfo(
                type="SWAP_OWNER", old_owner=p.get("oldOwner"), new_owner=p.get("newOwner")
            ),
            "changeThreshold": lambda p: SettingsInfo(
                type="CHANGE_THRESHOLD", threshold=_int_or_none(p.get("threshold"))
            ),
            "changeMasterCopy": lambda p: SettingsInfo(
                type="CHANGE_MASTER_COPY", implementation=p.get("masterCopy")
            ),
            "enableModule": lambda p: SettingsInfo(type="ENABLE_MODULE", module=p.get("module")),
            "disableModule": lambda p: SettingsInfo(type="DISABLE_MODULE", module=p.get("module")),
            "setFallbackHandler": lambda p: SettingsInfo(
                type="SET_FALLBACK_HANDLER", handler=p.get("handler")
            ),
            "setGuard": self._guard_info,
        }

    def is_settings_change(self, safe_address: str, to: str, data_decoded: Optional[DataDecoded]) -> bool:
        return (
            data_decoded is not None
            and same_address(safe_address, to)
            and data_decoded.method in self._builders
        )

    def map(self, to: str, data_decoded: DataDecoded) -> SettingsChangeTransactionInfo:
        params = self.param_helper.get_named_params(data_decoded)
        return SettingsChangeTransactionInfo(
            data_decoded=data_decoded.model_dump(by_alias=True),
            settings_info=self._builders[data_decoded.method](params),
            human_description=self.human_description_mapper.map(data_decoded, to),
        )

    @staticmethod
    def _guard_info(params: Dict) -> SettingsInfo:
        guard = params.get("guard")
        if guard is None or same_address(guard, NULL_ADDRESS):
            return SettingsInfo(type="DELETE_GUARD")
        return SettingsInfo(type="SET_GUARD", guard=guard)
