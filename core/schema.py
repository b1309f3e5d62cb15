"""
Pydantic models for validated upstream payloads.
Every model is frozen: entities are built fresh per request and never mutated.
"""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def to_str(v):
    """Normalize integer amounts to strings without precision loss."""
    if v is None or isinstance(v, str):
        return v
    return str(v)


def to_int(v):
    """Upstream sends some counters as strings."""
    if isinstance(v, str):
        return int(v)
    return v


Amount = Annotated[str, BeforeValidator(to_str)]
OptionalAmount = Annotated[Optional[str], BeforeValidator(to_str)]
Counter = Annotated[int, BeforeValidator(to_int)]


class UpstreamModel(BaseModel):
    """Base for camelCase upstream payloads."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class BalanceToken(UpstreamModel):
    name: str
    symbol: str
    decimals: int
    logo_uri: Optional[str] = None


class Balance(UpstreamModel):
    token_address: Optional[str] = None
    token: Optional[BalanceToken] = None
    balance: Amount
    fiat_balance: OptionalAmount = None
    fiat_conversion: OptionalAmount = None
    trusted: Optional[bool] = None
    spam: Optional[bool] = None


class Backbone(UpstreamModel):
    """Chain-level metadata of the upstream service instance."""
    chain_id: Optional[str] = None
    name: str
    version: Optional[str] = None
    api_version: Optional[str] = Field(default=None, alias="api_version")
    secure: Optional[bool] = None
    host: Optional[str] = None
    headers: Optional[List[str]] = None
    settings: Dict[str, Any] = Field(default_factory=dict)


class Token(UpstreamModel):
    address: str
    decimals: Optional[int] = None
    logo_uri: Optional[str] = None
    name: str
    symbol: str
    type: Literal["ERC20", "ERC721", "NATIVE_TOKEN", "UNKNOWN"] = "UNKNOWN"
    trusted: bool = False


class Safe(UpstreamModel):
    address: str
    nonce: Counter
    threshold: int
    owners: List[str]
    master_copy: Optional[str] = None
    modules: List[str] = Field(default_factory=list)
    fallback_handler: Optional[str] = None
    guard: Optional[str] = None
    version: Optional[str] = None


class Confirmation(UpstreamModel):
    owner: str
    submission_date: datetime
    transaction_hash: Optional[str] = None
    signature: Optional[str] = None
    signature_type: Optional[str] = None


class DataDecodedParameter(UpstreamModel):
    name: str
    type: str
    value: Any = None
    value_decoded: Any = None


class DataDecoded(UpstreamModel):
    method: str
    parameters: List[DataDecodedParameter] = Field(default_factory=list)


class MultisigTransaction(UpstreamModel):
    tx_type: Literal["MULTISIG_TRANSACTION"] = "MULTISIG_TRANSACTION"
    safe: str
    to: str
    value: Amount = "0"
    data: Optional[str] = None
    data_decoded: Optional[DataDecoded] = None
    operation: int = 0
    gas_token: Optional[str] = None
    safe_tx_gas: OptionalAmount = None
    base_gas: OptionalAmount = None
    gas_price: OptionalAmount = None
    refund_receiver: Optional[str] = None
    nonce: Counter
    execution_date: Optional[datetime] = None
    submission_date: datetime
    modified: Optional[datetime] = None
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    safe_tx_hash: str
    proposer: Optional[str] = None
    executor: Optional[str] = None
    is_executed: bool = False
    is_successful: Optional[bool] = None
    eth_gas_price: OptionalAmount = None
    gas_used: Optional[int] = None
    fee: OptionalAmount = None
    origin: Optional[str] = None
    confirmations_required: int
    confirmations: List[Confirmation] = Field(default_factory=list)
    trusted: bool = True
    signatures: Optional[str] = None


class ModuleTransaction(UpstreamModel):
    tx_type: Literal["MODULE_TRANSACTION"] = "MODULE_TRANSACTION"
    safe: str
    to: str
    value: Amount = "0"
    data: Optional[str] = None
    data_decoded: Optional[DataDecoded] = None
    operation: int = 0
    created: Optional[datetime] = None
    execution_date: datetime
    block_number: Optional[int] = None
    is_successful: bool = True
    transaction_hash: str
    module: str
    module_transaction_id: str


class Transfer(UpstreamModel):
    type: Literal["ETHER_TRANSFER", "ERC20_TRANSFER", "ERC721_TRANSFER"]
    execution_date: datetime
    block_number: Optional[int] = None
    transaction_hash: str
    to: str
    from_: str = Field(alias="from")
    value: OptionalAmount = None
    token_id: OptionalAmount = None
    token_address: Optional[str] = None
    token_info: Optional[Token] = None
    transfer_id: str


class EthereumTransaction(UpstreamModel):
    tx_type: Literal["ETHEREUM_TRANSACTION"] = "ETHEREUM_TRANSACTION"
    execution_date: datetime
    to: Optional[str] = None
    data: Optional[str] = None
    tx_hash: str
    block_number: Optional[int] = None
    from_: str = Field(alias="from")
    transfers: List[Transfer] = Field(default_factory=list)


class CreationTransaction(UpstreamModel):
    tx_type: Literal["CREATION_TRANSACTION"] = "CREATION_TRANSACTION"
    created: datetime
    creator: str
    transaction_hash: str
    factory_address: Optional[str] = None
    master_copy: Optional[str] = None
    setup_data: Optional[str] = None
    data_decoded: Optional[DataDecoded] = None


class UnknownTransaction(UpstreamModel):
    """A record whose txType is missing or not one we know how to map."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow")

    tx_type: Optional[str] = None
    to: Optional[str] = None
    value: OptionalAmount = None
    data: Optional[str] = None
    data_decoded: Optional[DataDecoded] = None
    execution_date: Optional[datetime] = None
    tx_hash: Optional[str] = None
    transaction_hash: Optional[str] = None


RawTransaction = Union[
    MultisigTransaction,
    ModuleTransaction,
    EthereumTransaction,
    CreationTransaction,
    UnknownTransaction,
]


class SwapOrder(UpstreamModel):
    uid: str
    status: Literal["presignaturePending", "open", "fulfilled", "cancelled", "expired", "unknown"]
    kind: Literal["buy", "sell", "unknown"]
    class_: Optional[str] = Field(default=None, alias="class")
    valid_to: int
    sell_token: str
    buy_token: str
    sell_amount: Amount
    buy_amount: Amount
    executed_sell_amount: Amount = "0"
    executed_buy_amount: Amount = "0"
    fee_amount: OptionalAmount = None
    owner: Optional[str] = None
    receiver: Optional[str] = None


class PageEnvelope(UpstreamModel):
    """Paginated list wrapper; items are validated one by one."""
    count: Optional[int] = None
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[Any] = Field(default_factory=list)
