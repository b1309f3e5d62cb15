"""
Client-facing transaction models.
TransactionInfo and the list items are tagged unions discriminated by ``type``.
"""
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GatewayModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TransactionKind(str, Enum):
    MULTISIG = "MULTISIG"
    MODULE = "MODULE"
    CREATION = "CREATION"
    TRANSFER = "TRANSFER"
    CUSTOM = "CUSTOM"


class TransactionStatus(str, Enum):
    AWAITING_CONFIRMATIONS = "AWAITING_CONFIRMATIONS"
    AWAITING_EXECUTION = "AWAITING_EXECUTION"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"
    SUCCESS = "SUCCESS"


class TransferDirection(str, Enum):
    INCOMING = "INCOMING"
    OUTGOING = "OUTGOING"
    UNKNOWN = "UNKNOWN"


class ConflictType(str, Enum):
    NONE = "None"
    HAS_NEXT = "HasNext"
    END = "End"


# Transfer payloads

class NativeCoinTransfer(GatewayModel):
    type: Literal["NATIVE_COIN"] = "NATIVE_COIN"
    value: str


class Erc20Transfer(GatewayModel):
    type: Literal["ERC20"] = "ERC20"
    token_address: str
    token_name: Optional[str] = None
    token_symbol: Optional[str] = None
    logo_uri: Optional[str] = None
    decimals: Optional[int] = None
    value: str
    trusted: Optional[bool] = None


class Erc721Transfer(GatewayModel):
    type: Literal["ERC721"] = "ERC721"
    token_address: str
    token_id: str
    token_name: Optional[str] = None
    token_symbol: Optional[str] = None
    logo_uri: Optional[str] = None
    trusted: Optional[bool] = None


TransferInfo = Annotated[
    Union[NativeCoinTransfer, Erc20Transfer, Erc721Transfer],
    Field(discriminator="type"),
]


# Transaction infos

class TransferTransactionInfo(GatewayModel):
    type: Literal["Transfer"] = "Transfer"
    sender: str
    recipient: str
    direction: TransferDirection
    transfer_info: TransferInfo
    human_description: Optional[str] = None
    # Computed per response for list views, never persisted
    imitation: bool = False


class SettingsInfo(GatewayModel):
    type: str
    owner: Optional[str] = None
    old_owner: Optional[str] = None
    new_owner: Optional[str] = None
    threshold: Optional[int] = None
    module: Optional[str] = None
    implementation: Optional[str] = None
    handler: Optional[str] = None
    guard: Optional[str] = None


class SettingsChangeTransactionInfo(GatewayModel):
    type: Literal["SettingsChange"] = "SettingsChange"
    data_decoded: Dict[str, Any]
    settings_info: Optional[SettingsInfo] = None
    human_description: Optional[str] = None


class CustomTransactionInfo(GatewayModel):
    type: Literal["Custom"] = "Custom"
    to: Optional[str] = None
    data_size: str = "0"
    value: Optional[str] = None
    method_name: Optional[str] = None
    action_count: Optional[int] = None
    is_cancellation: bool = False
    human_description: Optional[str] = None


class CreationTransactionInfo(GatewayModel):
    type: Literal["Creation"] = "Creation"
    creator: str
    transaction_hash: str
    implementation: Optional[str] = None
    factory: Optional[str] = None


class TokenInfo(GatewayModel):
    address: str
    decimals: Optional[int] = None
    logo_uri: Optional[str] = None
    name: str
    symbol: str
    trusted: bool = False


class SwapOrderTransactionInfo(GatewayModel):
    type: Literal["SwapOrder"] = "SwapOrder"
    uid: str
    status: str
    kind: str
    order_class: Optional[str] = None
    valid_until: int
    sell_amount: str
    buy_amount: str
    executed_sell_amount: str
    executed_buy_amount: str
    sell_token: TokenInfo
    buy_token: TokenInfo
    limit_price: Optional[str] = None
    executed_price: Optional[str] = None
    explorer_url: Optional[str] = None
    human_description: Optional[str] = None


TransactionInfo = Annotated[
    Union[
        TransferTransactionInfo,
        SettingsChangeTransactionInfo,
        CustomTransactionInfo,
        CreationTransactionInfo,
        SwapOrderTransactionInfo,
    ],
    Field(discriminator="type"),
]


# Execution info

class MultisigExecutionInfo(GatewayModel):
    type: Literal["MULTISIG"] = "MULTISIG"
    nonce: int
    confirmations_required: int
    confirmations_submitted: int
    missing_signers: Optional[List[str]] = None


class ModuleExecutionInfo(GatewayModel):
    type: Literal["MODULE"] = "MODULE"
    address: str
    module_transaction_id: Optional[str] = None


ExecutionInfo = Annotated[
    Union[MultisigExecutionInfo, ModuleExecutionInfo],
    Field(discriminator="type"),
]


class Transaction(GatewayModel):
    id: str
    kind: TransactionKind
    tx_hash: Optional[str] = None
    safe_tx_hash: Optional[str] = None
    nonce: Optional[int] = None
    # Milliseconds since epoch; None while pending
    timestamp: Optional[int] = None
    submitted_at: Optional[int] = None
    tx_status: TransactionStatus
    tx_info: TransactionInfo
    execution_info: Optional[ExecutionInfo] = None


# List items

class TransactionItem(GatewayModel):
    type: Literal["TRANSACTION"] = "TRANSACTION"
    transaction: Transaction
    conflict_type: ConflictType = ConflictType.NONE


class DateLabel(GatewayModel):
    type: Literal["DATE_LABEL"] = "DATE_LABEL"
    timestamp: int


ListItem = Annotated[Union[TransactionItem, DateLabel], Field(discriminator="type")]
QueuedItem = ListItem


# Details

class TransactionData(GatewayModel):
    hex_data: Optional[str] = None
    data_decoded: Optional[Dict[str, Any]] = None
    to: str
    value: Optional[str] = None
    operation: int = 0


class MultisigConfirmationDetails(GatewayModel):
    signer: str
    signature: Optional[str] = None
    submitted_at: int


class MultisigExecutionDetails(GatewayModel):
    type: Literal["MULTISIG"] = "MULTISIG"
    submitted_at: int
    nonce: int
    safe_tx_gas: Optional[str] = None
    base_gas: Optional[str] = None
    gas_price: Optional[str] = None
    gas_token: Optional[str] = None
    refund_receiver: Optional[str] = None
    safe_tx_hash: str
    executor: Optional[str] = None
    signers: List[str]
    confirmations_required: int
    confirmations: List[MultisigConfirmationDetails]
    trusted: bool


class ModuleExecutionDetails(GatewayModel):
    type: Literal["MODULE"] = "MODULE"
    address: str


DetailedExecutionInfo = Annotated[
    Union[MultisigExecutionDetails, ModuleExecutionDetails],
    Field(discriminator="type"),
]


class TransactionDetails(GatewayModel):
    safe_address: str
    tx_id: str
    executed_at: Optional[int] = None
    tx_status: TransactionStatus
    tx_info: TransactionInfo
    tx_data: Optional[TransactionData] = None
    detailed_execution_info: Optional[DetailedExecutionInfo] = None
    tx_hash: Optional[str] = None
