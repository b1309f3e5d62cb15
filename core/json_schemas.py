"""
JSON-schema contracts for every upstream payload.

compile_schemas() is the initialization phase: it registers the shared
sub-schemas in dependency order and compiles the top-level schemas once.
"""
from dataclasses import dataclass

from core.schema import (
    Backbone,
    Balance,
    CreationTransaction,
    EthereumTransaction,
    ModuleTransaction,
    MultisigTransaction,
    PageEnvelope,
    Safe,
    SwapOrder,
    Token,
    Transfer,
    UnknownTransaction,
)
from core.validation import CompiledSchema, JsonSchemaService

STRING = {"type": "string"}
NULLABLE_STRING = {"type": ["string", "null"]}
# Integer amounts may come as digit strings or JSON integers
UINT = {"type": ["string", "integer"], "pattern": "^[0-9]+$", "minimum": 0}
NULLABLE_UINT = {"type": ["string", "integer", "null"], "pattern": "^[0-9]+$", "minimum": 0}
ADDRESS = {"type": "string", "pattern": "^0x[0-9a-fA-F]{40}$"}
NULLABLE_ADDRESS = {"anyOf": [{"type": "null"}, ADDRESS]}
HEX = {"type": ["string", "null"], "pattern": "^0x[0-9a-fA-F]*$"}

BALANCE_TOKEN_SCHEMA = {
    "type": "object",
    "properties": {
        "name": STRING,
        "symbol": STRING,
        "decimals": {"type": "integer", "minimum": 0},
        "logoUri": NULLABLE_STRING,
    },
    "required": ["name", "symbol", "decimals"],
}

BALANCE_SCHEMA = {
    "type": "object",
    "properties": {
        "tokenAddress": NULLABLE_ADDRESS,
        "token": {"anyOf": [{"type": "null"}, {"$ref": "balanceToken"}]},
        "balance": UINT,
        "fiatBalance": {"type": ["string", "number", "null"]},
        "fiatConversion": {"type": ["string", "number", "null"]},
        "trusted": {"type": "boolean"},
        "spam": {"type": "boolean"},
    },
    "required": ["balance"],
}

BACKBONE_SCHEMA = {
    "type": "object",
    "properties": {
        "chainId": STRING,
        "name": STRING,
        "version": STRING,
        "api_version": STRING,
        "secure": {"type": "boolean"},
        "host": STRING,
        "headers": {"type": ["array", "null"], "items": STRING},
        "settings": {"type": "object"},
    },
    "required": ["name"],
}

TOKEN_SCHEMA = {
    "type": "object",
    "properties": {
        "address": ADDRESS,
        "decimals": {"type": ["integer", "null"], "minimum": 0},
        "logoUri": NULLABLE_STRING,
        "name": STRING,
        "symbol": STRING,
        "type": {"enum": ["ERC20", "ERC721", "NATIVE_TOKEN", "UNKNOWN"]},
        "trusted": {"type": "boolean"},
    },
    "required": ["address", "name", "symbol", "type"],
}

SAFE_SCHEMA = {
    "type": "object",
    "properties": {
        "address": ADDRESS,
        "nonce": UINT,
        "threshold": {"type": "integer", "minimum": 1},
        "owners": {"type": "array", "items": ADDRESS},
        "masterCopy": NULLABLE_ADDRESS,
        "modules": {"type": ["array", "null"], "items": ADDRESS},
        "fallbackHandler": NULLABLE_ADDRESS,
        "guard": NULLABLE_ADDRESS,
        "version": NULLABLE_STRING,
    },
    "required": ["address", "nonce", "threshold", "owners"],
}

DATA_DECODED_SCHEMA = {
    "type": "object",
    "properties": {
        "method": STRING,
        "parameters": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "properties": {"name": STRING, "type": STRING},
                "required": ["name", "type"],
            },
        },
    },
    "required": ["method"],
}

NULLABLE_DATA_DECODED = {"anyOf": [{"type": "null"}, {"$ref": "dataDecoded"}]}

CONFIRMATION_SCHEMA = {
    "type": "object",
    "properties": {
        "owner": ADDRESS,
        "submissionDate": STRING,
        "transactionHash": NULLABLE_STRING,
        "signature": HEX,
        "signatureType": NULLABLE_STRING,
    },
    "required": ["owner", "submissionDate"],
}

TRANSFER_SCHEMA = {
    "type": "object",
    "properties": {
        "type": {"enum": ["ETHER_TRANSFER", "ERC20_TRANSFER", "ERC721_TRANSFER"]},
        "executionDate": STRING,
        "blockNumber": {"type": ["integer", "null"]},
        "transactionHash": STRING,
        "to": ADDRESS,
        "from": ADDRESS,
        "value": NULLABLE_UINT,
        "tokenId": NULLABLE_UINT,
        "tokenAddress": NULLABLE_ADDRESS,
        "tokenInfo": {"anyOf": [{"type": "null"}, {"$ref": "token"}]},
        "transferId": STRING,
    },
    "required": ["type", "executionDate", "transactionHash", "to", "from", "transferId"],
}

MULTISIG_TRANSACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "txType": {"const": "MULTISIG_TRANSACTION"},
        "safe": ADDRESS,
        "to": ADDRESS,
        "value": UINT,
        "data": HEX,
        "dataDecoded": NULLABLE_DATA_DECODED,
        "operation": {"enum": [0, 1]},
        "nonce": UINT,
        "executionDate": NULLABLE_STRING,
        "submissionDate": STRING,
        "transactionHash": NULLABLE_STRING,
        "safeTxHash": STRING,
        "executor": NULLABLE_ADDRESS,
        "isExecuted": {"type": "boolean"},
        "isSuccessful": {"type": ["boolean", "null"]},
        "confirmationsRequired": {"type": "integer", "minimum": 0},
        "confirmations": {"type": ["array", "null"], "items": {"$ref": "confirmation"}},
        "trusted": {"type": "boolean"},
    },
    "required": ["safe", "to", "value", "nonce", "submissionDate", "safeTxHash", "confirmationsRequired"],
}

MODULE_TRANSACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "txType": {"const": "MODULE_TRANSACTION"},
        "safe": ADDRESS,
        "to": ADDRESS,
        "value": UINT,
        "data": HEX,
        "dataDecoded": NULLABLE_DATA_DECODED,
        "operation": {"enum": [0, 1]},
        "executionDate": STRING,
        "isSuccessful": {"type": "boolean"},
        "transactionHash": STRING,
        "module": ADDRESS,
        "moduleTransactionId": STRING,
    },
    "required": ["safe", "to", "executionDate", "transactionHash", "module", "moduleTransactionId"],
}

ETHEREUM_TRANSACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "txType": {"const": "ETHEREUM_TRANSACTION"},
        "executionDate": STRING,
        "to": NULLABLE_ADDRESS,
        "data": HEX,
        "txHash": STRING,
        "from": ADDRESS,
        "transfers": {"type": ["array", "null"], "items": {"$ref": "transfer"}},
    },
    "required": ["executionDate", "txHash", "from"],
}

CREATION_TRANSACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "created": STRING,
        "creator": ADDRESS,
        "transactionHash": STRING,
        "factoryAddress": NULLABLE_ADDRESS,
        "masterCopy": NULLABLE_ADDRESS,
        "setupData": HEX,
        "dataDecoded": NULLABLE_DATA_DECODED,
    },
    "required": ["created", "creator", "transactionHash"],
}

UNKNOWN_TRANSACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "txType": NULLABLE_STRING,
        "dataDecoded": NULLABLE_DATA_DECODED,
    },
}

PAGE_SCHEMA = {
    "type": "object",
    "properties": {
        "count": {"type": ["integer", "null"], "minimum": 0},
        "next": NULLABLE_STRING,
        "previous": NULLABLE_STRING,
        "results": {"type": "array"},
    },
    "required": ["results"],
}

SWAP_ORDER_SCHEMA = {
    "type": "object",
    "properties": {
        "uid": STRING,
        "status": {"enum": ["presignaturePending", "open", "fulfilled", "cancelled", "expired", "unknown"]},
        "kind": {"enum": ["buy", "sell", "unknown"]},
        "validTo": {"type": "integer"},
        "sellToken": ADDRESS,
        "buyToken": ADDRESS,
        "sellAmount": UINT,
        "buyAmount": UINT,
        "executedSellAmount": UINT,
        "executedBuyAmount": UINT,
    },
    "required": ["uid", "status", "kind", "validTo", "sellToken", "buyToken", "sellAmount", "buyAmount"],
}


@dataclass(frozen=True)
class Schemas:
    """Compiled validators, immutable and safe to share across tasks."""

    balance: CompiledSchema[Balance]
    backbone: CompiledSchema[Backbone]
    token: CompiledSchema[Token]
    safe: CompiledSchema[Safe]
    page: CompiledSchema[PageEnvelope]
    multisig_transaction: CompiledSchema[MultisigTransaction]
    module_transaction: CompiledSchema[ModuleTransaction]
    ethereum_transaction: CompiledSchema[EthereumTransaction]
    creation_transaction: CompiledSchema[CreationTransaction]
    unknown_transaction: CompiledSchema[UnknownTransaction]
    transfer: CompiledSchema[Transfer]
    swap_order: CompiledSchema[SwapOrder]


def compile_schemas(service: JsonSchemaService) -> Schemas:
    """
    Register sub-schemas and compile every top-level schema.

    Args:
        service: Schema service to register into

    Returns:
        Bundle of compiled schemas

    Raises:
        ConfigurationError: If a schema references one not yet registered
    """
    service.add_schema(BALANCE_TOKEN_SCHEMA, "balanceToken")
    service.add_schema(TOKEN_SCHEMA, "token")
    service.add_schema(DATA_DECODED_SCHEMA, "dataDecoded")
    service.add_schema(CONFIRMATION_SCHEMA, "confirmation")
    service.add_schema(TRANSFER_SCHEMA, "transfer")

    return Schemas(
        balance=service.compile(BALANCE_SCHEMA, Balance),
        backbone=service.compile(BACKBONE_SCHEMA, Backbone),
        token=service.compile(TOKEN_SCHEMA, Token),
        safe=service.compile(SAFE_SCHEMA, Safe),
        page=service.compile(PAGE_SCHEMA, PageEnvelope),
        multisig_transaction=service.compile(MULTISIG_TRANSACTION_SCHEMA, MultisigTransaction),
        module_transaction=service.compile(MODULE_TRANSACTION_SCHEMA, ModuleTransaction),
        ethereum_transaction=service.compile(ETHEREUM_TRANSACTION_SCHEMA, EthereumTransaction),
        creation_transaction=service.compile(CREATION_TRANSACTION_SCHEMA, CreationTransaction),
        unknown_transaction=service.compile(UNKNOWN_TRANSACTION_SCHEMA, UnknownTransaction),
        transfer=service.compile(TRANSFER_SCHEMA, Transfer),
        swap_order=service.compile(SWAP_ORDER_SCHEMA, SwapOrder),
    )
