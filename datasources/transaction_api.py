"""
Typed accessors over the upstream Safe transaction service.
Each call fetches through the cache, validates the payload and returns frozen entities.
"""
from typing import Any, Callable, Dict, List, Optional

from core.addresses import checksum_address
from core.cache import CacheFirstDataSource, CacheRouter
from core.json_schemas import Schemas
from core.logger import setup_logger
from core.schema import (
    Backbone,
    Balance,
    CreationTransaction,
    ModuleTransaction,
    MultisigTransaction,
    PageEnvelope,
    RawTransaction,
    Safe,
    Token,
    Transfer,
)
from core.validation import CompiledSchema, SchemaViolation, ValidationErrorFactory

logger = setup_logger(__name__)

# Upstream defaults when the caller omits a filter
DEFAULT_TRUSTED = False
DEFAULT_EXCLUDE_SPAM = True


class TransactionApi:
    """Read-only client of one chain's transaction service."""

    def __init__(
        self,
        chain_id: str,
        base_url: str,
        data_source: CacheFirstDataSource,
        schemas: Schemas,
        validation_error_factory: ValidationErrorFactory,
        invalidate_on_validation_error: bool = False,
    ):
        """
        Initialize the accessor.

        Args:
            chain_id: Chain the base URL serves
            base_url: Transaction service root URL
            data_source: Cache-first fetcher
            schemas: Compiled payload schemas
            validation_error_factory: Builds errors from violation records
            invalidate_on_validation_error: Drop the cached payload when it fails validation
        """
        self.chain_id = chain_id
        self.base_url = base_url.rstrip("/")
        self.data_source = data_source
        self.schemas = schemas
        self.validation_error_factory = validation_error_factory
        self.invalidate_on_validation_error = invalidate_on_validation_error

    async def get_balances(
        self,
        safe_address: str,
        trusted: Optional[bool] = None,
        exclude_spam: Optional[bool] = None,
    ) -> List[Balance]:
        """
        Get the token balances of a Safe.

        Args:
            safe_address: Safe address
            trusted: Only trusted tokens (upstream default False)
            exclude_spam: Hide spam tokens (upstream default True)

        Returns:
            Validated balances in upstream order

        Raises:
            ValidationError: If any element is invalid; lists the violations of every invalid element
            FetchError: If the upstream request fails
        """
        address = checksum_address(safe_address)
        trusted = DEFAULT_TRUSTED if trusted is None else trusted
        exclude_spam = DEFAULT_EXCLUDE_SPAM if exclude_spam is None else exclude_spam

        cache_key = CacheRouter.balances_key(self.chain_id, address, trusted, exclude_spam)
        url = f"{self.base_url}/api/v1/safes/{address}/balances/usd/"
        payload = await self.data_source.get(
            cache_key, url, params={"trusted": trusted, "excludeSpam": exclude_spam}
        )

        if not isinstance(payload, list):
            await self._fail(cache_key, [
                SchemaViolation(path="$", constraint="type", expected="array", actual=payload,
                                message=f"{payload!r} is not of type 'array'")
            ])

        balances, violations = [], []
        for index, item in enumerate(payload):
            balance, errors = self.schemas.balance.validate(item, path=f"$[{index}]")
            violations.extend(errors)
            if balance is not None:
                balances.append(balance)

        if violations:
            await self._fail(cache_key, violations)
        return balances

    async def get_backbone(self) -> Backbone:
        """
        Get the metadata of the upstream service instance.

        Returns:
            Backbone snapshot; chain id defaults to this accessor's chain
        """
        cache_key = CacheRouter.backbone_key(self.chain_id)
        url = f"{self.base_url}/api/v1/about"
        backbone = await self._get_one(cache_key, url, self.schemas.backbone)
        if backbone.chain_id is None:
            backbone = backbone.model_copy(update={"chain_id": self.chain_id})
        return backbone

    async def get_safe(self, safe_address: str) -> Safe:
        address = checksum_address(safe_address)
        cache_key = CacheRouter.safe_key(self.chain_id, address)
        url = f"{self.base_url}/api/v1/safes/{address}/"
        return await self._get_one(cache_key, url, self.schemas.safe)

    async def get_token(self, token_address: str) -> Token:
        address = checksum_address(token_address)
        cache_key = CacheRouter.token_key(self.chain_id, address)
        url = f"{self.base_url}/api/v1/tokens/{address}/"
        return await self._get_one(cache_key, url, self.schemas.token)

    async def get_multisig_transaction(self, safe_tx_hash: str) -> MultisigTransaction:
        cache_key = CacheRouter.key("multisig_transaction", self.chain_id, safe_tx_hash)
        url = f"{self.base_url}/api/v1/multisig-transactions/{safe_tx_hash}/"
        return await self._get_one(cache_key, url, self.schemas.multisig_transaction)

    async def get_multisig_transactions(
        self,
        safe_address: str,
        executed: Optional[bool] = None,
        trusted: Optional[bool] = None,
        nonce_gte: Optional[int] = None,
        ordering: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> PageEnvelope:
        """
        Get a page of a Safe's multisig transactions.

        Returns:
            Page whose results are MultisigTransaction entities
        """
        address = checksum_address(safe_address)
        cache_key = CacheRouter.key(
            "multisig_transactions", self.chain_id, address,
            executed, trusted, nonce_gte, ordering, limit, offset,
        )
        url = f"{self.base_url}/api/v1/safes/{address}/multisig-transactions/"
        params = {
            "executed": executed,
            "trusted": trusted,
            "nonce__gte": nonce_gte,
            "ordering": ordering,
            "limit": limit,
            "offset": offset,
        }
        return await self._get_page(cache_key, url, params, lambda item: self.schemas.multisig_transaction)

    async def get_module_transaction(self, module_transaction_id: str) -> ModuleTransaction:
        cache_key = CacheRouter.key("module_transaction", self.chain_id, module_transaction_id)
        url = f"{self.base_url}/api/v1/module-transaction/{module_transaction_id}"
        return await self._get_one(cache_key, url, self.schemas.module_transaction)

    async def get_transfer(self, transfer_id: str) -> Transfer:
        cache_key = CacheRouter.key("transfer", self.chain_id, transfer_id)
        url = f"{self.base_url}/api/v1/transfer/{transfer_id}"
        return await self._get_one(cache_key, url, self.schemas.transfer)

    async def get_transaction_history(
        self,
        safe_address: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        trusted: Optional[bool] = None,
    ) -> PageEnvelope:
        """
        Get a page of executed transactions of every kind, newest first.

        Items are validated against the schema of their ``txType``; unknown
        kinds are kept as UnknownTransaction.

        Returns:
            Page whose results are RawTransaction entities
        """
        address = checksum_address(safe_address)
        cache_key = CacheRouter.key(
            "all_transactions", self.chain_id, address, trusted, limit, offset
        )
        url = f"{self.base_url}/api/v1/safes/{address}/all-transactions/"
        params = {
            "ordering": "-timestamp",
            "executed": True,
            "queued": False,
            "trusted": trusted,
            "limit": limit,
            "offset": offset,
        }
        return await self._get_page(cache_key, url, params, self._transaction_schema)

    async def get_creation_transaction(self, safe_address: str) -> CreationTransaction:
        address = checksum_address(safe_address)
        cache_key = CacheRouter.key("creation_transaction", self.chain_id, address)
        url = f"{self.base_url}/api/v1/safes/{address}/creation/"
        return await self._get_one(cache_key, url, self.schemas.creation_transaction)

    def _transaction_schema(self, item: Any) -> CompiledSchema:
        tx_type = item.get("txType") if isinstance(item, dict) else None
        schema = {
            "MULTISIG_TRANSACTION": self.schemas.multisig_transaction,
            "MODULE_TRANSACTION": self.schemas.module_transaction,
            "ETHEREUM_TRANSACTION": self.schemas.ethereum_transaction,
            "CREATION_TRANSACTION": self.schemas.creation_transaction,
        }.get(tx_type)
        if schema is None:
            logger.debug(f"Unknown transaction type '{tx_type}', keeping generic record")
            return self.schemas.unknown_transaction
        return schema

    async def _get_one(self, cache_key: str, url: str, schema: CompiledSchema, params: Optional[Dict[str, Any]] = None):
        payload = await self.data_source.get(cache_key, url, params=params)
        entity, violations = schema.validate(payload)
        if violations:
            await self._fail(cache_key, violations)
        return entity

    async def _get_page(
        self,
        cache_key: str,
        url: str,
        params: Dict[str, Any],
        schema_for: Callable[[Any], CompiledSchema],
    ) -> PageEnvelope:
        payload = await self.data_source.get(cache_key, url, params=params)
        envelope, violations = self.schemas.page.validate(payload)
        if violations:
            await self._fail(cache_key, violations)

        items: List[RawTransaction] = []
        for index, item in enumerate(envelope.results):
            entity, errors = schema_for(item).validate(item, path=f"$.results[{index}]")
            violations.extend(errors)
            if entity is not None:
                items.append(entity)

        if violations:
            await self._fail(cache_key, violations)
        return envelope.model_copy(update={"results": items})

    async def _fail(self, cache_key: str, violations: List[SchemaViolation]) -> None:
        if self.invalidate_on_validation_error:
            await self.data_source.invalidate(cache_key)
        logger.warning(f"Upstream payload for {cache_key} failed validation ({len(violations)} violation(s))")
        raise self.validation_error_factory.from_violations(violations)

