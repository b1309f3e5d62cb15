"""
Typed accessor over the swaps (CoW protocol) order book API.
"""
from core.cache import CacheFirstDataSource, CacheRouter
from core.json_schemas import Schemas
from core.logger import setup_logger
from core.schema import SwapOrder
from core.validation import ValidationErrorFactory

logger = setup_logger(__name__)


class SwapsApi:
    """Read-only client of one chain's order book."""

    def __init__(
        self,
        chain_id: str,
        base_url: str,
        data_source: CacheFirstDataSource,
        schemas: Schemas,
        validation_error_factory: ValidationErrorFactory,
    ):
        self.chain_id = chain_id
        self.base_url = base_url.rstrip("/")
        self.data_source = data_source
        self.schemas = schemas
        self.validation_error_factory = validation_error_factory

    async def get_order(self, order_uid: str) -> SwapOrder:
        """
        Get a swap order by its uid.

        Args:
            order_uid: Order uid (hex)

        Returns:
            Validated order

        Raises:
            ValidationError: If the order payload is invalid
            FetchError: If the upstream request fails
        """
        cache_key = CacheRouter.swap_order_key(self.chain_id, order_uid)
        url = f"{self.base_url}/api/v1/orders/{order_uid}"
        payload = await self.data_source.get(cache_key, url)

        order, violations = self.schemas.swap_order.validate(payload)
        if violations:
            logger.warning(f"Swap order {order_uid} failed validation ({len(violations)} violation(s))")
            raise self.validation_error_factory.from_violations(violations)
        return order
