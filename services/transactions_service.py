"""
Transactions service.
Orchestrates accessors and mappers behind the client-facing operations.
"""
import asyncio
import re
from typing import List, Optional

from core.exceptions import FetchError, InvalidTransactionIdError
from core.logger import setup_logger
from core.pagination import Page, PaginationData
from core.schema import Backbone, Balance
from datasources.transaction_api import TransactionApi
from mappers.details import TransactionDetailsMapper
from mappers.history import TransactionsHistoryMapper
from mappers.imitation import ImitationTransactionsHelper
from mappers.models import ListItem, QueuedItem, TransactionDetails
from mappers.queued_items import QueuedItemsMapper

logger = setup_logger(__name__)

SAFE_TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


class TransactionsService:
    """Client-facing transaction operations for one chain."""

    def __init__(
        self,
        transaction_api: TransactionApi,
        details_mapper: TransactionDetailsMapper,
        history_mapper: TransactionsHistoryMapper,
        queued_items_mapper: QueuedItemsMapper,
        imitation_helper: ImitationTransactionsHelper,
        default_page_size: int = 20,
        max_page_size: int = 100,
    ):
        self.transaction_api = transaction_api
        self.details_mapper = details_mapper
        self.history_mapper = history_mapper
        self.queued_items_mapper = queued_items_mapper
        self.imitation_helper = imitation_helper
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def get_transaction_by_id(self, tx_id: str) -> TransactionDetails:
        """
        Get the details of one transaction.

        Args:
            tx_id: Transaction id as produced by the list views, or a bare safeTxHash

        Returns:
            TransactionDetails

        Raises:
            InvalidTransactionIdError: If the id cannot be parsed
            FetchError, ValidationError: If upstream data cannot be retrieved
        """
        if SAFE_TX_HASH_PATTERN.match(tx_id):
            return await self._get_multisig_details(tx_id)

        kind, _, rest = tx_id.partition("_")
        safe_address, _, reference = rest.partition("_")
        if kind == "creation" and safe_address and not reference:
            return await self.get_creation_transaction(safe_address)
        if not safe_address or not reference:
            raise InvalidTransactionIdError(f"Invalid transaction id: {tx_id}", details={"tx_id": tx_id})

        if kind == "multisig":
            return await self._get_multisig_details(reference)
        if kind == "module":
            transaction = await self.transaction_api.get_module_transaction(reference)
            return await self.details_mapper.map_module(safe_address, transaction)
        if kind == "transfer":
            transfer = await self.transaction_api.get_transfer(reference)
            return await self.details_mapper.map_transfer(safe_address, transfer)
        raise InvalidTransactionIdError(f"Unsupported transaction id: {tx_id}", details={"tx_id": tx_id})

    async def get_transaction_history(
        self,
        safe_address: str,
        cursor: Optional[str] = None,
        trusted: Optional[bool] = None,
        show_imitations: bool = True,
        timezone_offset_ms: int = 0,
    ) -> Page[ListItem]:
        """
        Get a page of executed transactions, newest first, grouped by day.

        Args:
            safe_address: Safe address
            cursor: Opaque cursor from a previous page
            trusted: Only trusted transfers
            show_imitations: Keep imitation transfers (flagged) in the page
            timezone_offset_ms: Client offset from UTC for day grouping

        Returns:
            Page of date labels and transactions
        """
        pagination = PaginationData.from_cursor(cursor, self.default_page_size, self.max_page_size)
        safe, envelope = await asyncio.gather(
            self.transaction_api.get_safe(safe_address),
            self.transaction_api.get_transaction_history(
                safe_address, limit=pagination.limit, offset=pagination.offset, trusted=trusted
            ),
        )
        has_more = envelope.next is not None

        creation = None
        if pagination.next(envelope.count, has_more) is None:
            try:
                creation = await self.transaction_api.get_creation_transaction(safe_address)
            except FetchError as e:
                logger.warning(f"Creation transaction of {safe_address} unavailable: {e.message}")

        items = await self.history_mapper.map(
            safe,
            envelope.results,
            creation_transaction=creation,
            show_imitations=show_imitations,
            timezone_offset_ms=timezone_offset_ms,
        )
        return Page[ListItem].build(pagination, items, envelope.count, has_more)

    async def get_transaction_queue(
        self,
        safe_address: str,
        cursor: Optional[str] = None,
        trusted: Optional[bool] = None,
        timezone_offset_ms: int = 0,
    ) -> Page[QueuedItem]:
        """
        Get a page of pending transactions ordered by nonce.

        One extra transaction on each side of the page is fetched to mark
        nonce conflicts across page boundaries.

        Args:
            safe_address: Safe address
            cursor: Opaque cursor from a previous page
            trusted: Only trusted transactions
            timezone_offset_ms: Client offset from UTC for day grouping

        Returns:
            Page of date labels and transaction items
        """
        pagination = PaginationData.from_cursor(cursor, self.default_page_size, self.max_page_size)
        safe = await self.transaction_api.get_safe(safe_address)

        has_previous = pagination.offset > 0
        envelope = await self.transaction_api.get_multisig_transactions(
            safe_address,
            executed=False,
            trusted=trusted,
            nonce_gte=safe.nonce,
            ordering="nonce,submissionDate",
            limit=pagination.limit + (2 if has_previous else 1),
            offset=pagination.offset - 1 if has_previous else 0,
        )

        # Split by upstream position so neighbouring pages never overlap
        raws = envelope.results
        previous_raws = raws[:1] if has_previous else []
        window = raws[len(previous_raws):]
        previous_group, page, next_group = await asyncio.gather(
            self.history_mapper.map_transactions(safe, previous_raws),
            self.history_mapper.map_transactions(safe, window[: pagination.limit]),
            self.history_mapper.map_transactions(safe, window[pagination.limit: pagination.limit + 1]),
        )
        previous = previous_group[-1] if previous_group else None
        next_ = next_group[0] if next_group else None

        items = self.queued_items_mapper.map(
            self.imitation_helper.flag(page),
            previous=previous,
            next_=next_,
            timezone_offset_ms=timezone_offset_ms,
        )
        return Page[QueuedItem].build(pagination, items, envelope.count, has_more=next_ is not None)

    async def get_creation_transaction(self, safe_address: str) -> TransactionDetails:
        transaction = await self.transaction_api.get_creation_transaction(safe_address)
        return self.details_mapper.map_creation(safe_address, transaction)

    async def get_balances(
        self,
        safe_address: str,
        trusted: Optional[bool] = None,
        exclude_spam: Optional[bool] = None,
    ) -> List[Balance]:
        return await self.transaction_api.get_balances(safe_address, trusted=trusted, exclude_spam=exclude_spam)

    async def get_backbone(self) -> Backbone:
        return await self.transaction_api.get_backbone()

    async def _get_multisig_details(self, safe_tx_hash: str) -> TransactionDetails:
        transaction = await self.transaction_api.get_multisig_transaction(safe_tx_hash)
        safe = await self.transaction_api.get_safe(transaction.safe)
        return await self.details_mapper.map_multisig(safe, transaction)
