"""
Executed transaction history grouped by execution day.
"""
import asyncio
from typing import List, Optional

from core.logger import setup_logger
from core.schema import CreationTransaction, RawTransaction, Safe
from mappers.classifier import TransactionMapper
from mappers.imitation import ImitationTransactionsHelper
from mappers.models import DateLabel, ListItem, Transaction, TransactionItem, TransferTransactionInfo
from mappers.queued_items import day_start

logger = setup_logger(__name__)


class TransactionsHistoryMapper:
    def __init__(
        self,
        transaction_mapper: TransactionMapper,
        imitation_helper: ImitationTransactionsHelper,
        max_concurrent_requests: int = 5,
    ):
        self.transaction_mapper = transaction_mapper
        self.imitation_helper = imitation_helper
        self.max_concurrent_requests = max_concurrent_requests

    async def map_transactions(self, safe: Safe, raw_transactions: List[RawTransaction]) -> List[Transaction]:
        """
        Map raw records concurrently, keeping upstream order.

        Args:
            safe: Viewing Safe
            raw_transactions: Validated upstream records

        Returns:
            Flattened mapped transactions
        """
        semaphore = asyncio.Semaphore(self.max_concurrent_requests)

        async def map_one(raw: RawTransaction) -> List[Transaction]:
            async with semaphore:
                return await self.transaction_mapper.map_transactions(safe, raw)

        mapped = await asyncio.gather(*(map_one(raw) for raw in raw_transactions))
        return [transaction for group in mapped for transaction in group]

    async def map(
        self,
        safe: Safe,
        raw_transactions: List[RawTransaction],
        creation_transaction: Optional[CreationTransaction] = None,
        show_imitations: bool = True,
        timezone_offset_ms: int = 0,
    ) -> List[ListItem]:
        """
        Build one page of history items.

        Args:
            safe: Viewing Safe
            raw_transactions: Page of executed records, newest first
            creation_transaction: Appended after the page when given (last page)
            show_imitations: Keep flagged imitation transfers in the output
            timezone_offset_ms: Client offset from UTC applied to day boundaries

        Returns:
            Date labels interleaved with transaction items
        """
        transactions = await self.map_transactions(safe, raw_transactions)
        transactions = self.imitation_helper.flag(transactions)
        if not show_imitations:
            before = len(transactions)
            transactions = [tx for tx in transactions if not _is_imitation(tx)]
            if len(transactions) != before:
                logger.debug(f"Hid {before - len(transactions)} imitation transfer(s) for {safe.address}")

        if creation_transaction is not None:
            transactions.extend(
                await self.transaction_mapper.map_transactions(safe, creation_transaction)
            )

        items: List[ListItem] = []
        current_day = None
        for transaction in transactions:
            if transaction.timestamp is not None:
                day = day_start(transaction.timestamp, timezone_offset_ms)
                if day != current_day:
                    items.append(DateLabel(timestamp=day))
                    current_day = day
            items.append(TransactionItem(transaction=transaction))
        return items


def _is_imitation(transaction: Transaction) -> bool:
    return isinstance(transaction.tx_info, TransferTransactionInfo) and transaction.tx_info.imitation
