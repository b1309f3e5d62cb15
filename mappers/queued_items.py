"""
Queued transactions grouped by submission day, with nonce conflict markers.
"""
from typing import List, Optional

from mappers.models import ConflictType, DateLabel, QueuedItem, Transaction, TransactionItem

DAY_MS = 24 * 60 * 60 * 1000


def submission_time(transaction: Transaction) -> int:
    if transaction.submitted_at is not None:
        return transaction.submitted_at
    return transaction.timestamp or 0


def queue_order(transaction: Transaction):
    return (transaction.nonce if transaction.nonce is not None else -1, submission_time(transaction))


def day_start(timestamp_ms: int, timezone_offset_ms: int = 0) -> int:
    """Instant (UTC ms) at which the local day containing ``timestamp_ms`` starts."""
    local = timestamp_ms + timezone_offset_ms
    return (local // DAY_MS) * DAY_MS - timezone_offset_ms


class QueuedItemsMapper:
    def map(
        self,
        transactions: List[Transaction],
        previous: Optional[Transaction] = None,
        next_: Optional[Transaction] = None,
        timezone_offset_ms: int = 0,
    ) -> List[QueuedItem]:
        """
        Assemble one page of the queue.

        Every page starts with a date label, so a day group continued from
        the previous page repeats its label.

        Args:
            transactions: Pending transactions of this page
            previous: Last transaction of the previous page, used only for conflicts
            next_: First transaction of the next page, used only for conflicts
            timezone_offset_ms: Client offset from UTC applied to day boundaries

        Returns:
            Date labels interleaved with transaction items
        """
        ordered = sorted(transactions, key=queue_order)
        items: List[QueuedItem] = []
        current_day = None

        for index, transaction in enumerate(ordered):
            day = day_start(submission_time(transaction), timezone_offset_ms)
            if day != current_day:
                items.append(DateLabel(timestamp=day))
                current_day = day

            before = ordered[index - 1] if index > 0 else previous
            after = ordered[index + 1] if index + 1 < len(ordered) else next_
            items.append(
                TransactionItem(
                    transaction=transaction,
                    conflict_type=self.conflict_type(transaction, before, after),
                )
            )
        return items

    @staticmethod
    def conflict_type(
        transaction: Transaction,
        before: Optional[Transaction],
        after: Optional[Transaction],
    ) -> ConflictType:
        """HasNext while a later item shares the nonce, End for the last of a shared nonce."""
        if after is not None and after.nonce == transaction.nonce:
            return ConflictType.HAS_NEXT
        if before is not None and before.nonce == transaction.nonce:
            return ConflictType.END
        return ConflictType.NONE
