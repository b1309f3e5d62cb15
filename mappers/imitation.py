"""
Detection of imitation transfers (address poisoning).

A transfer imitates an earlier one when it moves the same asset for about
the same amount to or from an address that looks like, but is not, the
earlier counterparty. Uses Levenshtein distance for near-miss addresses.
"""
from decimal import Decimal, InvalidOperation
from typing import List, NamedTuple, Optional

import Levenshtein

from core.logger import setup_logger
from mappers.models import (
    Erc20Transfer,
    NativeCoinTransfer,
    Transaction,
    TransferDirection,
    TransferTransactionInfo,
)

logger = setup_logger(__name__)

NATIVE_DECIMALS = 18


class _Candidate(NamedTuple):
    index: int
    asset: str
    value: Decimal
    decimals: int
    direction: TransferDirection
    counterparty: str


def _to_decimal(value: Optional[str]) -> Optional[Decimal]:
    try:
        return Decimal(value) if value is not None else None
    except InvalidOperation:
        return None


def _strip_prefix(address: str) -> str:
    address = address.lower()
    return address[2:] if address.startswith("0x") else address


def _candidate(index: int, transaction: Transaction) -> Optional[_Candidate]:
    """Fungible transfer with a known direction, else None."""
    info = transaction.tx_info
    if not isinstance(info, TransferTransactionInfo):
        return None
    if info.direction == TransferDirection.OUTGOING:
        counterparty = info.recipient
    elif info.direction == TransferDirection.INCOMING:
        counterparty = info.sender
    else:
        return None

    transfer = info.transfer_info
    if isinstance(transfer, NativeCoinTransfer):
        asset, decimals = "native", NATIVE_DECIMALS
    elif isinstance(transfer, Erc20Transfer):
        asset, decimals = transfer.token_address.lower(), transfer.decimals or 0
    else:
        # ERC721 ids are not amounts
        return None

    value = _to_decimal(transfer.value)
    if value is None:
        return None
    return _Candidate(index, asset, value, decimals, info.direction, _strip_prefix(counterparty))


class ImitationTransactionsHelper:
    """Flags imitation transfers in a list of mapped transactions."""

    def __init__(
        self,
        prefix_length: int = 3,
        suffix_length: int = 4,
        max_edit_distance: int = 2,
        value_tolerance: float = 0.0,
        echo_limit: float = 10.0,
    ):
        """
        Initialize helper.

        Args:
            prefix_length: Leading hex chars two similar addresses must share
            suffix_length: Trailing hex chars that make addresses similar
            max_edit_distance: Levenshtein distance that makes addresses similar
            value_tolerance: Relative amount difference still considered equal
            echo_limit: Largest incoming amount (token units) treated as an echo
        """
        self.prefix_length = prefix_length
        self.suffix_length = suffix_length
        self.max_edit_distance = max_edit_distance
        self.value_tolerance = Decimal(str(value_tolerance))
        self.echo_limit = Decimal(str(echo_limit))

    def is_similar_address(self, a: str, b: str) -> bool:
        """Textually similar yet different addresses (prefix-less, lower-cased)."""
        a = _strip_prefix(a)
        b = _strip_prefix(b)
        if a == b or a[: self.prefix_length] != b[: self.prefix_length]:
            return False
        if a[-self.suffix_length:] == b[-self.suffix_length:]:
            return True
        return Levenshtein.distance(a, b) <= self.max_edit_distance

    def is_similar_value(self, a: Decimal, b: Decimal) -> bool:
        if a == b:
            return True
        return abs(a - b) <= self.value_tolerance * max(abs(a), abs(b))

    def detect(self, transactions: List[Transaction]) -> List[bool]:
        """
        Imitation flag for each transaction, in input order.

        Transfers are compared in ascending execution time; a flagged
        transfer never serves as a reference for later ones.

        Args:
            transactions: Mapped list transactions

        Returns:
            One flag per input transaction
        """
        flags = [False] * len(transactions)
        candidates = [
            c for c in (_candidate(i, tx) for i, tx in enumerate(transactions)) if c is not None
        ]
        candidates.sort(key=lambda c: (self._time(transactions[c.index]), c.index))

        references: List[_Candidate] = []
        for candidate in candidates:
            if self._imitates(candidate, references):
                flags[candidate.index] = True
            else:
                references.append(candidate)

        flagged = sum(flags)
        if flagged:
            logger.debug(f"Flagged {flagged} imitation transfer(s) out of {len(transactions)}")
        return flags

    def flag(self, transactions: List[Transaction]) -> List[Transaction]:
        """Copies of ``transactions`` with ``imitation`` set on flagged transfers."""
        flags = self.detect(transactions)
        return [
            tx.model_copy(update={"tx_info": tx.tx_info.model_copy(update={"imitation": True})}) if flagged else tx
            for tx, flagged in zip(transactions, flags)
        ]

    def _imitates(self, candidate: _Candidate, references: List[_Candidate]) -> bool:
        for reference in references:
            if not self.is_similar_address(candidate.counterparty, reference.counterparty):
                continue
            if (
                candidate.direction == reference.direction
                and candidate.asset == reference.asset
                and self.is_similar_value(candidate.value, reference.value)
            ):
                return True
            if self._is_echo(candidate, reference):
                return True
        return False

    def _is_echo(self, candidate: _Candidate, reference: _Candidate) -> bool:
        """Dust sent back from a look-alike of an address the Safe paid before."""
        if candidate.direction != TransferDirection.INCOMING or reference.direction != TransferDirection.OUTGOING:
            return False
        return candidate.value.scaleb(-candidate.decimals) <= self.echo_limit

    @staticmethod
    def _time(transaction: Transaction) -> int:
        if transaction.timestamp is not None:
            return transaction.timestamp
        return transaction.submitted_at or 0
