"""
Unit tests for imitation transfer detection.
"""
from mappers.imitation import ImitationTransactionsHelper
from mappers.models import (
    Erc20Transfer,
    Erc721Transfer,
    NativeCoinTransfer,
    Transaction,
    TransactionKind,
    TransactionStatus,
    TransferDirection,
    TransferTransactionInfo,
)

SAFE = "0x" + "1" * 40
LEGIT = "0xABCD" + "0" * 32 + "1234"
LOOKALIKE = "0xABCD" + "f" * 32 + "1234"
NEAR_MISS = "0xABCD" + "0" * 32 + "1235"
UNRELATED = "0x9999" + "0" * 32 + "1234"
TOKEN = "0x" + "5" * 40


def transfer(tx_id, counterparty, value="1000", timestamp=0, direction=TransferDirection.OUTGOING, payload=None):
    if direction == TransferDirection.OUTGOING:
        sender, recipient = SAFE, counterparty
    else:
        sender, recipient = counterparty, SAFE
    return Transaction(
        id=tx_id,
        kind=TransactionKind.TRANSFER,
        timestamp=timestamp,
        tx_status=TransactionStatus.SUCCESS,
        tx_info=TransferTransactionInfo(
            sender=sender,
            recipient=recipient,
            direction=direction,
            transfer_info=payload or NativeCoinTransfer(value=value),
        ),
    )


def erc20(value, decimals=6, token=TOKEN):
    return Erc20Transfer(token_address=token, token_symbol="TKN", decimals=decimals, value=value)


def test_lookalike_with_same_amount_is_flagged():
    """Test a same-amount transfer to a look-alike address is flagged."""
    helper = ImitationTransactionsHelper()
    transactions = [transfer("a", LEGIT, timestamp=1), transfer("b", LOOKALIKE, timestamp=2)]
    assert helper.detect(transactions) == [False, True]


def test_near_miss_address_is_flagged():
    """Test a one-character edit of a known address is flagged."""
    helper = ImitationTransactionsHelper()
    transactions = [transfer("a", LEGIT, timestamp=1), transfer("b", NEAR_MISS, timestamp=2)]
    assert helper.detect(transactions) == [False, True]


def test_identical_and_unrelated_addresses_are_not_flagged():
    """Test identical counterparties and different prefixes are left alone."""
    helper = ImitationTransactionsHelper()
    transactions = [
        transfer("a", LEGIT, timestamp=1),
        transfer("b", LEGIT, timestamp=2),
        transfer("c", UNRELATED, timestamp=3),
    ]
    assert helper.detect(transactions) == [False, False, False]


def test_different_amount_or_asset_is_not_flagged():
    """Test the amount and asset must match."""
    helper = ImitationTransactionsHelper()
    transactions = [
        transfer("a", LEGIT, value="1000", timestamp=1),
        transfer("b", LOOKALIKE, value="999", timestamp=2),
        transfer("c", LOOKALIKE, timestamp=3, payload=erc20("1000")),
    ]
    assert helper.detect(transactions) == [False, False, False]


def test_value_tolerance():
    """Test a relative tolerance accepts close amounts."""
    helper = ImitationTransactionsHelper(value_tolerance=0.01)
    transactions = [transfer("a", LEGIT, value="1000", timestamp=1), transfer("b", LOOKALIKE, value="995", timestamp=2)]
    assert helper.detect(transactions) == [False, True]


def test_earliest_transfer_is_the_reference_regardless_of_order():
    """Test comparison runs in time order while output keeps input order."""
    helper = ImitationTransactionsHelper()
    # History lists newest first
    transactions = [transfer("new", LOOKALIKE, timestamp=2), transfer("old", LEGIT, timestamp=1)]
    assert helper.detect(transactions) == [True, False]


def test_echo_of_outgoing_recipient_is_flagged():
    """Test dust received from a look-alike of a paid address is flagged."""
    helper = ImitationTransactionsHelper(echo_limit=10)
    transactions = [
        transfer("paid", LEGIT, timestamp=1, payload=erc20("500000000")),
        transfer("dust", LOOKALIKE, timestamp=2, direction=TransferDirection.INCOMING, payload=erc20("1")),
        transfer("big", LOOKALIKE, timestamp=3, direction=TransferDirection.INCOMING, payload=erc20("50000000")),
    ]
    assert helper.detect(transactions) == [False, True, False]


def test_erc721_is_never_flagged():
    """Test NFT transfers are ignored."""
    helper = ImitationTransactionsHelper()
    nft = Erc721Transfer(token_address=TOKEN, token_id="1")
    transactions = [transfer("a", LEGIT, timestamp=1, payload=nft), transfer("b", LOOKALIKE, timestamp=2, payload=nft)]
    assert helper.detect(transactions) == [False, False]


def test_detection_is_pure():
    """Test repeated runs give the same flags and never mutate input."""
    helper = ImitationTransactionsHelper()
    transactions = [transfer("a", LEGIT, timestamp=1), transfer("b", LOOKALIKE, timestamp=2)]

    assert helper.detect(transactions) == helper.detect(transactions)
    flagged = helper.flag(transactions)

    assert [tx.id for tx in flagged] == ["a", "b"]
    assert flagged[1].tx_info.imitation is True
    assert transactions[1].tx_info.imitation is False


def test_lookalike_of_earlier_payee_in_mixed_list():
    """Test only the look-alike payment is flagged among unrelated transfers."""
    helper = ImitationTransactionsHelper()
    transactions = [
        transfer("first", NEAR_MISS, timestamp=1, payload=erc20("100000000")),
        transfer("second", LEGIT, timestamp=2, payload=erc20("100000000")),
        transfer("third", UNRELATED, timestamp=3, payload=erc20("1000000")),
    ]
    assert helper.detect(transactions) == [False, True, False]


def test_reordering_unrelated_transfers_keeps_other_flags():
    """Test reversing unrelated transfers leaves every flag attached to the same transfer."""
    helper = ImitationTransactionsHelper()
    related = [transfer("legit", LEGIT, timestamp=1), transfer("fake", LOOKALIKE, timestamp=2)]
    unrelated = [
        transfer("u1", UNRELATED, value="1", timestamp=3),
        transfer("u2", "0x7777" + "0" * 36, value="2", timestamp=4),
        transfer("u3", "0x8888" + "0" * 36, value="3", timestamp=5),
    ]

    forward = related + unrelated
    backward = related + unrelated[::-1]
    flags_forward = dict(zip([tx.id for tx in forward], helper.detect(forward)))
    flags_backward = dict(zip([tx.id for tx in backward], helper.detect(backward)))

    assert flags_forward == flags_backward
    assert flags_forward == {"legit": False, "fake": True, "u1": False, "u2": False, "u3": False}
