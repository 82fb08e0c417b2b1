"""
Category Aggregation Engine

DESIGN DECISION: Aggregation is a PURE function of the transaction
collection. It holds no state and never talks to the network, so it is
simply re-run after every refresh.

Classification rule: a transaction counts as income if its type is
"income" OR its signed amount is positive. The two signals are not
checked for agreement - an "expense" stored with a positive amount is
counted as income. This mirrors what users have always seen on the
chart; canonicalizing to one signal would change the numbers.
"""

from typing import Iterable

from kakeibo.models.ledger import (
    CategoryTotals,
    LedgerReport,
    LedgerSummary,
    Transaction,
    TransactionType,
)


def is_income(transaction: Transaction) -> bool:
    """Income if typed as income or carrying a positive amount."""
    return transaction.type == TransactionType.INCOME or transaction.amount > 0


def aggregate(transactions: Iterable[Transaction]) -> list[CategoryTotals]:
    """
    Group transactions by category label into income/expense totals.

    Buckets are ordered by income + expense, largest first. Buckets with
    equal totals keep the order in which their category was first seen.
    """
    buckets: dict[str, CategoryTotals] = {}

    for transaction in transactions:
        label = transaction.category_label
        bucket = buckets.get(label)
        if bucket is None:
            bucket = buckets[label] = CategoryTotals(category_label=label)

        if is_income(transaction):
            bucket.income_total += transaction.magnitude
        else:
            bucket.expense_total += transaction.magnitude

    # sorted() is stable, and dicts keep first-seen order
    return sorted(buckets.values(), key=lambda b: b.total, reverse=True)


def summarize(transactions: Iterable[Transaction]) -> LedgerSummary:
    """Headline income and expense totals over the whole collection."""
    summary = LedgerSummary()
    for transaction in transactions:
        if is_income(transaction):
            summary.income_total += transaction.magnitude
        else:
            summary.expense_total += transaction.magnitude
    return summary


def build_report(transactions: Iterable[Transaction]) -> LedgerReport:
    """Chart rows plus headline totals."""
    transactions = list(transactions)
    return LedgerReport(
        rows=aggregate(transactions),
        summary=summarize(transactions),
    )
