"""
Month Summaries

Read-only figures derived from one month's ledger: what was spent, what
is left, and which categories are over their limit.
"""

from collections import OrderedDict
from typing import Optional

from pydantic import BaseModel, Field

from budget_tracker.models.budget import BudgetDocument, Transaction, TransactionType


class CategoryTotal(BaseModel):
    """Spend in one category against its limit."""

    category: str
    total: float
    limit: Optional[float] = None

    @property
    def is_over_limit(self) -> bool:
        return bool(self.limit) and self.total > self.limit

    @property
    def percent_of_limit(self) -> float:
        """Share of the limit used, capped at 100. Zero when no limit is set."""
        if not self.limit:
            return 0.0
        return min(self.total / self.limit * 100, 100.0)


class MonthSummary(BaseModel):
    """Dashboard figures for one month."""

    month: str
    income: float
    total_expenses: float = Field(description="Sum of expense-type entries")
    extra_income: float = Field(description="Sum of income-type entries")
    total_limits: float
    category_totals: list[CategoryTotal] = Field(default_factory=list)

    @property
    def balance(self) -> float:
        return self.income + self.extra_income - self.total_expenses

    @property
    def projected_savings(self) -> float:
        """What would be left if every limit were spent exactly."""
        return self.income - self.total_limits

    @property
    def is_over_budget(self) -> bool:
        """Limits add up to more than income."""
        return self.total_limits > self.income

    @property
    def budgeted_percent(self) -> float:
        if self.income <= 0:
            return 0.0
        return min(self.total_limits / self.income * 100, 100.0)

    @property
    def spent_percent(self) -> float:
        if self.income <= 0:
            return 0.0
        return min(self.total_expenses / self.income * 100, 100.0)

    @property
    def over_limit_categories(self) -> list[str]:
        return [c.category for c in self.category_totals if c.is_over_limit]


def summarize_month(doc: BudgetDocument, month_key: str) -> MonthSummary:
    """Compute the summary of one month. Months with no data summarize to zeros."""
    ledger = doc.ledger(month_key)

    totals: dict[str, float] = {}
    total_expenses = 0.0
    extra_income = 0.0
    for transaction in ledger.expenses:
        if transaction.type == TransactionType.INCOME:
            extra_income += transaction.amount
            continue
        total_expenses += transaction.amount
        key = transaction.category or "Uncategorized"
        totals[key] = totals.get(key, 0.0) + transaction.amount

    category_totals = [
        CategoryTotal(category=name, total=total, limit=ledger.limits.get(name))
        for name, total in sorted(totals.items(), key=lambda item: item[1], reverse=True)
    ]

    return MonthSummary(
        month=month_key,
        income=doc.income,
        total_expenses=total_expenses,
        extra_income=extra_income,
        total_limits=sum(ledger.limits.values()),
        category_totals=category_totals,
    )


def group_by_date(expenses: list[Transaction]) -> "OrderedDict[str, list[Transaction]]":
    """Group transactions by ISO date, newest date first; ties keep ledger order."""
    ordered = sorted(expenses, key=lambda t: t.date, reverse=True)
    groups: OrderedDict[str, list[Transaction]] = OrderedDict()
    for transaction in ordered:
        groups.setdefault(transaction.date.isoformat(), []).append(transaction)
    return groups
