"""
Statistics Models

Output shapes of the statistics aggregator. They carry results only;
nothing here is persisted or cached.
"""

from pydantic import BaseModel, Field

from smartshop.models.record import Category


class CategoryTotal(BaseModel):
    """Spending for one category."""

    category: Category
    total: float = Field(ge=0)


class MonthlyTotal(BaseModel):
    """Spending for one calendar month ("YYYY-MM" or the unknown bucket)."""

    month: str
    total: float = Field(ge=0)


class SpendingStats(BaseModel):
    """
    Everything the statistics view shows.

    Computed from BOUGHT records only.
    """

    total_spent: float = Field(default=0.0, ge=0)
    total_saved: float = Field(default=0.0, ge=0)
    bought_count: int = Field(default=0, ge=0)
    category_totals: list[CategoryTotal] = Field(default_factory=list)
    monthly_totals: list[MonthlyTotal] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.bought_count == 0

    def category_map(self) -> dict[Category, float]:
        return {item.category: item.total for item in self.category_totals}

    def monthly_map(self) -> dict[str, float]:
        return {item.month: item.total for item in self.monthly_totals}
