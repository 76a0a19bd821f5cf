"""Percentage-based stale inventory classification."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from revenue_optimizer.analytics.variant_metrics import months_from_days
from revenue_optimizer.config.constants import DEFAULT_STALE_PERCENTAGE
from revenue_optimizer.utils.dates import ceil_days_between
from revenue_optimizer.utils.formatters import format_number, format_threshold, round_half_up


@dataclass
class StaleAnalysisResult:
    is_stale: bool
    monthly_sales_rate: float
    percent_sold_per_month: float
    months_live: float
    threshold_percent_used: float
    calculation_method: str

    def to_dict(self) -> dict:
        return asdict(self)


class StaleInventoryAnalyzer:
    """
    Flags a variant as stale when it sells less than a given percentage of
    its estimated total inventory per month.

    ``percent_sold_per_month = (units_sold / months_live) / estimated_total_inventory * 100``

    Staleness is non-increasing in units sold and non-decreasing in the
    threshold.
    """

    def analyze(
        self,
        units_sold: int,
        estimated_total_inventory: int,
        publish_date: Optional[datetime],
        evaluation_date: datetime,
        threshold_percent: float = DEFAULT_STALE_PERCENTAGE,
    ) -> StaleAnalysisResult:
        """
        Args:
            units_sold: Units sold within the analysed order window
            estimated_total_inventory: Current stock plus units sold
            publish_date: When the product went live (None counts as today)
            evaluation_date: Reference "now"
            threshold_percent: Minimum healthy percent sold per month

        Returns:
            StaleAnalysisResult with rates rounded to 2 places
        """
        days_live = ceil_days_between(publish_date, evaluation_date) if publish_date else 0
        months_live = months_from_days(days_live)

        monthly_rate = units_sold / months_live
        if estimated_total_inventory > 0:
            percent_per_month = monthly_rate / estimated_total_inventory * 100
        else:
            percent_per_month = 0.0

        return StaleAnalysisResult(
            is_stale=percent_per_month < threshold_percent,
            monthly_sales_rate=round_half_up(monthly_rate),
            percent_sold_per_month=round_half_up(percent_per_month),
            months_live=round_half_up(months_live),
            threshold_percent_used=threshold_percent,
            calculation_method=(
                f"Percentage-based: {format_number(percent_per_month)}% vs "
                f"{format_threshold(threshold_percent)}% threshold"
            ),
        )
