"""
Named thresholds and lookup tables for the analytics pipeline.

Every boundary used by the variant metrics, stale-inventory and
suggestion rules lives here so threshold changes stay auditable.
"""

# Predefined categories for tag-based detection (list order is the tie-break)
PREDEFINED_CATEGORIES = ("furniture", "fashion", "food", "fitness", "electronics")

# Product type -> category fallback map
CATEGORY_MAPPING = {
    "clothing": "fashion",
    "accessories": "fashion",
    "electronics": "electronics",
    "home": "home",
    "sports": "fitness",
    "health": "health",
    "beauty": "beauty",
    "toys": "toys",
    "books": "books",
    "automotive": "automotive",
}
DEFAULT_CATEGORY = "general"

CONSUMABLE_KEYWORDS = ("food", "beverage", "supplement", "consumable")
SEASONAL_KEYWORDS = (
    "winter", "summer", "spring", "fall", "autumn", "holiday",
    "christmas", "seasonal", "diwali", "holi", "rakhi",
)

# Time
SECONDS_PER_DAY = 60 * 60 * 24
DAYS_PER_MONTH = 30
MINIMUM_MONTHS_LIVE = 0.033  # 1 day

# Stale analysis
DEFAULT_STALE_PERCENTAGE = 10.0

# Order window fetched for per-variant analytics
ORDER_SAMPLE_LIMIT = 250

# Days of stock
MAX_DAYS_OF_STOCK = 999
STOCKOUT_RISK_DAYS = 30

# Inventory status boundaries (days of stock remaining)
INVENTORY_CRITICAL_LOW_DAYS = 7
INVENTORY_LOW_DAYS = 30
INVENTORY_OPTIMAL_DAYS = 90
INVENTORY_HIGH_DAYS = 180

# Performance rule multipliers on the stale threshold
POOR_PERFORMANCE_RATIO = 0.3
HIGH_PERFORMER_RATIO = 2.0

# Sales acceleration
TREND_ALERT_THRESHOLD = 0.3
TREND_LABEL_THRESHOLD = 0.1

SEASONALITY_THRESHOLD = 0.5
PRICE_INCREASE_RATIO = 0.15

# Threshold explanation factors
PRICE_TIERS = ((500, "high"), (100, "medium"), (20, "low"))
PRICE_TIER_DEFAULT = "very_low"
INVENTORY_PERCENT_TIERS = ((80, "high"), (50, "medium"), (20, "low"))
NEW_PRODUCT_DAYS = 7
RECENT_PRODUCT_DAYS = 30

# Shop-wide rollups
LOW_STOCK_UNITS = 10
TOP_CUSTOMERS_LIMIT = 10
RECENT_ORDERS_LIMIT = 10

# Pagination
SHOPIFY_MAX_PAGE_SIZE = 250
DEFAULT_PAGE_SIZE = 50
MAX_PRODUCT_PAGES = 50

# LTV/CAC
LTV_CAC_WINDOW_MONTHS = 6
ACTIVE_CUSTOMER_MONTHS = 3
LTV_CAC_RECORD_CAP = 1000
PAID_FINANCIAL_STATUSES = ("paid", "partially_paid")
DEFAULT_CHURN_RATE = 0.05
MINIMUM_CHURN_RATE = 0.01
MAXIMUM_CHURN_RATE = 0.5
DEFAULT_CUSTOMER_LIFESPAN_MONTHS = 20
LTV_CAC_EXCELLENT_RATIO = 5
LTV_CAC_GREAT_RATIO = 3
LTV_CAC_GOOD_RATIO = 1.5
LTV_CAC_BREAK_EVEN_RATIO = 1
