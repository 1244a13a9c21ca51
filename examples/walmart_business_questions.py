"""Example: answer the Walmart sales business questions.

This example plays the ingestion and presentation collaborators around the
analytics core: it reads a cleaned CSV with pandas, converts it to records,
runs every business question and prints the resulting tables.

Prerequisites:
- A cleaned export at data/walmart_clean.csv with columns
  invoice_id, Branch, City, category, unit_price, quantity, total,
  payment_method, rating, profit_margin, date (dd/mm/YYYY), time (HH:MM:SS)
"""

import logging
from pathlib import Path

import pandas as pd

from retail_core import AnalyticsConfig, RecordStore, queries
from retail_core.frames import records_from_frame, to_frame

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

csv_path = Path("data/walmart_clean.csv")  # MODIFY AS NEEDED
config = AnalyticsConfig.from_env()

df = pd.read_csv(csv_path, dtype={"date": str, "time": str})
store = RecordStore(
    records_from_frame(
        df,
        {"Branch": "branch", "City": "city", "date": "transaction_date", "time": "transaction_time"},
    )
)

summary = queries.overview(store)
print(f"Total records: {summary.total_records}")
print(f"Distinct branches: {summary.distinct_branches}")
print(f"Minimum quantity sold: {summary.min_quantity}")

print("\nQ1: Payment methods, transactions and quantity sold")
print(to_frame(queries.payment_method_summary(store)))

print("\nQ2: Highest-rated category in each branch")
print(to_frame(queries.top_rated_category_per_branch(store)))

print("\nQ3: Busiest day for each branch")
busiest = queries.busiest_day_per_branch(store, config)
print(to_frame(busiest))
if busiest.excluded:
    print(f"({busiest.excluded} record(s) skipped: unparseable date)")

print("\nQ4: Total quantity sold per payment method")
print(to_frame(queries.quantity_by_payment_method(store)))

print("\nQ5: Rating stats for each category per city")
print(to_frame(queries.rating_stats_by_city_category(store)))

print("\nQ6: Total profit per category")
print(to_frame(queries.profit_by_category(store)))

print("\nQ7: Most common payment method per branch")
print(to_frame(queries.preferred_payment_method_per_branch(store)))

print("\nQ8: Invoices per shift")
print(to_frame(queries.invoices_by_shift(store, config)))

print("\nRevenue per branch and year")
print(to_frame(queries.revenue_by_branch_year(store, config)))

print(f"\nQ9: Top {config.trend_limit} branches by revenue decrease {config.base_year} -> {config.compare_year}")
report = queries.revenue_decrease(store, config=config)
print(to_frame(report))
if report.undefined:
    print(f"(no baseline revenue for: {', '.join(report.undefined)})")
