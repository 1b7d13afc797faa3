"""
Check stock status - near-expiry batches, low-stock batches and stock value.
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.config import get_config
from services.stock_report_service import low_stock_report, near_expiry_report, stock_value_report


def check_stock_status(tenant_id: str, days: int, threshold: int) -> None:
    """Print the three stock reports for one tenant."""

    print("=" * 60)
    print(f"STOCK STATUS - tenant {tenant_id}")
    print("=" * 60)

    valuation = stock_value_report(tenant_id)
    print(f"Total stock value:         {valuation.total_value:.2f}")
    print(f"Products in stock:         {len(valuation.per_product)}")
    print("-" * 60)
    for entry in valuation.per_product:
        print(f"{entry.product_id:<30} qty={entry.quantity:<6} value={entry.value:.2f}")

    print(f"\nExpiring within {days} days (soonest first):")
    print("-" * 60)
    expiring = near_expiry_report(tenant_id, days_threshold=days)
    for batch in expiring:
        expiry = batch.expiry_date.date().isoformat() if batch.expiry_date else "-"
        print(f"{expiry}  {batch.product_id:<30} batch={batch.batch_number or batch.stock_batch_id} qty={batch.quantity}")
    if not expiring:
        print("None")

    print(f"\nLow stock (1..{threshold} units):")
    print("-" * 60)
    low = low_stock_report(tenant_id, threshold=threshold)
    for batch in low:
        print(f"{batch.product_id:<30} batch={batch.batch_number or batch.stock_batch_id} qty={batch.quantity}")
    if not low:
        print("None")

    print("=" * 60)


if __name__ == "__main__":
    config = get_config()
    parser = argparse.ArgumentParser(description="Print near-expiry, low-stock and stock value reports")
    parser.add_argument("--tenant", default="default", help="Tenant (pharmacy) id")
    parser.add_argument("--days", type=int, default=config.near_expiry_days, help="Near-expiry lookahead in days")
    parser.add_argument("--threshold", type=int, default=config.low_stock_threshold, help="Low-stock threshold")
    args = parser.parse_args()

    check_stock_status(args.tenant, args.days, args.threshold)
