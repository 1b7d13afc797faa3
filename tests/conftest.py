"""
Pytest configuration.

Adds the project root to the Python path so tests can import domain,
repositories, services and api without installing the project, and provides
the FEFO stock fixture shared by the allocation tests.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.stock import StockBatch  # noqa: E402


@pytest.fixture
def fefo_batches() -> list[StockBatch]:
    """Two dated lots of P1 given latest-expiry first, plus an unrelated product."""

    return [
        StockBatch(stock_batch_id="B2", product_id="P1", quantity=5, expiry_date=datetime(2024, 2, 1, 0, 0, 0, tzinfo=timezone.utc)),
        StockBatch(stock_batch_id="X1", product_id="P9", quantity=50, expiry_date=datetime(2023, 12, 1, 0, 0, 0, tzinfo=timezone.utc)),
        StockBatch(stock_batch_id="B1", product_id="P1", quantity=5, expiry_date=datetime(2024, 1, 10, 0, 0, 0, tzinfo=timezone.utc)),
    ]
