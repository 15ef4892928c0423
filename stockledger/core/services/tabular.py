"""
CSV encoding for bulk adjustments and exports.

Thin wrapper over the standard csv module: header constants, parsing
into header + rows, and rendering.
"""

import csv
import io
from dataclasses import dataclass, field

PRODUCT_ID = "Product ID"
PRODUCT_NAME = "Product Name"
CATEGORY = "Category"
CURRENT_STOCK = "Current Stock"
ADJUSTMENT_QUANTITY = "Adjustment Quantity"
UNIT_COST = "Unit Cost"
REASON = "Reason"
NOTES = "Notes"

REQUIRED_ADJUSTMENT_HEADERS = [PRODUCT_ID, ADJUSTMENT_QUANTITY, UNIT_COST, REASON]

ADJUSTMENT_HEADERS = [
    PRODUCT_ID,
    PRODUCT_NAME,
    CATEGORY,
    CURRENT_STOCK,
    ADJUSTMENT_QUANTITY,
    UNIT_COST,
    REASON,
    NOTES,
]

VALUATION_HEADERS = [
    PRODUCT_ID,
    PRODUCT_NAME,
    CATEGORY,
    CURRENT_STOCK,
    UNIT_COST,
    "Total Value",
    "Last Updated",
    "Reorder Point",
]

TRANSACTION_HEADERS = [
    "Transaction ID",
    PRODUCT_ID,
    PRODUCT_NAME,
    "Type",
    "Quantity",
    UNIT_COST,
    "Total Cost",
    "Date",
    "Reference",
    NOTES,
    "Created By",
]


@dataclass
class ParsedTable:
    headers: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)


def parse_csv(content: str) -> ParsedTable | None:
    """
    Parse CSV text with a header row.

    Blank lines are skipped and cells are stripped. Returns None when the
    text holds no non-blank line at all.
    """
    content = content.lstrip("\ufeff")
    records = [
        [cell.strip() for cell in record]
        for record in csv.reader(io.StringIO(content))
        if any(cell.strip() for cell in record)
    ]
    if not records:
        return None

    headers = records[0]
    rows = [
        {header: (record[i] if i < len(record) else "") for i, header in enumerate(headers)}
        for record in records[1:]
    ]
    return ParsedTable(headers=headers, rows=rows)


def render_csv(headers: list[str], rows: list[list[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


@dataclass
class AdjustmentTemplate:
    """Blank or prefilled adjustment sheet with usage notes."""

    headers: list[str]
    sample_data: list[list[str]]
    instructions: list[str]

    def to_csv(self) -> str:
        return render_csv(self.headers, self.sample_data)


TEMPLATE_SAMPLE_ROWS = [
    ["PROD001", "Lavender Essential Oil", "Essential Oils", "100", "+50", "25.00",
     "Stock replenishment", "Monthly restock"],
    ["PROD002", "Rose Fragrance Oil", "Fragrance Oils", "75", "-10", "15.50",
     "Damaged goods", "Broken bottles"],
    ["PROD003", "10ml Glass Bottle", "Packaging", "500", "+200", "0.75",
     "Bulk purchase", "Quarterly order"],
]


def template_instructions(max_rows: int) -> list[str]:
    return [
        "1. Product ID must match existing products in the system",
        "2. Adjustment Quantity: Use + for additions, - for subtractions",
        "3. Unit Cost should be the cost per unit for this adjustment",
        "4. Reason is required for all adjustments",
        "5. Notes are optional but recommended for tracking",
        "6. Do not modify the header row",
        f"7. Maximum {max_rows} rows per upload",
    ]
