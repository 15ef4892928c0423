"""Bulk adjustment entities."""

from dataclasses import dataclass

from pydantic import BaseModel, Field


class BulkAdjustmentRow(BaseModel):
    """A validated adjustment row, ready to apply."""

    row: int  # 1-based data row, header excluded
    product_id: str
    delta: int
    unit_cost: float = Field(ge=0)
    reason: str
    notes: str | None = None

    @property
    def combined_notes(self) -> str:
        return f"{self.reason} - {self.notes}" if self.notes else self.reason


class BulkRowError(BaseModel):
    row: int
    product_id: str = ""
    error: str
    # Product was updated but its ledger row is missing
    partial: bool = False


@dataclass(frozen=True)
class RowOk:
    value: BulkAdjustmentRow


@dataclass(frozen=True)
class RowErr:
    error: BulkRowError


RowResult = RowOk | RowErr


class BulkOperationResult(BaseModel):
    """Outcome of one bulk adjustment run."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    errors: list[BulkRowError] = Field(default_factory=list)
    committed_rows: list[int] = Field(default_factory=list)
