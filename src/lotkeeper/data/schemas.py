"""
Data schemas for CSV file validation.

Defines expected columns and data types for lot import and for lot and
summary exports.
"""

from dataclasses import dataclass


@dataclass
class ColumnSchema:
    """Schema definition for a single column."""
    name: str
    dtype: str  # pandas dtype string
    required: bool = True
    nullable: bool = False


@dataclass
class FileSchema:
    """Schema definition for a file."""
    name: str
    columns: list[ColumnSchema]
    description: str

    @property
    def required_columns(self) -> list[str]:
        """Get list of required column names."""
        return [c.name for c in self.columns if c.required]

    @property
    def all_columns(self) -> list[str]:
        """Get list of all column names."""
        return [c.name for c in self.columns]

    def validate_columns(self, df_columns: list[str]) -> tuple[bool, list[str]]:
        """
        Validate that a dataframe has the required columns.

        Args:
            df_columns: List of column names from the dataframe

        Returns:
            Tuple of (is_valid, list of missing columns)
        """
        missing = [col for col in self.required_columns if col not in df_columns]
        return len(missing) == 0, missing


# Lots Schema (import/export)
# portfolios is a ";"-separated list of names
LOTS_SCHEMA = FileSchema(
    name="lots",
    description="Lot-level purchases with cost basis and portfolio memberships",
    columns=[
        ColumnSchema(name="lot_id", dtype="str", required=False, nullable=True),
        ColumnSchema(name="ticker", dtype="str", required=True),
        ColumnSchema(name="shares", dtype="float64", required=True),
        ColumnSchema(name="cost_per_share", dtype="float64", required=True),
        ColumnSchema(name="purchase_date", dtype="str", required=True),
        ColumnSchema(name="portfolios", dtype="str", required=False, nullable=True),
        ColumnSchema(name="notes", dtype="str", required=False, nullable=True),
        ColumnSchema(name="total_cost", dtype="float64", required=False),
    ],
)

# Ticker Summary Schema (export only)
SUMMARY_SCHEMA = FileSchema(
    name="ticker_summary",
    description="Per-ticker aggregated cost basis",
    columns=[
        ColumnSchema(name="ticker", dtype="str", required=True),
        ColumnSchema(name="total_shares", dtype="float64", required=True),
        ColumnSchema(name="total_cost", dtype="float64", required=True),
        ColumnSchema(name="average_cost_per_share", dtype="float64", required=True),
        ColumnSchema(name="lot_count", dtype="int64", required=True),
        ColumnSchema(name="earliest_purchase", dtype="str", required=True),
        ColumnSchema(name="latest_purchase", dtype="str", required=True),
    ],
)
