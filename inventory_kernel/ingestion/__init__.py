"""Import pipelines that feed the stock ledger."""

from inventory_kernel.ingestion.sales_import import (
    SalesImportSummary,
    SalesRowError,
    import_sales_csv,
    import_sales_file,
    import_sales_xlsx,
)

__all__ = [
    "SalesImportSummary",
    "SalesRowError",
    "import_sales_csv",
    "import_sales_file",
    "import_sales_xlsx",
]
