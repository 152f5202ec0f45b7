"""I/O utilities for CSV import."""

from .import_csv import (
    import_duration_records_csv,
    import_employees_csv,
    import_equipment_csv,
    import_jobs_csv,
    import_reservations_csv,
    import_series_csv,
)

__all__ = [
    "import_employees_csv",
    "import_jobs_csv",
    "import_equipment_csv",
    "import_reservations_csv",
    "import_series_csv",
    "import_duration_records_csv",
]
