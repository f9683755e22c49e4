__version__ = "0.1.0"

from report_reconciler.config import ReconcilerConfig, load_config
from report_reconciler.errors import (
    ConfigError,
    EmptyResult,
    ErrorKind,
    HeaderNotFound,
    NoTaskColumn,
    ObservationError,
    ReconcileError,
)
from report_reconciler.extract import extract_rows, import_fixed_layout, parse_template
from report_reconciler.fields import FIELD_SYNONYMS, FieldKey, match_field
from report_reconciler.grid import Grid, ListGrid, WorksheetGrid, grid_from_dataframe
from report_reconciler.header import locate_header
from report_reconciler.merge import build_weekly_template, derive_next_plan, merge_observations
from report_reconciler.models import (
    CanonicalTask,
    ColumnMap,
    DailyObservation,
    ReportTemplate,
    TaskStatus,
    UserInfo,
)
from report_reconciler.plan import is_plan_marker, locate_plan
from report_reconciler.projector import project
from report_reconciler.splitter import split_items

__all__ = [
    "CanonicalTask",
    "ColumnMap",
    "ConfigError",
    "DailyObservation",
    "EmptyResult",
    "ErrorKind",
    "FIELD_SYNONYMS",
    "FieldKey",
    "Grid",
    "HeaderNotFound",
    "ListGrid",
    "NoTaskColumn",
    "ObservationError",
    "ReconcileError",
    "ReconcilerConfig",
    "ReportTemplate",
    "TaskStatus",
    "UserInfo",
    "WorksheetGrid",
    "build_weekly_template",
    "derive_next_plan",
    "extract_rows",
    "grid_from_dataframe",
    "import_fixed_layout",
    "is_plan_marker",
    "load_config",
    "locate_header",
    "locate_plan",
    "match_field",
    "merge_observations",
    "parse_template",
    "project",
    "split_items",
]
