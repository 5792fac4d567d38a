"""
Custom error classes for SalesOps Hub.
Structured error handling with error codes at the pipeline boundaries.

The merge, aggregation and comparison functions never raise for well-typed
input; these errors belong to the loader, the CLI and the pipeline runner.

Hierarchy:
    HubError
    ├── DataError
    │   ├── ConfigError
    │   ├── SchemaValidationError
    │   └── DataFetchError
    └── PipelineError
        └── PipelineStepError
"""


class HubError(Exception):
    """Base exception for all SalesOps Hub errors."""

    def __init__(self, message: str, code: str = "UNKNOWN", details: dict = None):
        self.code = code
        self.details = details or {}
        super().__init__(f"[{code}] {message}")


# --- Data Errors ---

class DataError(HubError):
    """Base class for data processing errors."""
    pass


class ConfigError(DataError):
    """Invalid configuration or filter selection."""

    def __init__(self, message: str, config_path: str = None, option: str = None):
        super().__init__(
            message, code="CONFIG_ERROR",
            details={"config_path": config_path, "option": option},
        )


class SchemaValidationError(DataError):
    """Data doesn't match expected schema."""

    def __init__(self, message: str, field: str = None):
        super().__init__(
            message, code="SCHEMA_INVALID", details={"field": field},
        )


class DataFetchError(DataError):
    """Failed to fetch or load record data."""

    def __init__(self, message: str, source: str = None):
        super().__init__(
            message, code="DATA_FETCH_FAILED", details={"source": source},
        )


# --- Pipeline Errors ---

class PipelineError(HubError):
    """Pipeline orchestration error."""
    pass


class PipelineStepError(PipelineError):
    """A specific pipeline step failed."""

    def __init__(self, step_name: str, cause: Exception = None):
        msg = f"Pipeline step '{step_name}' failed"
        if cause:
            msg += f": {cause}"
        super().__init__(
            msg, code="PIPELINE_STEP_FAILED", details={"step": step_name},
        )
