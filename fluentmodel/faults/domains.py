"""
FluentModel Faults - concrete fault classes.

Each class fixes its code (and, where it differs from the domain default,
severity and retry flag) as class attributes; the constructor only builds
the message and metadata.
"""

from typing import Any, Optional

from .core import Fault, FaultDomain, Severity


def _meta(extra: Optional[dict[str, Any]], **fields: Any) -> dict[str, Any]:
    return {**fields, **(extra or {})}


class _DomainFault(Fault):
    severity_default: Optional[Severity] = None
    retryable_default: Optional[bool] = None

    def __init__(self, message: str, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            message=message,
            severity=self.severity_default,
            retryable=self.retryable_default,
            metadata=metadata,
        )


# ── Configuration ────────────────────────────────────────────────────────────

class ConfigFault(_DomainFault):
    domain = FaultDomain.CONFIG


class ConfigInvalidFault(ConfigFault):
    """A configuration value could not be used."""

    code = "CONFIG_INVALID"

    def __init__(self, key: str, reason: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            f"Invalid configuration for '{key}': {reason}",
            _meta(metadata, key=key, reason=reason),
        )


# ── Model ────────────────────────────────────────────────────────────────────

class ModelFault(_DomainFault):
    """
    Anything that goes wrong between a ``DBModel`` call and the database.

    Shape faults (wrong target or argument types), safety faults (an update
    that would touch every row, or nothing) and execution faults (driver
    errors, no matching row) all derive from it.
    """

    domain = FaultDomain.MODEL


class InvalidModelFault(ModelFault):
    code = "INVALID_MODEL"

    def __init__(self, model: Any, expected: str, *, metadata: Optional[dict[str, Any]] = None):
        got = model.__name__ if isinstance(model, type) else type(model).__name__
        super().__init__(
            f"Invalid model: expected {expected}, got {got}",
            _meta(metadata, expected=expected, got=got),
        )


class InvalidParamsFault(ModelFault):
    code = "INVALID_PARAMS"

    def __init__(self, operation: str, reason: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            f"Invalid params for {operation}: {reason}",
            _meta(metadata, operation=operation, reason=reason),
        )


class MissingWhereFault(ModelFault):
    """Refused an UPDATE that has no WHERE condition."""

    code = "MISSING_WHERE"

    def __init__(self, table: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            f"Missing WHERE condition for updating table '{table}'",
            _meta(metadata, table=table),
        )


class MissingModelFault(ModelFault):
    """A mapping update needs a record bound with ``model()`` first."""

    code = "MISSING_MODEL"

    def __init__(self, operation: str = "update", *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            f"Missing model for map value ({operation}); bind one with model()",
            _meta(metadata, operation=operation),
        )


class EmptyUpdateFault(ModelFault):
    code = "EMPTY_UPDATE"

    def __init__(self, table: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            f"No updatable columns for table '{table}'",
            _meta(metadata, table=table),
        )


class ModelNotFoundFault(ModelFault):
    code = "MODEL_NOT_FOUND"
    severity_default = Severity.WARN

    def __init__(self, model_name: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            f"No '{model_name}' row matched the query",
            _meta(metadata, model=model_name),
        )


class QueryFault(ModelFault):
    """The driver rejected a statement. Locks and timeouts may clear on retry."""

    code = "QUERY_FAILED"
    retryable_default = True

    def __init__(self, model: str, operation: str, reason: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            f"Query on '{model}' ({operation}) failed: {reason}",
            _meta(metadata, model=model, operation=operation, reason=reason),
        )


class DatabaseConnectionFault(ModelFault):
    code = "DB_CONNECTION_FAILED"
    severity_default = Severity.FATAL
    retryable_default = True

    def __init__(self, url: str, reason: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(
            f"Database connection failed ({url}): {reason}",
            _meta(metadata, url=url, reason=reason),
        )
