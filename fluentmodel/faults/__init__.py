"""
FluentModel Faults - structured fault types.

Errors raised by fluentmodel are typed faults carrying a stable code,
a domain, a severity and metadata instead of bare exceptions.

Taxonomy:
- Shape faults: InvalidModelFault, InvalidParamsFault
- Safety faults: MissingWhereFault, MissingModelFault, EmptyUpdateFault
- Execution faults: QueryFault, DatabaseConnectionFault, ModelNotFoundFault
- Configuration faults: ConfigInvalidFault
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    ConfigFault,
    ConfigInvalidFault,
    ModelFault,
    InvalidModelFault,
    InvalidParamsFault,
    MissingWhereFault,
    MissingModelFault,
    EmptyUpdateFault,
    ModelNotFoundFault,
    QueryFault,
    DatabaseConnectionFault,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",

    # Config
    "ConfigFault",
    "ConfigInvalidFault",

    # Model
    "ModelFault",
    "InvalidModelFault",
    "InvalidParamsFault",
    "MissingWhereFault",
    "MissingModelFault",
    "EmptyUpdateFault",
    "ModelNotFoundFault",
    "QueryFault",
    "DatabaseConnectionFault",
]
