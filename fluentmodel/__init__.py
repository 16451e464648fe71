"""
FluentModel - fluent, async persistence for dataclass records.

    from fluentmodel import DBModel, WhereOpt, configure_database

    database = configure_database("sqlite:///app.db")
    db = DBModel(database)
    user = await db.where("name", WhereOpt.LIKE, "Cat%").first(User)
"""

__version__ = "0.1.0"

from .models import (
    DBModel,
    GetOne,
    Column,
    Table,
    column,
    model_data,
    WhereOpt,
    WhereAndOr,
    OrderByDir,
    JoinType,
    ValueField,
    Condition,
    WhereBuilder,
)

from .db import (
    Database,
    Transaction,
    get_database,
    configure_database,
    set_database,
)

from .config import DatabaseConfig, configure_from

from .faults import (
    Fault,
    ModelFault,
    InvalidModelFault,
    InvalidParamsFault,
    MissingWhereFault,
    MissingModelFault,
    EmptyUpdateFault,
    ModelNotFoundFault,
    QueryFault,
    DatabaseConnectionFault,
    ConfigInvalidFault,
)

__all__ = [
    "__version__",
    # Models
    "DBModel",
    "GetOne",
    "Column",
    "Table",
    "column",
    "model_data",
    "WhereOpt",
    "WhereAndOr",
    "OrderByDir",
    "JoinType",
    "ValueField",
    "Condition",
    "WhereBuilder",
    # Database
    "Database",
    "Transaction",
    "get_database",
    "configure_database",
    "set_database",
    # Config
    "DatabaseConfig",
    "configure_from",
    # Faults
    "Fault",
    "ModelFault",
    "InvalidModelFault",
    "InvalidParamsFault",
    "MissingWhereFault",
    "MissingModelFault",
    "EmptyUpdateFault",
    "ModelNotFoundFault",
    "QueryFault",
    "DatabaseConnectionFault",
    "ConfigInvalidFault",
]
