from .statements import Statement, StatementKind, StatementBuilder
from .gateway import PersistenceGateway, QueryResult
from .session import build_engine, create_tables

__all__ = [
    "Statement",
    "StatementKind",
    "StatementBuilder",
    "PersistenceGateway",
    "QueryResult",
    "build_engine",
    "create_tables",
]
