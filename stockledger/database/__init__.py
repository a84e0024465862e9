from stockledger.database.base import Base
from stockledger.database.engine import build_engine, ensure_schema
from stockledger.database.session import build_session_factory

__all__ = ["Base", "build_engine", "build_session_factory", "ensure_schema"]
