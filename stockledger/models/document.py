from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, UniqueConstraint

from stockledger.database.base import Base


class Document(Base):
    __tablename__ = "documents"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(80), nullable=False)
    doc_id = Column(String(64), nullable=False)

    data = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc"),
        Index("idx_documents_collection", "collection", "seq"),
    )

    def __repr__(self):
        return f"<Document(collection='{self.collection}', id='{self.doc_id}')>"


__all__ = ["Document"]
