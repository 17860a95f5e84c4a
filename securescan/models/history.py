from sqlalchemy import Column, String, DateTime, LargeBinary, func
from securescan.database import Base


class HistorySnapshot(Base):
    """One opaque blob per history kind ("scans", "messages")."""
    __tablename__ = "history_snapshots"

    key = Column(String(32), primary_key=True)
    payload = Column(LargeBinary, nullable=False)    # JSON-encoded record list
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
