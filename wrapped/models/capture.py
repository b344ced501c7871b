"""
Raw network capture history and capture-side checkpoints.
"""
from sqlalchemy import Column, String, Text, JSON

from wrapped.database import Base


class CaptureSnapshotModel(Base):
    """Raw network response, kept as captured."""
    __tablename__ = "capture_snapshots"

    id = Column(String, primary_key=True)
    captured_at = Column(String, nullable=False)
    source_type = Column(String, nullable=False, default="fetch")
    url = Column(Text, nullable=True)
    raw_json = Column(JSON, nullable=False)


class CheckpointModel(Base):
    """Key/value state owned by the capture collaborator."""
    __tablename__ = "checkpoints"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=True)
