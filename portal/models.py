from datetime import datetime

from sqlalchemy import BigInteger, Column, DateTime, String

from .db import Base


class GameMapping(Base):
    """Administrator-curated link between a Steam app id and a stored file."""

    __tablename__ = "game_mappings"

    app_id = Column(String(20), primary_key=True)
    name = Column(String(200), nullable=True, index=True)
    file_id = Column(String(200), nullable=True)
    size_bytes = Column(BigInteger, nullable=True)
    art = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
