from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from shorty_app.database.connection import Base


class URL(Base):
    """
    Short link model.

    Rows are created once and never deleted; only `clicks` changes afterwards.
    """
    __tablename__ = "urls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # unique=True plus index=True gives a unique index on short_code
    short_code = Column(String(10), unique=True, nullable=False, index=True)
    # Indexed for the duplicate lookup on shorten
    original_url = Column(Text, nullable=False, index=True)
    clicks = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
