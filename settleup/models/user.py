from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from settleup.db.session import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False)
    payment_address = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
