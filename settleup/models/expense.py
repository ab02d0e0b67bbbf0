from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from settleup.db.session import Base

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True, index=True)
    paid_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    description = Column(String, nullable=False)
    split_type = Column(String, nullable=False, server_default="none")
    category = Column(String, nullable=False, server_default="other")
    notes = Column(String, nullable=False, server_default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Ordered by input position; the first entry absorbs rounding drift
    splits = relationship(
        "ExpenseSplit",
        back_populates="expense",
        cascade="all, delete",
        order_by="ExpenseSplit.position",
        lazy="selectin",
    )
