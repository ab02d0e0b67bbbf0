from sqlalchemy import Column, Integer, Numeric, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from settleup.db.session import Base

class ExpenseSplit(Base):
    __tablename__ = "expense_splits"
    __table_args__ = (UniqueConstraint("expense_id", "user_id"),)

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    percentage = Column(Numeric(7, 4), nullable=True)
    amount = Column(Numeric(12, 2), nullable=True)
    final_share = Column(Numeric(12, 2), nullable=False)
    status = Column(String, nullable=False, default="pending")

    expense = relationship("Expense", back_populates="splits")
