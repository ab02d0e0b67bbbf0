from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from settleup.db.session import Base

class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    payer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    payee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    method = Column(String, nullable=False, default="upi")
    status = Column(String, nullable=False, default="created", index=True)
    transaction_id = Column(String, nullable=True)
    screenshot_url = Column(String, nullable=True)
    note = Column(String, nullable=False, server_default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)

    related = relationship(
        "PaymentExpense",
        back_populates="payment",
        cascade="all, delete",
        order_by="PaymentExpense.expense_id",
        lazy="selectin",
    )

    @property
    def related_expenses(self):
        return [r.expense_id for r in self.related]


class PaymentExpense(Base):
    __tablename__ = "payment_expenses"

    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="CASCADE"), primary_key=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), primary_key=True)

    payment = relationship("Payment", back_populates="related")
