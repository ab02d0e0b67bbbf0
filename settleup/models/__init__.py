from settleup.models.user import User
from settleup.models.friendship import Friendship
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from settleup.models.expense import Expense
from settleup.models.expense_split import ExpenseSplit
from settleup.models.payment import Payment, PaymentExpense

__all__ = [
    "User",
    "Friendship",
    "Group",
    "GroupMember",
    "Expense",
    "ExpenseSplit",
    "Payment",
    "PaymentExpense",
]
