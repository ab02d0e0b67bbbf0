from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.schemas.expense import ExpenseCreate, ExpenseOut
from settleup.schemas.balances import SettlementOut
from settleup.services.expense_services import create_expense, pay_own_share, get_debt, get_cred, get_expenses, get_expense_by_id, delete_expense
from settleup.services.balance_services import get_expense_settlement
from settleup.core.dependencies import get_current_user, get_membership_checker

router = APIRouter()

@router.post("/", response_model=ExpenseOut, status_code=201)
async def add_expense(
    data: ExpenseCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    checker = Depends(get_membership_checker)
):
    return await create_expense(db, data, current_user.id, checker)

@router.get("/debt")
async def expenses_i_owe(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_debt(db, user_id=current_user.id)

@router.get("/cred")
async def expenses_i_am_owed(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_cred(db, user_id=current_user.id)

@router.get("/my-expenses/all", response_model=list[ExpenseOut])
async def my_expenses(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_expenses(db, user_id=current_user.id)

@router.get("/{expense_id}", response_model=ExpenseOut)
async def fetch(expense_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_expense_by_id(db, expense_id=expense_id, user_id=current_user.id)

@router.delete("/{expense_id}")
async def remove(expense_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await delete_expense(db, expense_id=expense_id, user_id=current_user.id)

@router.patch("/{expense_id}/pay", response_model=ExpenseOut)
async def pay(expense_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await pay_own_share(db, expense_id=expense_id, user_id=current_user.id)

@router.get("/{expense_id}/settlement", response_model=SettlementOut)
async def settlement(expense_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_expense_settlement(db, expense_id=expense_id, user_id=current_user.id)
