"""Accounts API — CRUD and the deposit/withdraw ledger."""

from fastapi import APIRouter, Depends

from journal.api.deps import get_current_user, get_identity, get_journal
from journal.engine import codec
from journal.engine.commands import DeleteTransaction, Deposit, UpdateAccount, Withdraw
from journal.engine.journal import Journal
from journal.engine.records import Identity
from journal.models.user import User
from journal.schemas.account import (
    AccountCreate,
    AccountRead,
    AccountUpdate,
    DepositRequest,
    TransactionRead,
    WithdrawRequest,
)

router = APIRouter(prefix="/api/accounts", tags=["accounts"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=list[AccountRead])
async def list_accounts(
    user: User = Depends(get_current_user),
    journal: Journal = Depends(get_journal),
):
    return [codec.account_to_row(a) for a in await journal.list_accounts(user.username)]


@router.post("", response_model=AccountRead, status_code=201)
async def create_account(
    data: AccountCreate,
    user: User = Depends(get_current_user),
    journal: Journal = Depends(get_journal),
):
    account = await journal.create_account(user.username, **data.model_dump())
    return codec.account_to_row(account)


@router.get("/{account_id}", response_model=AccountRead)
async def get_account(identity: Identity = Depends(get_identity), journal: Journal = Depends(get_journal)):
    state = await journal.state(identity)
    return codec.account_to_row(state.account)


@router.put("/{account_id}", response_model=AccountRead)
async def update_account(
    data: AccountUpdate,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    state = await journal.execute(identity, UpdateAccount(patch=data.model_dump(exclude_unset=True)))
    return codec.account_to_row(state.account)


@router.delete("/{account_id}", status_code=204)
async def delete_account(identity: Identity = Depends(get_identity), journal: Journal = Depends(get_journal)):
    await journal.delete_account(identity)


@router.post("/{account_id}/deposit", response_model=AccountRead)
async def deposit(
    data: DepositRequest,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    state = await journal.execute(
        identity, Deposit(amount=data.amount, on=data.on, description=data.description)
    )
    return codec.account_to_row(state.account)


@router.post("/{account_id}/withdraw", response_model=AccountRead)
async def withdraw(
    data: WithdrawRequest,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    command = Withdraw(
        amount=data.amount,
        on=data.on,
        description=data.description,
        confirm_from_capital=data.confirm_from_capital,
    )
    state = await journal.execute(identity, command)
    return codec.account_to_row(state.account)


@router.get("/{account_id}/transactions", response_model=list[TransactionRead])
async def list_transactions(identity: Identity = Depends(get_identity), journal: Journal = Depends(get_journal)):
    return [codec.transaction_to_row(tx) for tx in await journal.transactions(identity)]


@router.delete("/{account_id}/transactions/{transaction_id}", response_model=AccountRead)
async def delete_transaction(
    transaction_id: str,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    state = await journal.execute(identity, DeleteTransaction(transaction_id))
    return codec.account_to_row(state.account)
