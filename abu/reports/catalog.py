"""Account listing and console role-switch URLs."""

from __future__ import annotations

import asyncio
from typing import List, Sequence

import httpx

from ..context import RuntimeContext
from ..domain.models import Account
from ..domain.utils.ranking import RankStrategy, rank
from ..errors import AccountNotFoundError, AccountSuspendedError, ConfigurationError

SWITCH_ROLE_URL = "https://signin.aws.amazon.com/switchrole"


async def list_accounts(ctx: RuntimeContext) -> List[Account]:
    """Return all organization accounts sorted by name."""
    accounts = await asyncio.to_thread(ctx.source.list_accounts)
    return rank(accounts, RankStrategy.BY_NAME_ASC, name=lambda a: a.name)


def find_account(accounts: Sequence[Account], target: str) -> Account:
    """Return the first account whose name or id equals ``target``."""
    for account in accounts:
        if target in (account.name, account.id):
            return account
    raise AccountNotFoundError(target)


def build_switch_url(account: Account, role_name: str) -> str:
    """Return the console URL switching into ``role_name`` in ``account``."""
    if account.suspended:
        raise AccountSuspendedError(account.id, account.name)
    url = httpx.URL(
        SWITCH_ROLE_URL,
        params={
            "account": account.id,
            "roleName": role_name,
            "displayName": f"{account.name}-{account.id}",
        },
    )
    return str(url)


async def switch_url(ctx: RuntimeContext, target: str) -> str:
    """Resolve ``target`` (account name or id) to a role-switch URL."""
    if not ctx.switch_role_name:
        raise ConfigurationError(
            "Set ABU_SWITCH_ROLE_NAME to the name of the role to switch into"
        )
    accounts = await asyncio.to_thread(ctx.source.list_accounts)
    return build_switch_url(find_account(accounts, target), ctx.switch_role_name)
