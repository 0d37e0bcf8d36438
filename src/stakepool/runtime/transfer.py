# src/stakepool/runtime/transfer.py
from __future__ import annotations

"""Value transfer collaborator.

The pool only decides amounts. Moving them is delegated to an object with
two calls:

- pull(asset, account, amount): move `amount` from `account` into custody
- push(asset, account, amount): move `amount` out of custody to `account`

Either call signals failure by raising. The pool treats the call as part
of the enclosing operation: if it raises, nothing is committed.
"""

import threading
from typing import Dict, Protocol, Tuple

from stakepool.runtime.errors import TransferFailure


class ValueTransfer(Protocol):
    def pull(self, asset: str, account: str, amount: int) -> None: ...

    def push(self, asset: str, account: str, amount: int) -> None: ...


class InMemoryCustody:
    """Balance book keyed by (asset, account), with one custody account.

    Used by the HTTP service and tests. A failed call leaves balances
    untouched.
    """

    def __init__(self, *, custody_account: str = "POOL") -> None:
        acct = str(custody_account or "").strip()
        if not acct:
            raise ValueError("custody_account must be a non-empty string")
        self.custody_account = acct
        self._balances: Dict[Tuple[str, str], int] = {}
        self._lock = threading.Lock()

    def balance_of(self, asset: str, account: str) -> int:
        with self._lock:
            return int(self._balances.get((asset, account), 0))

    def custody_balance(self, asset: str) -> int:
        return self.balance_of(asset, self.custody_account)

    def mint(self, asset: str, account: str, amount: int) -> None:
        if int(amount) < 0:
            raise ValueError("mint amount must be >= 0")
        with self._lock:
            key = (asset, account)
            self._balances[key] = int(self._balances.get(key, 0)) + int(amount)

    def _move(self, asset: str, src: str, dst: str, amount: int) -> None:
        amt = int(amount)
        if amt < 0:
            raise TransferFailure("negative_amount", {"asset": asset, "amount": amt})
        if amt == 0:
            return
        with self._lock:
            have = int(self._balances.get((asset, src), 0))
            if have < amt:
                raise TransferFailure(
                    "insufficient_balance",
                    {"asset": asset, "account": src, "balance": have, "amount": amt},
                )
            self._balances[(asset, src)] = have - amt
            self._balances[(asset, dst)] = int(self._balances.get((asset, dst), 0)) + amt

    def pull(self, asset: str, account: str, amount: int) -> None:
        self._move(asset, account, self.custody_account, amount)

    def push(self, asset: str, account: str, amount: int) -> None:
        self._move(asset, self.custody_account, account, amount)
