"""
Settlement solver — who pays whom.

Greedy matching over integer cents:

1. Take the player with the largest remaining debt and the
   player with the largest remaining credit.
2. Transfer min(debt, credit) from the debtor to the creditor.
3. Drop whoever reaches zero; repeat until one side is empty.

Every step settles at least one player completely, so N players
with non-zero results need at most N-1 transfers.

Ties on equal remaining balance are broken by ascending user id,
so identical input always yields the identical transfer list.

A leftover of at most tolerance_cents (from totals that balance
within tolerance but not exactly) is folded into the last
transfer that involved the player carrying it. Anything larger
can only come from a forced calculation over imbalanced totals
and is reported back in SettlementPlan.unresolved.
"""

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field


@dataclass
class Transfer:
    payer_id: Hashable
    payee_id: Hashable
    amount: int  # cents


@dataclass
class SettlementPlan:
    transfers: list[Transfer] = field(default_factory=list)
    # user_id -> cents still owed (negative) or owed to them (positive)
    unresolved: dict = field(default_factory=dict)

    @property
    def unresolved_total(self) -> int:
        return sum(abs(v) for v in self.unresolved.values())


def _largest(balances: dict) -> Hashable:
    """Key with the largest balance; ties go to the smallest user id."""
    return min(balances, key=lambda user_id: (-balances[user_id], user_id))


def solve_settlements(
    nets: Mapping[Hashable, int],
    tolerance_cents: int = 1,
) -> SettlementPlan:
    """
    Compute the transfers that bring every net result to zero.

    nets maps user id -> net result in cents (cash-out minus
    buy-in). Values must be ints; anything else is a caller bug.
    """
    for user_id, net in nets.items():
        if isinstance(net, bool) or not isinstance(net, int):
            raise TypeError(
                f"Net result for {user_id} must be integer cents, got {net!r}"
            )

    debts = {u: -n for u, n in nets.items() if n < 0}
    credits = {u: n for u, n in nets.items() if n > 0}

    plan = SettlementPlan()
    last_transfer: dict = {}

    while debts and credits:
        debtor = _largest(debts)
        creditor = _largest(credits)
        amount = min(debts[debtor], credits[creditor])

        transfer = Transfer(payer_id=debtor, payee_id=creditor, amount=amount)
        plan.transfers.append(transfer)
        last_transfer[debtor] = transfer
        last_transfer[creditor] = transfer

        debts[debtor] -= amount
        credits[creditor] -= amount
        if debts[debtor] == 0:
            del debts[debtor]
        if credits[creditor] == 0:
            del credits[creditor]

    leftover = {u: -d for u, d in debts.items()}
    leftover.update(credits)
    if not leftover:
        return plan

    if sum(abs(v) for v in leftover.values()) <= tolerance_cents:
        for user_id in sorted(leftover):
            transfer = last_transfer.get(user_id)
            if transfer is None:
                plan.unresolved[user_id] = leftover[user_id]
                continue
            # A remaining debt means the payer pays a little more;
            # a remaining credit means the payee receives a little more.
            transfer.amount += abs(leftover[user_id])
    else:
        plan.unresolved = leftover

    return plan
