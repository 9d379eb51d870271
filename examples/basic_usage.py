"""examples/basic_usage.py - storelog integration demo.

Demonstrates three usage levels:
    Scenario A — immediate mode: each call is written as it happens
    Scenario B — buffered mode: a request's entries are written with one flush
    Scenario C — stdlib bridge: existing ``logging`` calls persisted as well

Run:
    python examples/basic_usage.py
"""

import logging

from storelog import Logger, StoreLogHandler
from storelog.store import MemoryLogStore

store = MemoryLogStore()


class PaymentService:
    """Simulated payment flow that logs through storelog."""

    def __init__(self, log: Logger) -> None:
        self.log = log

    def get_balance(self, user_id: int) -> int:
        self.log.debug("querying balance: user_id=%d", user_id)
        return 3_000

    def pay(self, user_id: int, amount: int) -> None:
        self.log.info("payment attempt: user_id=%d, amount=%d", user_id, amount)
        balance = self.get_balance(user_id)
        if balance < amount:
            try:
                raise ValueError(f"InsufficientFunds: balance={balance}, amount={amount}")
            except ValueError as exc:
                self.log.error(exception=exc)
            return
        self.log.info("payment successful")


def show(title: str) -> None:
    print(f"\n=== {title} ===")
    for entry in store.fetch_all():
        print(
            f"{entry.created_at_text} [{entry.severity.name:5}] "
            f"{entry.class_name}.{entry.method_name}: {entry.message}"
        )


if __name__ == "__main__":
    # Scenario A: immediate mode
    PaymentService(Logger(store)).pay(user_id=1, amount=5_000)
    show("Scenario A: immediate")

    # Scenario B: buffered mode, flushed once at the end of the "request"
    buffered = Logger(store, buffered=True)
    PaymentService(buffered).pay(user_id=2, amount=100)
    print(f"\nqueued before flush: {len(buffered.pending)}")
    buffered.flush()
    show("Scenario B: buffered, after flush")

    # Scenario C: standard logging records go to the same store
    app = logging.getLogger("legacy.billing")
    app.setLevel(logging.INFO)
    app.addHandler(StoreLogHandler(Logger(store)))
    app.warning("invoice %s overdue", "INV-42")
    show("Scenario C: stdlib bridge")
