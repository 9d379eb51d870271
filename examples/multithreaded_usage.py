"""examples/multithreaded_usage.py - One Logger per thread.

A Logger's pending buffer is not locked, so threads must not share a buffered
instance. This demo gives each worker thread its own buffered Logger over a
shared (lock-protected) MemoryLogStore. Each thread's entries reach the store
as one batch when that thread flushes, and never interleave inside a batch.

Run:
    python examples/multithreaded_usage.py
"""

import threading
import time

from storelog import Logger
from storelog.store import MemoryLogStore

store = MemoryLogStore()


class OrderWorker:
    STOCK = {1: 10, 2: 0, 3: 5}

    def __init__(self, log: Logger) -> None:
        self.log = log

    def place_order(self, order_id: int, product_id: int, qty: int) -> None:
        self.log.info("order received: order_id=%d, product_id=%d", order_id, product_id)
        time.sleep(0.01)  # simulate DB latency
        stock = self.STOCK.get(product_id, 0)
        if stock < qty:
            self.log.error("insufficient stock: requested=%d, available=%d", qty, stock)
            return
        self.log.info("order placed: order_id=%d", order_id)


def worker(order_id: int, product_id: int, qty: int) -> None:
    log = Logger(store, buffered=True)
    OrderWorker(log).place_order(order_id, product_id, qty)
    written = log.flush()
    print(f"[{threading.current_thread().name}] flushed {written} entries")


if __name__ == "__main__":
    threads = [
        threading.Thread(target=worker, args=(1001, 1, 3), name="Thread-A"),
        threading.Thread(target=worker, args=(1002, 2, 1), name="Thread-B"),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for entry in store.fetch_all():
        print(f"[{entry.severity.name:5}] {entry.method_name}: {entry.message}")
