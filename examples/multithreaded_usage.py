"""examples/multithreaded_usage.py - Several threads logging through one logger.

Every worker logs through the same process-wide logger. A client tracing at
INFO receives each record as one whole line, and each worker's records in the
order that worker produced them.

Run, then trace from another terminal:
    python examples/multithreaded_usage.py
    livelog --packageName ORDERS --keepAlive trace INFO
"""

import random
import threading
import time

from livelog import log

logger = log("orders")


def worker(name: str, orders: int) -> None:
    """Pretend to process ``orders`` orders, logging each step."""
    for order_id in range(orders):
        logger.debugf("%s picked order %d", name, order_id)
        time.sleep(random.uniform(0.05, 0.3))
        if random.random() < 0.1:
            logger.errorf("%s failed order %d", name, order_id)
        else:
            logger.infof("%s shipped order %d", name, order_id)


if __name__ == "__main__":
    threads = [
        threading.Thread(target=worker, args=(f"worker-{i}", 50), name=f"worker-{i}")
        for i in range(4)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    logger.info("all workers done")
    logger.shutdown()
