"""examples/basic_usage.py - livelog integration demo.

Starts a logger for package ``shop``, then logs a few records every second
until interrupted. While it runs, drive it from another terminal:

    $ livelog status
    $ livelog debug on
    $ livelog debug regex '^cart'
    $ livelog --keepAlive trace INFO      # Ctrl-D to stop streaming
    $ nc -U /tmp/gocore/SHOP.sock         # the raw protocol works too

Run:
    python examples/basic_usage.py
"""

import itertools
import time

from livelog import log

logger = log("shop")


def handle_request(n: int) -> None:
    logger.debugf("cart lookup for request %d", n)
    logger.debugf("pricing request %d", n)
    logger.infof("served request %d", n)
    if n % 5 == 0:
        logger.warnf("request %d was slow", n)


if __name__ == "__main__":
    try:
        for n in itertools.count(1):
            handle_request(n)
            time.sleep(1)
    except KeyboardInterrupt:
        # The SIGINT handler has already removed the socket file.
        print("\nstopped")
