#!/usr/bin/env python3
"""
Example usage of graphite_pusher.
Pushes a few samples to a carbon pickle receiver on localhost:2004.
"""

import time

from graphite_pusher import Pusher


def main():
    pusher = Pusher("localhost", 2004)
    pusher.start()

    # timestamp == now
    pusher.submit("graphite_pusher.example_1", 12.345)

    for i in range(100):
        pusher.submit("graphite_pusher.example_2", i / 10)

    # explicit timestamp
    pusher.submit("graphite_pusher.example_3", int(time.time()), 100)

    # optional: block until the queue is flushed
    if not pusher.flush_and_stop(timeout=30):
        print("collector unreachable, samples not delivered")
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
