"""
Concurrent registration while another thread dispatches.
"""

import threading

from actionbus import Arguments, EventBus, HandlerOwner, action_handler

OWNER_COUNT = 64
THREAD_COUNT = 8


class Counter(HandlerOwner):
    def __init__(self):
        self.hits = 0

    @action_handler("tick")
    def on_tick(self, args: Arguments) -> None:
        self.hits += 1


class TestConcurrentRegistration:
    def test_no_lost_registrations_under_dispatch(self):
        bus_errors = []
        bus = EventBus(on_error=bus_errors.append)
        owners = [Counter() for _ in range(OWNER_COUNT)]
        barrier = threading.Barrier(THREAD_COUNT + 1)
        done = threading.Event()
        observed_lengths = []
        errors = []

        def register_slice(slice_owners):
            barrier.wait()
            for owner in slice_owners:
                bus.register(owner)

        def dispatch():
            barrier.wait()
            args = Arguments.create(None)
            while not done.is_set():
                try:
                    bucket = bus.bindings("tick")
                    observed_lengths.append(len(bucket))
                    bus.execute("tick", args)
                except Exception as exc:
                    errors.append(exc)

        workers = [
            threading.Thread(target=register_slice, args=(owners[i::THREAD_COUNT],))
            for i in range(THREAD_COUNT)
        ]
        dispatcher = threading.Thread(target=dispatch)
        dispatcher.start()
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()
        done.set()
        dispatcher.join()

        assert errors == []
        assert bus_errors == []
        assert bus.handler_count("tick") == OWNER_COUNT
        assert bus.event_count() == 1
        assert observed_lengths == sorted(observed_lengths)
        assert all(0 <= length <= OWNER_COUNT for length in observed_lengths)

        bus.execute("tick", Arguments.create(None))
        assert all(owner.hits >= 1 for owner in owners)

    def test_concurrent_unregister_leaves_others(self):
        bus = EventBus()
        keep = [Counter() for _ in range(OWNER_COUNT)]
        drop = [Counter() for _ in range(OWNER_COUNT)]
        for keeper, dropper in zip(keep, drop):
            bus.register(keeper)
            bus.register(dropper)

        threads = [
            threading.Thread(target=lambda part=drop[i::THREAD_COUNT]: [bus.unregister(o) for o in part])
            for i in range(THREAD_COUNT)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        bus.execute("tick", Arguments.create(None))

        assert bus.handler_count("tick") == OWNER_COUNT
        assert all(owner.hits == 1 for owner in keep)
        assert all(owner.hits == 0 for owner in drop)
