import gc

from cansock.dispatcher import FilteredDispatcher, SimpleDispatcher
from cansock.interface import Frame, msg_header


class Counter:
    def __init__(self):
        self.counter = 0

    def count(self, msg):
        self.counter += 1


MAX_ID = 1 << 11


def test_filtered_dispatcher():
    dispatcher = FilteredDispatcher()
    counter1 = Counter()
    counter2 = Counter()
    listeners = []
    for i in range(0, MAX_ID, 2):
        listeners.append(dispatcher.create_listener(counter1.count, i))
        listeners.append(dispatcher.create_listener(counter2.count, i + 1))

    num = 10 * MAX_ID
    for i in range(num):
        dispatcher.dispatch(i % MAX_ID, Frame.from_header(msg_header(i % MAX_ID)))

    assert counter1.counter + counter2.counter == num
    assert counter1.counter == counter2.counter


def test_simple_dispatcher():
    dispatcher = SimpleDispatcher()
    counter = Counter()
    listener = dispatcher.create_listener(counter.count)

    num = 10 * MAX_ID
    for i in range(num):
        dispatcher.dispatch(Frame.from_header(msg_header(i % MAX_ID)))

    assert counter.counter == num
    assert dispatcher.num_listeners() == 1
    del listener


def test_listeners_called_in_order():
    dispatcher = SimpleDispatcher()
    calls = []
    first = dispatcher.create_listener(lambda o: calls.append(("a", o)))
    second = dispatcher.create_listener(lambda o: calls.append(("b", o)))
    dispatcher.dispatch(1)
    assert calls == [("a", 1), ("b", 1)]
    del first, second


def test_dropped_listener_is_removed():
    dispatcher = SimpleDispatcher()
    seen = []
    listener = dispatcher.create_listener(seen.append)
    assert dispatcher.num_listeners() == 1
    del listener
    gc.collect()
    assert dispatcher.num_listeners() == 0
    dispatcher.dispatch(5)
    assert seen == []


def test_unkeyed_listener_sees_all_keys():
    dispatcher = FilteredDispatcher()
    everything = []
    keyed = []
    l1 = dispatcher.create_listener(everything.append)
    l2 = dispatcher.create_listener(keyed.append, 7)
    dispatcher.dispatch(7, "x")
    dispatcher.dispatch(8, "y")
    assert everything == ["x", "y"]
    assert keyed == ["x"]
    del l1, l2


def test_keyed_listener_runs_before_unkeyed():
    dispatcher = FilteredDispatcher()
    order = []
    l1 = dispatcher.create_listener(lambda o: order.append("all"))
    l2 = dispatcher.create_listener(lambda o: order.append("key"), 1)
    dispatcher.dispatch(1, None)
    assert order == ["key", "all"]
    del l1, l2


def test_dispatcher_is_callable():
    simple = SimpleDispatcher()
    filtered = FilteredDispatcher()
    seen = []
    l1 = simple.create_listener(seen.append)
    l2 = filtered.create_listener(seen.append, 3)
    simple(1)
    filtered(3, 2)
    filtered(4, 9)
    assert seen == [1, 2]
    del l1, l2


def test_listener_dropped_during_dispatch():
    dispatcher = SimpleDispatcher()
    seen = []
    holder = {}

    def drop(obj):
        seen.append(("drop", obj))
        holder.pop("other", None)

    holder["self"] = dispatcher.create_listener(drop)
    holder["other"] = dispatcher.create_listener(lambda o: seen.append(("other", o)))
    dispatcher.dispatch(1)
    dispatcher.dispatch(2)
    assert ("drop", 2) in seen
    assert ("other", 2) not in seen
    assert dispatcher.num_listeners() == 1