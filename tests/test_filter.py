from cansock.dummy import DummyInterface
from cansock.filter import FilteredFrameListener, FrameMaskFilter, FrameRangeFilter
from cansock.strings import tofilter, toframe


def test_simple_mask():
    f1 = tofilter("123")
    assert f1.passes(toframe("123#"))
    assert not f1.passes(toframe("124#"))


def test_mask_tests():
    msg1, msg2, msg3 = toframe("123#"), toframe("124#"), toframe("122#")
    f1 = tofilter("123:123")
    f2 = tofilter("123:ffe")
    f3 = tofilter("123~123")

    assert f1.passes(msg1)
    assert not f1.passes(msg2)
    assert not f1.passes(msg3)

    assert f2.passes(msg1)
    assert not f2.passes(msg2)
    assert f2.passes(msg3)

    assert not f3.passes(msg1)
    assert f3.passes(msg2)
    assert f3.passes(msg3)


def test_range_test():
    msg1, msg2, msg3 = toframe("120#"), toframe("125#"), toframe("130#")
    f1 = tofilter("120-120")
    f2 = tofilter("120_120")
    f3 = tofilter("120-125")

    assert f1.passes(msg1)
    assert not f1.passes(msg2)
    assert not f1.passes(msg3)

    assert not f2.passes(msg1)
    assert f2.passes(msg2)
    assert f2.passes(msg3)

    assert f3.passes(msg1)
    assert f3.passes(msg2)
    assert not f3.passes(msg3)


def test_mask_filter_direct_construction():
    f = FrameMaskFilter(0x123)
    assert f.passes(toframe("123#"))
    assert not f.passes(toframe("124#"))
    inverted = FrameMaskFilter(0x123, FrameMaskFilter.MASK_ALL, True)
    assert not inverted.passes(toframe("123#"))
    assert inverted.passes(toframe("124#"))


def test_range_filter_direct_construction():
    f = FrameRangeFilter(0x120, 0x125)
    assert f.passes(toframe("120#"))
    assert f.passes(toframe("125#"))
    assert not f.passes(toframe("126#"))


def test_listener_test():
    counter = []
    dummy = DummyInterface(True)
    filters = [tofilter("123:FFE")]
    listener = FilteredFrameListener(dummy, counter.append, filters)

    dummy.send(toframe("123#"))
    assert len(counter) == 1
    dummy.send(toframe("124#"))
    assert len(counter) == 1
    dummy.send(toframe("122#"))
    assert len(counter) == 2
    assert listener.filters == tuple(filters)


def test_listener_passes_when_any_filter_matches():
    received = []
    dummy = DummyInterface(True)
    listener = FilteredFrameListener(dummy, received.append, [tofilter("100"), tofilter("200")])
    dummy.send(toframe("200#01"))
    dummy.send(toframe("300#01"))
    assert received == [toframe("200#01")]
    assert listener.filters


def test_dropped_listener_stops_receiving():
    received = []
    dummy = DummyInterface(True)
    listener = FilteredFrameListener(dummy, received.append, [tofilter("123")])
    dummy.send(toframe("123#"))
    del listener
    dummy.send(toframe("123#"))
    assert len(received) == 1