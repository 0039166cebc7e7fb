import logging

import pytest

from cansock.bridge import SocketCANToTopic, TopicToSocketCAN
from cansock.conversion import CanMessage, message_to_socketcan, socketcan_to_message
from cansock.dummy import DummyInterface
from cansock.interface import Frame, State
from cansock.socketcan import SocketCANInterface
from cansock.strings import frame_to_string, tofilter, tofilters, toframe


def _sample_frame():
    return Frame(id=0x1337, is_extended=True, dlc=8, data=bytes(range(8)))


def _message_to_string(msg, lc=True):
    return frame_to_string(message_to_socketcan(msg), lc)


# --- socketcan to topic ---------------------------------------------------


def test_to_topic_correct_data():
    driver = DummyInterface(True)
    messages = []
    bridge = SocketCANToTopic(driver, messages.append)
    bridge.setup()
    driver.init("string_not_used", True)

    f = _sample_frame()
    driver.send(f)

    assert len(messages) == 1
    received = message_to_socketcan(messages[-1])
    assert received.id == f.id
    assert received.dlc == f.dlc
    assert received.is_extended == f.is_extended
    assert received.is_rtr == f.is_rtr
    assert received.is_error == f.is_error
    assert received.data == f.data


def test_to_topic_header_fields():
    driver = DummyInterface(True)
    messages = []
    bridge = SocketCANToTopic(driver, messages.append)
    bridge.setup()
    driver.send(_sample_frame())
    assert messages[0].frame_id == ""
    assert messages[0].stamp > 0


def test_to_topic_invalid_frame_handling():
    driver = DummyInterface(True)
    messages = []
    bridge = SocketCANToTopic(driver, messages.append)
    bridge.setup()

    f = Frame(id=(1 << 11) + 1, is_extended=False)
    driver.send(f)
    assert len(messages) == 0

    f.is_extended = True
    driver.send(f)
    assert len(messages) == 1


def test_to_topic_correct_can_id_filter():
    driver = DummyInterface(True)
    messages = []
    bridge = SocketCANToTopic(driver, messages.append)
    bridge.setup(tofilters([0x1337]))
    driver.init("string_not_used", True)

    f = _sample_frame()
    driver.send(f)

    assert len(messages) == 1
    received = message_to_socketcan(messages[-1])
    assert received.id == f.id
    assert received.dlc == f.dlc
    assert received.is_extended == f.is_extended
    assert received.is_rtr == f.is_rtr
    assert received.is_error == f.is_error
    assert received.data == f.data


def test_to_topic_invalid_can_id_filter():
    driver = DummyInterface(True)
    messages = []
    bridge = SocketCANToTopic(driver, messages.append)
    bridge.setup(tofilters([0x300]))
    driver.init("string_not_used", True)

    driver.send(_sample_frame())
    assert len(messages) == 0


@pytest.mark.parametrize("filters", [[tofilter("300:ffe")], ["300:ffe"]])
def test_to_topic_mask_filter(filters):
    driver = DummyInterface(True)
    messages = []
    bridge = SocketCANToTopic(driver, messages.append)
    bridge.setup(filters)
    driver.init("string_not_used", True)

    pass1, nopass1, pass2 = "300#1234", "302#9999", "301#5678"
    driver.send(toframe(pass1))
    driver.send(toframe(nopass1))
    driver.send(toframe(pass2))

    assert len(messages) == 2
    assert _message_to_string(messages[0]) == pass1
    assert _message_to_string(messages[-1]) == pass2


def test_to_topic_error_frame_published_with_warning(caplog):
    driver = DummyInterface(True)
    messages = []
    bridge = SocketCANToTopic(driver, messages.append)
    bridge.setup()
    with caplog.at_level(logging.WARNING, logger="cansock"):
        driver.send(Frame(id=4, is_error=True))
    assert len(messages) == 1
    assert messages[0].is_error is True
    assert "Received frame is error" in caplog.text


def test_to_topic_state_callback_logs_ok(caplog):
    driver = DummyInterface(True)
    bridge = SocketCANToTopic(driver, lambda msg: None)
    bridge.setup()
    with caplog.at_level(logging.INFO, logger="cansock"):
        driver.init("string_not_used", True)
    assert "State: OK" in caplog.text


def test_state_callback_logs_error(caplog):
    driver = DummyInterface(True)
    bridge = SocketCANToTopic(driver, lambda msg: None)
    with caplog.at_level(logging.INFO, logger="cansock"):
        bridge.state_callback(State(internal_error=5))
    assert [r.levelname for r in caplog.records] == ["ERROR"]
    assert caplog.records[0].getMessage().startswith("Error:")


# --- topic to socketcan ---------------------------------------------------


def test_to_socketcan_correct_data():
    driver = DummyInterface(True)
    bridge = TopicToSocketCAN(driver)
    bridge.setup()
    driver.init("string_not_used", True)

    frames = []
    listener = driver.create_msg_listener(frames.append)

    msg = CanMessage(id=0x1337, dlc=8, is_extended=True, data=bytes(range(8)), frame_id="0")
    assert bridge.msg_callback(msg) is True

    received = socketcan_to_message(frames[-1])
    assert received.id == msg.id
    assert received.dlc == msg.dlc
    assert received.is_extended == msg.is_extended
    assert received.is_rtr == msg.is_rtr
    assert received.is_error == msg.is_error
    assert received.data == msg.data
    assert listener is not None


def test_to_socketcan_invalid_frame_handling(caplog):
    driver = DummyInterface(True)
    bridge = TopicToSocketCAN(driver)
    bridge.setup()

    frames = []
    listener = driver.create_msg_listener(frames.append)

    msg = CanMessage(id=(1 << 11) + 1, is_extended=False, frame_id="0")
    with caplog.at_level(logging.ERROR, logger="cansock"):
        assert bridge.msg_callback(msg) is False
    assert len(frames) == 0
    assert "Invalid frame from topic" in caplog.text

    msg.is_extended = True
    assert bridge.msg_callback(msg) is True
    assert len(frames) == 1

    frames.clear()
    msg.dlc = 10
    assert bridge.msg_callback(msg) is False
    assert len(frames) == 0
    assert listener is not None


def test_to_socketcan_send_failure_logged(caplog):
    driver = SocketCANInterface()
    bridge = TopicToSocketCAN(driver)
    with caplog.at_level(logging.ERROR, logger="cansock"):
        assert bridge.msg_callback(CanMessage(id=0x123, dlc=1)) is False
    assert "Failed to send message: 123#00." in caplog.text


def test_to_socketcan_state_callback_logs_ok(caplog):
    driver = DummyInterface(True)
    bridge = TopicToSocketCAN(driver)
    bridge.setup()
    with caplog.at_level(logging.INFO, logger="cansock"):
        driver.init("string_not_used", True)
    assert "State: OK" in caplog.text