# cansock

cansock is a Python library for the CAN bus over Linux SocketCAN. It has no third-party dependencies.

The real SocketCAN and broadcast manager sockets need `AF_CAN` support, so they work only on Linux. Everything else works on any platform, including the dummy driver.

## What it contains

- **`cansock.interface`**
  - `Header` and `Frame` carry validity checks: `is_valid`, `fullid` and `key`.
  - `msg_header`, `extended_header` and `error_header` build headers.
  - `State` and `DriverState` describe the driver state.
  - `Listener` is the handle a listener registration returns.
  - `DriverInterface` is the abstract base class that every driver implements.
- **`cansock.dispatcher`**
  - `SimpleDispatcher` and `FilteredDispatcher` call the registered listeners in the order they were registered.
  - A listener stays registered for as long as you keep a reference to the handle it returned.
- **`cansock.strings`**
  - Handles the text form `ID#DATA`, for example `123#1234` or `00001337#deadbeef`.
  - `toframe` and `frame_to_string` convert frames.
  - `toheader` and `header_to_string` convert headers.
  - Also provides the hex helpers, plus `tofilter` and `tofilters`.
- **`cansock.filter`**
  - `FrameMaskFilter` and `FrameRangeFilter` are the filter types.
  - `FilteredFrameListener` forwards only the frames that pass at least one of its filters.
  - Filter strings:
    - `"123"` or `"123:ffe"` is a mask filter.
    - `"123~ffe"` is an inverted mask filter.
    - `"120-125"` is a range filter.
    - `"120_125"` is an inverted range filter.
- **`cansock.dummy`**
  - `DummyInterface` is an in-memory driver.
  - It can loop sent frames back.
  - It can answer sent frames with responses you register using `add`.
- **`cansock.reader`**
  - `BufferedReader` queues received frames; `max_len` sets an optional length limit.
  - `read(timeout)` and `read_until(deadline)` return the oldest frame, or `None` on timeout.
  - `enabled_scope()` is a context manager that enables the reader temporarily.
- **`cansock.socketcan`**
  - `SocketCANInterface` is a raw SocketCAN driver.
  - `pack_frame` and `unpack_frame` convert to and from the kernel `can_frame` layout.
- **`cansock.threaded`**
  - `ThreadedSocketCANInterface` runs the driver loop on a background thread after `init`.
  - `StateWaiter` waits for a given driver state.
- **`cansock.bcm`**
  - `BCMSocket` provides cyclic transmission through the kernel broadcast manager, with `start_tx` and `stop_tx`.
  - `build_message` encodes the request.
- **`cansock.conversion`**
  - `CanMessage` is a plain message record.
  - `socketcan_to_message` and `message_to_socketcan` convert between messages and frames.
- **`cansock.bridge`**
  - `SocketCANToTopic` turns each valid received frame into a `CanMessage` and hands it to a publish callable you supply. Filters are optional.
  - `TopicToSocketCAN.msg_callback` sends a `CanMessage` through a driver. It returns `False` if the frame is invalid or the driver refuses it.

## Installation

```
pip install .
```

## Parsing and formatting frames

```python
from cansock.strings import toframe, frame_to_string, tofilter

frame = toframe("123#1234567812345678")
assert frame.is_valid()
assert frame_to_string(frame, True) == "123#1234567812345678"

mask = tofilter("123:ffe")
assert mask.passes(toframe("122#"))
assert not mask.passes(toframe("124#"))
```

`toframe` does not raise on malformed text. It returns a frame for which `is_valid()` is false.

## Using the dummy driver

```python
from cansock.dummy import DummyInterface
from cansock.strings import toframe, frame_to_string

seen = []
dummy = DummyInterface(True)  # loop sent frames back
listener = dummy.create_msg_listener(lambda f: seen.append(frame_to_string(f, True)))

dummy.add("0#8200", "701#00", False)
dummy.send(toframe("0#8200"))
assert seen == ["0#8200", "701#00"]
```

## Reading with a timeout

```python
from cansock.dummy import DummyInterface
from cansock.reader import BufferedReader
from cansock.strings import toframe

dummy = DummyInterface(True)
reader = BufferedReader()
reader.listen(dummy)
dummy.send(toframe("123#aa"))
frame = reader.read(0.5)   # None if nothing arrives in time
```

## Bridging messages and a driver

```python
from cansock.bridge import SocketCANToTopic, TopicToSocketCAN
from cansock.conversion import CanMessage
from cansock.dummy import DummyInterface

driver = DummyInterface(True)
received = []
to_topic = SocketCANToTopic(driver, received.append)
to_topic.setup(["300:ffe"])          # publish only ids 0x300 and 0x301

to_driver = TopicToSocketCAN(driver)
to_driver.setup()
to_driver.msg_callback(CanMessage(id=0x300, dlc=2, data=b"\x12\x34"))
assert received[0].id == 0x300
```

## Command-line tools

To print every frame received on a device:

```
cansock-candump can0
```

To send frames cyclically through the broadcast manager, give these arguments in order:

1. The device.
2. The period in seconds.
3. The first frame.
4. The data for any further frames. Those frames reuse the first frame's header.

```
cansock-canbcm can0 0.1 123#11 22 33
```

## What it does not do

- The bridge classes do not connect to any message bus or middleware. `SocketCANToTopic` calls the publish function you pass in, and you call `TopicToSocketCAN.msg_callback` yourself. No command runs a bridge.
- `cansock-candump` works only with the built-in SocketCAN driver. It does not load other drivers from plugins.