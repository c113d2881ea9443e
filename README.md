# raven

A small runtime for building vehicle control software out of cooperating
tasks. Each task owns a thread and a bounded inbound message queue. Broadcast
facts travel over an event bus. Shared state lives in thread-safe containers.
A TCP gateway turns framed network packets into task messages.

The package has no dependencies outside the standard library.

## Install

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## Building blocks

- `raven.task`
  - `TaskMessage(kind, id, data=None, payload_size=None)` is a directed message.
  - `TaskConfig(name, stack_size, priority, queue_length)` holds the settings of a task.
  - `BaseTask` is the worker base class. Subclass it, implement
    `handle_message(msg)`, then call `start()`.
  - `post_message(msg, timeout=None)` enqueues a copy of the message. It returns
    `False` if the queue stays full past the timeout, and raises `RuntimeError`
    if the task has not been started.
  - Put periodic work in `on_tick()` and enable it with
    `set_tick_interval(seconds)`. An interval of 0 disables ticking.
  - `pending()` reports the queue depth. `stop()` ends the thread and drops
    any queued messages.
  - A task can also be used as a context manager.
- `raven.event_bus`
  - `EventBus` has `post(base, event_id, data=None)`,
    `subscribe(base, event_id, handler, ctx=None)` and
    `unsubscribe(base, event_id, handler)`.
  - Handlers are called as `handler(ctx, base, event_id, data)` in the posting
    thread.
  - `ANY_BASE` and `ANY_ID` act as wildcards when subscribing.
  - `default_bus()` returns a process-wide bus.
  - `NAVIGATION_EVENTS` and `NavigationEventId.MOVE_FORWARD_DONE` name the
    navigation completion event.
- `raven.navigation_state`
  - `NavigationState` holds the position `x`, `y` and `z`.
  - It also holds a `JoystickData` snapshot. Read and write the snapshot as a
    whole with `get_joystick()` and `set_joystick(x, y, timestamp_ms)`.
- `raven.system_monitor`
  - `SystemMonitorTask(MonitorConfig(...))` logs one report every `period`
    seconds.
  - Each report includes the waiting count of every queue added with
    `watch_queue(name, queue)`.
  - The report includes heap figures only while `tracemalloc` is tracing.
  - `report()` produces one report on demand and returns its lines.
- `raven.links`
  - `Link` and `Server` are the abstract interfaces.
  - `TcpClientLink(host, port)` is an outgoing IPv4 connection.
  - `TcpSessionLink` wraps an accepted socket.
  - `TcpServer(port)` listens on all interfaces. Its `accept_connection()`
    waits briefly and returns a `TcpSessionLink` or `None`.
- `raven.decoders`
  - `NetworkHeader` is the 6-byte wire header, with `pack()` and `unpack()`.
  - `FixedSizeDecoder(kind, expected_size)` and
    `VariableSizeDecoder(kind, min_size, max_size)` return a `DecodedMessage`.
    They raise `DecodeError` when the payload size does not fit.
  - `DecoderRegistry` maps message ids to decoders. Registering an id twice
    raises `ValueError`.
- `raven.messages`
  - `NetMsg`, `MsgKind`, `NavMsg` and `NAV_KIND` are the message ids and kinds.
  - `JoystickPayload`, `StartManualPayload` and `HaltManualPayload` are the
    wire structs, with `pack()` and `unpack()`.
- `raven.services`
  - `NavigationService(state, bus=None)` handles a `MOVE_FORWARD` message: it
    advances `state.x` by one, then posts `MOVE_FORWARD_DONE`.
  - `PilotInputService(state)` stores each `JOYSTICK_INPUT` payload in the
    navigation state.
- `raven.activities`
  - `NavigationActivity(nav_service, nav_state, bus=None)` is an
    Idle / Working / Manual state machine, exposed as `state`, an
    `ActivityState` value.
  - A move-forward request is delegated to the navigation service. The
    activity returns to Idle when the completion event arrives.
  - In Manual mode the activity polls the joystick snapshot every 0.1 s and
    keeps the last one in `last_joystick`.
- `raven.gateway`
  - `NetworkGateway(server, GatewayConfig(...))` accepts connections from a
    server.
  - It validates each packet with the decoder registered for its id and posts
    it to the task routed for that id. Register these with `register_decoder`
    and `register_route`.
  - Unknown ids, payloads that fail to decode and unrouted messages are
    dropped. An oversized or truncated packet closes the link.
  - `serve_link(link)` processes a single link and returns the number of
    messages delivered.
- `raven.bootstrap`
  - `configure_navigation_gateway(gateway, pilot_service, nav_service, nav_activity)`
    registers the decoders and routes for the navigation and pilot example.

## Wire format

Each packet is a little-endian header followed by `payload_size` payload bytes.
The header is a 16-bit message id, then a 32-bit payload size.

The payloads in the navigation example are:

- The joystick payload: two little-endian float32 values (`x`, `y`), then a
  uint32 timestamp in milliseconds.
- The start-manual and halt-manual payloads: a single uint32 timestamp.

## Example

```python
from raven.activities import NavigationActivity
from raven.bootstrap import configure_navigation_gateway
from raven.event_bus import default_bus
from raven.gateway import GatewayConfig, NetworkGateway
from raven.links import TcpServer
from raven.navigation_state import NavigationState
from raven.services import NavigationService, PilotInputService

state = NavigationState()
bus = default_bus()
nav_service = NavigationService(state, bus)
pilot_service = PilotInputService(state)
nav_activity = NavigationActivity(nav_service, state, bus)

gateway = NetworkGateway(TcpServer(8080), GatewayConfig())
configure_navigation_gateway(gateway, pilot_service, nav_service, nav_activity)

for task in (nav_service, pilot_service, nav_activity):
    task.start()
gateway.start()
```

## What it does not do

- There is no command-line program. The runtime is assembled and started from
  your own code, as in the example above.
- `NavigationService` does not drive hardware. A forward move only increments
  the stored position.
- LLM response packets are decoded by `configure_navigation_gateway`, but no
  route is registered for them, so the gateway drops them.