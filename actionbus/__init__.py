"""
actionbus - in-process named-event dispatcher

```python
from actionbus import Arguments, EventBus, HandlerOwner, action_handler

class Audit(HandlerOwner):
    @action_handler("user.login", args={"username": str})
    def on_login(self, args: Arguments) -> None:
        print(args.get("username", str))

bus = EventBus()
audit = Audit()
bus.register(audit)
bus.execute("user.login", Arguments.create(session).register_value("username", "alice"))
```

Owners are held weakly: keep a reference to a registered owner for as long as
its handlers should run, and ``unregister`` it before dropping it.
"""

from .arguments import Arguments
from .bus import ErrorObserver, EventBus
from .config import BusConfig
from .descriptors import ArgumentKey, EventDescriptor, describe, event_constants
from .errors import (
    ActionBusError,
    ArgumentError,
    InvocationError,
    MissingKeyError,
    NotASequenceError,
    RegistrationError,
    TypeMismatchError,
)
from .handlers import (
    BindingToken,
    HandlerBinding,
    HandlerOwner,
    HandlerSpec,
    Subscription,
    action_handler,
    handler_owner,
)

__all__ = [
    # Bus
    "EventBus",
    "BusConfig",
    "ErrorObserver",
    # Arguments
    "Arguments",
    "ArgumentKey",
    "EventDescriptor",
    "describe",
    "event_constants",
    # Handlers
    "action_handler",
    "handler_owner",
    "HandlerOwner",
    "HandlerSpec",
    "HandlerBinding",
    "BindingToken",
    "Subscription",
    # Errors
    "ActionBusError",
    "RegistrationError",
    "InvocationError",
    "ArgumentError",
    "MissingKeyError",
    "TypeMismatchError",
    "NotASequenceError",
]
