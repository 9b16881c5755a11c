import threading
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Protocol, TypeVar

from .depositor import Depositor
from .errors import AlreadySubscribedError

T = TypeVar("T")
T_contra = TypeVar("T_contra", contravariant=True)


class OpState(Enum):
    CREATED = "created"  # Constructed, nobody subscribed yet
    ATTACHED = "attached"  # Subscriber holds a subscription, no work done
    RUNNING = "running"  # Demand received, wrapped call in progress
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


_LIVE_STATES = (OpState.ATTACHED, OpState.RUNNING)


class Subscription(Protocol):
    """Handle given to a subscriber for signalling demand or cancellation."""

    def request(self, n: int) -> None:
        """Signal demand. The first request with n >= 1 runs the operation."""
        ...

    def cancel(self) -> None:
        """Stop the operation or, if it is already running, its notifications."""
        ...


class Subscriber(Protocol[T_contra]):
    """Consumer of an AsyncOp."""

    def on_subscribe(self, subscription: Subscription) -> None: ...
    def on_next(self, item: T_contra) -> None: ...
    def on_error(self, error: BaseException) -> None: ...
    def on_complete(self) -> None: ...


class Emitter(Generic[T]):
    """Passed to an AsyncOp source so it can push items to the subscriber."""

    def __init__(self, subscription: "_OpSubscription[T]") -> None:
        self._subscription = subscription

    @property
    def cancelled(self) -> bool:
        return self._subscription.state is OpState.CANCELLED

    def emit(self, item: T) -> bool:
        """Deliver one item. Returns False if the subscriber has cancelled."""
        return self._subscription._next(item)


Source = Callable[[Emitter[T]], None]


class _OpSubscription(Subscription, Generic[T]):
    def __init__(self, source: Source[T], subscriber: Subscriber[T]) -> None:
        self._source = source
        self._subscriber = subscriber
        self._lock = threading.Lock()
        self._state = OpState.ATTACHED

    @property
    def state(self) -> OpState:
        with self._lock:
            return self._state

    def request(self, n: int) -> None:
        with self._lock:
            if self._state is not OpState.ATTACHED:
                return
            invalid = n < 1
            self._state = OpState.FAILED if invalid else OpState.RUNNING

        if invalid:
            self._subscriber.on_error(
                ValueError(f"request(n) requires n >= 1, got {n}")
            )
            return

        try:
            self._source(Emitter(self))
        except Exception as e:
            if self._finish(OpState.FAILED):
                self._subscriber.on_error(e)
            return

        if self._finish(OpState.COMPLETED):
            self._subscriber.on_complete()

    def cancel(self) -> None:
        with self._lock:
            if self._state in _LIVE_STATES:
                self._state = OpState.CANCELLED

    def _next(self, item: T) -> bool:
        with self._lock:
            live = self._state is OpState.RUNNING
        if not live:
            return False
        self._subscriber.on_next(item)
        return True

    def _finish(self, terminal: OpState) -> bool:
        # Callbacks run outside the lock so a subscriber may cancel from inside one.
        with self._lock:
            if self._state is not OpState.RUNNING:
                return False
            self._state = terminal
            return True


class _InertSubscription(Subscription):
    def request(self, n: int) -> None:
        pass

    def cancel(self) -> None:
        pass


class AsyncOp(Generic[T]):
    """
    Lazy, single-use wrapper around one blocking operation.

    Nothing runs when the op is built or subscribed to. The wrapped call runs
    on the thread that calls ``subscription.request(n)``; the subscriber then
    receives zero or more ``on_next`` calls followed by exactly one of
    ``on_complete``/``on_error``. Cancelling before demand means the call never
    runs; cancelling while it runs lets it finish but drops every notification
    that has not been sent yet.
    """

    def __init__(self, source: Source[T]) -> None:
        self._source = source
        self._lock = threading.Lock()
        self._subscription: _OpSubscription[T] | None = None

    @classmethod
    def from_call(cls, fn: Callable[[], T | None]) -> "AsyncOp[T]":
        """Emit the result of fn(), or nothing if it returns None."""

        def source(emitter: Emitter[T]) -> None:
            value = fn()
            if value is not None:
                emitter.emit(value)

        return cls(source)

    @classmethod
    def from_effect(cls, fn: Callable[[], Any]) -> "AsyncOp[None]":
        """Run fn() for its side effect; only completion is signalled."""

        def source(emitter: Emitter[None]) -> None:
            fn()

        return cls(source)

    @classmethod
    def from_iterable(cls, fn: Callable[[], Iterable[T]]) -> "AsyncOp[T]":
        """
        Emit every item of fn(). Cancellation is checked before each item is
        pulled, so a lazy iterable stops doing work once cancelled.
        """

        def source(emitter: Emitter[T]) -> None:
            iterator = iter(fn())
            while not emitter.cancelled:
                try:
                    item = next(iterator)
                except StopIteration:
                    return
                emitter.emit(item)

        return cls(source)

    @property
    def state(self) -> OpState:
        with self._lock:
            subscription = self._subscription
        if subscription is None:
            return OpState.CREATED
        return subscription.state

    def subscribe(self, subscriber: Subscriber[T]) -> None:
        with self._lock:
            duplicate = self._subscription is not None
            if not duplicate:
                self._subscription = _OpSubscription(self._source, subscriber)
            subscription = self._subscription

        if duplicate:
            subscriber.on_subscribe(_InertSubscription())
            subscriber.on_error(
                AlreadySubscribedError("AsyncOp supports a single subscriber")
            )
            return

        subscriber.on_subscribe(subscription)


class CollectingSubscriber(Subscriber[T]):
    """
    Subscriber that records what it receives.

    ``request_on_subscribe`` signals demand as soon as the subscription
    arrives; ``cancel_after`` cancels once that many items were received.
    """

    def __init__(
        self,
        request_on_subscribe: int | None = None,
        cancel_after: int | None = None,
    ) -> None:
        self.items: list[T] = []
        self.completed = False
        self.error: BaseException | None = None
        self.subscription: Subscription | None = None
        self._request_on_subscribe = request_on_subscribe
        self._cancel_after = cancel_after

    def on_subscribe(self, subscription: Subscription) -> None:
        self.subscription = subscription
        if self._request_on_subscribe is not None:
            subscription.request(self._request_on_subscribe)

    def on_next(self, item: T) -> None:
        self.items.append(item)
        if self._cancel_after is not None and len(self.items) >= self._cancel_after:
            self.cancel()

    def on_error(self, error: BaseException) -> None:
        self.error = error

    def on_complete(self) -> None:
        self.completed = True

    @property
    def terminated(self) -> bool:
        return self.completed or self.error is not None

    def request(self, n: int = 1) -> None:
        if self.subscription is None:
            raise RuntimeError("Not subscribed")
        self.subscription.request(n)

    def cancel(self) -> None:
        if self.subscription is not None:
            self.subscription.cancel()

    def result(self) -> list[T]:
        """Items received, or the delivered error re-raised."""
        if self.error is not None:
            raise self.error
        return self.items


class AsyncDepositor(Generic[T]):
    """Depositor whose operations are returned as AsyncOps."""

    def __init__(self, depositor: Depositor[T]) -> None:
        self._depositor = depositor

    @property
    def depositor(self) -> Depositor[T]:
        return self._depositor

    def store(self, value: T | None) -> AsyncOp[None]:
        return AsyncOp.from_effect(lambda: self._depositor.store(value))

    def retrieve(self) -> AsyncOp[T]:
        return AsyncOp.from_call(self._depositor.retrieve)

    def delete(self) -> AsyncOp[None]:
        return AsyncOp.from_effect(self._depositor.delete)

    def exists(self) -> AsyncOp[bool]:
        return AsyncOp.from_call(self._depositor.exists)
