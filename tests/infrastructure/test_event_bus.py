"""Tests for EventBus and EventStore."""

from __future__ import annotations

from bluegreen.domain.events import (
    DeploymentFailed,
    DeploymentStarted,
    DomainEvent,
    PhaseEntered,
)
from bluegreen.infrastructure.event_bus import EventBus, EventStore


class TestEventBus:

    def test_subscribe_and_publish(self) -> None:
        bus = EventBus()
        received: list[DomainEvent] = []
        bus.subscribe(PhaseEntered, received.append)

        event = PhaseEntered(source_id="shop/checkout", phase="deploying")
        bus.publish(event)
        assert received == [event]

    def test_typed_subscription_filters_events(self) -> None:
        bus = EventBus()
        received: list[DomainEvent] = []
        bus.subscribe(DeploymentFailed, received.append)

        bus.publish(PhaseEntered(phase="idle"))
        bus.publish(DeploymentFailed(reason="boom"))
        assert len(received) == 1
        assert isinstance(received[0], DeploymentFailed)

    def test_global_handlers_run_first(self) -> None:
        bus = EventBus()
        order: list[str] = []
        bus.subscribe(PhaseEntered, lambda e: order.append("typed"))
        bus.subscribe_all(lambda e: order.append("global"))

        bus.publish(PhaseEntered(phase="idle"))
        assert order == ["global", "typed"]

    def test_failing_handler_is_skipped(self) -> None:
        bus = EventBus()
        received: list[DomainEvent] = []

        def explode(event: DomainEvent) -> None:
            raise RuntimeError("subscriber bug")

        bus.subscribe(PhaseEntered, explode)
        bus.subscribe(PhaseEntered, received.append)
        bus.publish(PhaseEntered(phase="switching"))
        assert len(received) == 1

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        received: list[DomainEvent] = []
        bus.subscribe(PhaseEntered, received.append)
        assert bus.unsubscribe(PhaseEntered, received.append) is True
        assert bus.unsubscribe(PhaseEntered, received.append) is False
        bus.publish(PhaseEntered(phase="idle"))
        assert received == []

    def test_handler_count(self) -> None:
        bus = EventBus()
        bus.subscribe(PhaseEntered, lambda e: None)
        bus.subscribe_all(lambda e: None)
        assert bus.handler_count(PhaseEntered) == 1
        assert bus.handler_count() == 2


class TestEventStore:

    def test_query_by_type_and_source(self) -> None:
        store = EventStore()
        store.append(PhaseEntered(source_id="shop/checkout", phase="idle"))
        store.append(DeploymentStarted(source_id="shop/cart", version="2.0.0"))
        store.append(PhaseEntered(source_id="shop/cart", phase="idle"))

        assert len(store.query(PhaseEntered)) == 2
        assert len(store.query(source_id="shop/cart")) == 2
        assert len(store.query(PhaseEntered, source_id="shop/checkout")) == 1

    def test_max_size_keeps_newest(self) -> None:
        store = EventStore(max_size=2)
        for phase in ("idle", "deploying", "awaiting_ready"):
            store.append(PhaseEntered(phase=phase))
        assert len(store) == 2
        assert store.latest.phase == "awaiting_ready"  # type: ignore[union-attr]

    def test_clear(self) -> None:
        store = EventStore()
        store.append(PhaseEntered(phase="idle"))
        store.clear()
        assert len(store) == 0
        assert store.latest is None
