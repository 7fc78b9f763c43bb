"""Tests for antforage.foraging.events — the synchronous event bus."""

import pytest

from antforage.foraging.events import (
    EventBus,
    ForagingEvent,
    ResourceDelivered,
    ResourceDepleted,
)


def _delivered() -> ResourceDelivered:
    return ResourceDelivered(tick=1, agent_id="a", colony_id="c", resource_type="seeds", amount=2)


class TestEventBus:
    def test_subscriber_receives_matching_events(self) -> None:
        bus = EventBus()
        seen: list[ForagingEvent] = []
        bus.subscribe(ResourceDelivered, seen.append)
        bus.emit(_delivered())
        bus.emit(ResourceDepleted(tick=1, node_id="n"))
        assert seen == [_delivered()]

    def test_base_class_receives_everything(self) -> None:
        bus = EventBus()
        seen: list[ForagingEvent] = []
        bus.subscribe(ForagingEvent, seen.append)
        bus.emit(_delivered())
        bus.emit(ResourceDepleted(tick=2, node_id="n"))
        assert [type(e) for e in seen] == [ResourceDelivered, ResourceDepleted]

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        seen: list[ForagingEvent] = []
        bus.subscribe(ResourceDepleted, seen.append)
        bus.unsubscribe(ResourceDepleted, seen.append)
        bus.unsubscribe(ResourceDelivered, seen.append)
        bus.emit(ResourceDepleted(tick=1, node_id="n"))
        assert seen == []

    def test_failing_handler_does_not_stop_others(
        self,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        bus = EventBus()
        seen: list[ForagingEvent] = []

        def broken(_event: ForagingEvent) -> None:
            msg = "boom"
            raise RuntimeError(msg)

        bus.subscribe(ResourceDepleted, broken)
        bus.subscribe(ResourceDepleted, seen.append)
        bus.emit(ResourceDepleted(tick=1, node_id="n"))
        assert len(seen) == 1
        assert "ResourceDepleted" in caplog.text

    def test_handlers_run_in_subscription_order(self) -> None:
        bus = EventBus()
        order: list[str] = []
        bus.subscribe(ResourceDepleted, lambda _e: order.append("first"))
        bus.subscribe(ResourceDepleted, lambda _e: order.append("second"))
        bus.emit(ResourceDepleted(tick=1, node_id="n"))
        assert order == ["first", "second"]
