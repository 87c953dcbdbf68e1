from sitemapper.domain.events import CRAWL, StatusEvent, event_to_dict
from sitemapper.services.events import EventChannel


def test_full_queue_drops_oldest():
    channel = EventChannel(maxsize=2)
    for i in range(3):
        channel.publish(StatusEvent("p1", CRAWL, f"m{i}"))

    assert [e.message for e in channel.drain()] == ["m1", "m2"]
    assert channel.dropped == 1
    assert channel.get() is None


def test_subscribers_filtered_by_run_id():
    channel = EventChannel()
    seen = []
    token = channel.subscribe(seen.append, run_id="p1")

    channel.publish(StatusEvent("p1", CRAWL, "mine"))
    channel.publish(StatusEvent("p2", CRAWL, "other"))
    channel.unsubscribe(token)
    channel.publish(StatusEvent("p1", CRAWL, "late"))

    assert [e.message for e in seen] == ["mine"]


def test_failing_subscriber_does_not_break_publish():
    channel = EventChannel()

    def boom(event):
        raise RuntimeError("subscriber bug")

    channel.subscribe(boom)
    channel.publish(StatusEvent("p1", CRAWL, "still queued"))

    assert channel.get(timeout=0.1).message == "still queued"


def test_event_to_dict():
    data = event_to_dict(StatusEvent("p1", CRAWL, "hello"))
    assert data["type"] == "StatusEvent"
    assert data["message"] == "hello"
    assert data["kind"] == "crawl"
