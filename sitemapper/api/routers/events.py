from fastapi import APIRouter

from sitemapper.domain.events import event_to_dict


def create_events_router(event_channel):
    router = APIRouter(prefix="/events", tags=["Events"])

    @router.get("")
    def drain_events(max_items: int = 100):
        """Remove and return up to `max_items` queued run events."""
        events = event_channel.drain(max_items=max(1, min(max_items, 1000)))
        return {"events": [event_to_dict(e) for e in events], "dropped": event_channel.dropped}

    return router
