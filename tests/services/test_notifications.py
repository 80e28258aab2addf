"""Tests for NotificationHub fan-out."""

from parentgate.domain.models.notification import NotificationKind
from parentgate.services.notifications import NotificationHub


def test_subscribers_receive_published_notifications(hub, t0):
    received = []
    hub.subscribe(received.append)

    notification = hub.publish(NotificationKind.MODE_CHANGED, t0, mode="unrestricted")

    assert received == [notification]
    assert notification.emitted_at == t0
    assert notification.payload == {"mode": "unrestricted"}


def test_unsubscribe(hub, t0):
    received = []
    unsubscribe = hub.subscribe(received.append)
    unsubscribe()
    unsubscribe()

    hub.publish(NotificationKind.LOCKOUT_CHANGED, t0, locked=True)

    assert received == []


def test_failing_subscriber_does_not_block_others(hub, t0):
    received = []

    def broken(notification):
        raise RuntimeError("banner crashed")

    hub.subscribe(broken)
    hub.subscribe(received.append)

    hub.publish(NotificationKind.SUGGESTION_CREATED, t0, suggestion_id="abc")

    assert len(received) == 1


def test_recent_backlog_is_bounded(t0):
    hub = NotificationHub(backlog_size=3)
    for i in range(5):
        hub.publish(NotificationKind.MODE_CHANGED, t0, seq=i)

    assert [n.payload["seq"] for n in hub.recent()] == [2, 3, 4]
    assert [n.payload["seq"] for n in hub.recent(limit=2)] == [3, 4]
