"""Notification dispatch and the reminder sweep."""

from datetime import timedelta
from unittest.mock import patch, MagicMock

import pytest
import requests
from celery.exceptions import Retry
from django.utils import timezone

from apps.notifications.service import NotificationService
from apps.notifications.tasks import deliver_notification, send_scheduled_reminders
from apps.orders.models import Order
from apps.quotes.models import Quote


class TestDelivery:

    def test_gateway_accepts(self):
        with patch("requests.post", return_value=MagicMock(status_code=202)) as post:
            assert NotificationService().deliver("order.created", {"order_id": "x"}) is True
        assert post.call_args.kwargs["json"] == {"event": "order.created", "payload": {"order_id": "x"}}
        assert post.call_args.args[0].endswith("/events")

    def test_gateway_error_is_swallowed(self):
        with patch("requests.post", return_value=MagicMock(status_code=500)):
            assert NotificationService().deliver("order.created", {}) is False

    def test_network_failure_is_swallowed(self):
        with patch("requests.post", side_effect=requests.ConnectionError("down")):
            assert NotificationService().deliver("order.created", {}) is False


class TestDeliveryTask:

    def test_delivered_event_is_not_retried(self):
        with patch.object(NotificationService, "deliver", return_value=True), \
             patch.object(deliver_notification, "retry") as retry:
            assert deliver_notification.run("order.created", {}) is True
        retry.assert_not_called()

    def test_unreachable_gateway_schedules_a_retry(self):
        with patch.object(NotificationService, "deliver", return_value=False), \
             patch.object(deliver_notification, "retry", side_effect=Retry()) as retry:
            with pytest.raises(Retry):
                deliver_notification.run("order.created", {})
        retry.assert_called_once()


@pytest.mark.django_db
class TestDispatch:

    def test_queued_after_commit(self, django_capture_on_commit_callbacks):
        with patch("apps.notifications.tasks.deliver_notification.delay") as delay:
            with django_capture_on_commit_callbacks(execute=True):
                NotificationService().notify("quote.sent", {"quote_id": "q"})
        delay.assert_called_once_with("quote.sent", {"quote_id": "q"})

    def test_unknown_event_dropped(self, django_capture_on_commit_callbacks):
        with patch("apps.notifications.tasks.deliver_notification.delay") as delay:
            with django_capture_on_commit_callbacks(execute=True) as callbacks:
                NotificationService().notify("order.exploded", {})
        assert callbacks == []
        delay.assert_not_called()

    def test_queue_failure_does_not_raise(self, django_capture_on_commit_callbacks):
        with patch("apps.notifications.tasks.deliver_notification.delay", side_effect=RuntimeError("broker")):
            with django_capture_on_commit_callbacks(execute=True):
                NotificationService().notify("order.created", {})


@pytest.mark.django_db
class TestReminderSweep:

    def test_sweep_counts_and_notifies(self, make_order, carrier, make_vehicle):
        today = timezone.localdate()
        make_vehicle(carrier, next_maintenance=today + timedelta(days=3))
        make_vehicle(carrier, next_maintenance=today + timedelta(days=30))

        fresh = make_order()
        stale = make_order()
        Order.objects.filter(pk=stale.pk).update(created_at=timezone.now() - timedelta(hours=30))

        Quote.objects.create(
            quote_number="DV-1", order=fresh, carrier=carrier, status=Quote.Status.SENT,
            valid_until=timezone.now() + timedelta(hours=6),
        )
        Quote.objects.create(
            quote_number="DV-2", order=stale, carrier=carrier, status=Quote.Status.SENT,
            valid_until=timezone.now() + timedelta(days=3),
        )

        with patch("apps.notifications.service.NotificationService.notify") as notify:
            counts = send_scheduled_reminders()

        assert counts == {"maintenance": 1, "expiring": 1, "unassigned": 1}
        events = [c.args[0] for c in notify.call_args_list]
        assert sorted(events) == ["order.unassigned", "quote.expiring", "vehicle.maintenance_due"]
