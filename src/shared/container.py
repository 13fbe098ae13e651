"""Component wiring.

Builds every service once, with its collaborators passed in, and hands the
result to the FastAPI app. Tests build their own container around an
in-memory database and a fake email channel.
"""

from dataclasses import dataclass

from notifications.channel import build_email_channel
from notifications.channel.email_port import EmailPort
from notifications.notification.outbox import NotificationOutbox
from notifications.notifier import Notifier
from ordering.order.lookup import OrderLookup
from ordering.order.tracking import TrackingRecorder
from ordering.order.transition import OrderStatusMachine
from settlements.audit.log import AuditLog
from settlements.settlement.batching import SettlementBatcher
from settlements.settlement.dashboard import SettlementDashboard
from settlements.settlement.lifecycle import SettlementStatusMachine
from shared.config import Settings
from shared.db import Database
from shared.webhook_auth import ADMIN_HEADER, WebhookAuthGuard


@dataclass
class Container:
    settings: Settings
    database: Database
    email: EmailPort
    guard: WebhookAuthGuard
    admin_guard: WebhookAuthGuard
    outbox: NotificationOutbox
    notifier: Notifier
    audit: AuditLog
    orders: OrderStatusMachine
    tracking: TrackingRecorder
    lookup: OrderLookup
    batcher: SettlementBatcher
    settlements: SettlementStatusMachine
    dashboard: SettlementDashboard

    @classmethod
    def build(
        cls,
        settings: Settings | None = None,
        database: Database | None = None,
        email: EmailPort | None = None,
    ) -> "Container":
        settings = settings or Settings.from_env()
        database = database or Database(settings.database_url)
        email = email or build_email_channel(settings)

        guard = WebhookAuthGuard(settings.printer_webhook_secret)
        admin_guard = WebhookAuthGuard(settings.admin_api_key, header=ADMIN_HEADER, token_param=None)
        outbox = NotificationOutbox(
            database,
            email,
            max_retries=settings.notification_max_retries,
            backoff_seconds=settings.notification_retry_backoff_seconds,
        )
        notifier = Notifier(outbox, settings, guard)
        audit = AuditLog(database)

        return cls(
            settings=settings,
            database=database,
            email=email,
            guard=guard,
            admin_guard=admin_guard,
            outbox=outbox,
            notifier=notifier,
            audit=audit,
            orders=OrderStatusMachine(database, notifier),
            tracking=TrackingRecorder(database),
            lookup=OrderLookup(database),
            batcher=SettlementBatcher(database, settings, notifier),
            settlements=SettlementStatusMachine(database, audit),
            dashboard=SettlementDashboard(database, audit),
        )

    def close(self) -> None:
        """Release resources held by the components (called on app shutdown)."""
        self.email.close()
