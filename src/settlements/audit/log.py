"""AuditLog — records and reads printer settlement actions."""

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from settlements.audit.printer_action import PrinterAction, PrinterActionType
from shared.db import Database

logger = structlog.get_logger(__name__)


class AuditLog:
    def __init__(self, database: Database) -> None:
        self._database = database

    def record(self, session: Session, settlement_id: str, action: PrinterActionType) -> PrinterAction:
        """Append an entry inside the caller's unit of work."""
        entry = PrinterAction(settlement_id=settlement_id, action=action.value)
        session.add(entry)
        logger.info("Printer action recorded", settlement_id=settlement_id, action=action.value)
        return entry

    def history(self, settlement_id: str) -> list[dict]:
        """All entries for a settlement, oldest first."""
        with self._database.session() as session:
            return self.history_in(session, settlement_id)

    def history_in(self, session: Session, settlement_id: str) -> list[dict]:
        entries = session.scalars(
            select(PrinterAction).where(PrinterAction.settlement_id == settlement_id).order_by(PrinterAction.id)
        ).all()
        return [entry.to_dict() for entry in entries]
