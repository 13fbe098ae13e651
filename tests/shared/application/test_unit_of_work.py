"""Tests for Database.session — commit, rollback and error mapping."""

import pytest

from notifications.notification.notification import Notification
from shared.exceptions import NotFound, PersistenceError


def _notification(key="k-1"):
    return Notification.create(dedupe_key=key, recipient="a@example.com", notification_type="ShippingUpdate", body="x")


def _count(database):
    with database.session() as session:
        return session.query(Notification).count()


class TestUnitOfWork:
    def test_commits_on_success(self, database):
        with database.session() as session:
            session.add(_notification())
        assert _count(database) == 1

    def test_domain_error_rolls_back_and_propagates(self, database):
        with pytest.raises(NotFound):
            with database.session() as session:
                session.add(_notification())
                session.flush()
                raise NotFound("gone")
        assert _count(database) == 0

    def test_integrity_error_becomes_persistence_error(self, database):
        with pytest.raises(PersistenceError):
            with database.session() as session:
                session.add(_notification("dup"))
                session.add(_notification("dup"))
        assert _count(database) == 0
