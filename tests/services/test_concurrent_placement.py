"""Concurrent order operations.

These run against whatever the ``engine`` fixture provides: a SQLite file by
default, or TEST_DATABASE_URL. On SQLite the conditional stock update and the
order version column carry the guarantees; the row-lock test needs Postgres.
"""

import os
import threading

import pytest
from conftest import CUSTOMER_ID, OTHER_CUSTOMER_ID, fill_cart, make_product, order_count, stock_of

from storefront.domain.context import RequestContext
from storefront.domain.errors import InsufficientStock
from storefront.repos.order_repo import OrderRepo
from storefront.services.order_service import OrderService

on_postgres = pytest.mark.skipif(
    not os.environ.get("TEST_DATABASE_URL", "").startswith("postgresql"),
    reason="needs TEST_DATABASE_URL pointing at postgres",
)


def run_together(session_factory, notifications, *actions):
    """Run each ``action(service)`` in its own thread and session, released at once."""
    barrier = threading.Barrier(len(actions))
    outcomes = []

    def run(action):
        with session_factory() as session:
            service = OrderService(session, notification_service=notifications)
            barrier.wait()
            try:
                action(service)
                outcomes.append(None)
            except Exception as e:
                outcomes.append(e)

    threads = [threading.Thread(target=run, args=(a,)) for a in actions]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


def test_last_units_are_sold_once(users, db, session_factory, notifications):
    wallet = make_product(db, "Wallet", "10.00", 5)
    fill_cart(db, CUSTOMER_ID, [(wallet, 3)])
    fill_cart(db, OTHER_CUSTOMER_ID, [(wallet, 3)])

    outcomes = run_together(
        session_factory,
        notifications,
        lambda s: s.place_order(RequestContext(user_id=CUSTOMER_ID)),
        lambda s: s.place_order(RequestContext(user_id=OTHER_CUSTOMER_ID)),
    )

    assert len(outcomes) == 2
    assert outcomes.count(None) == 1
    assert [type(e) for e in outcomes if e is not None] == [InsufficientStock]
    assert stock_of(session_factory, wallet.id) == 2
    assert order_count(session_factory) == 1


def test_double_cancel_restores_once(users, db, session_factory, notifications):
    wallet = make_product(db, "Wallet", "10.00", 5)
    fill_cart(db, CUSTOMER_ID, [(wallet, 2)])
    order_id = OrderService(db, notification_service=notifications).place_order(
        RequestContext(user_id=CUSTOMER_ID)
    )["order_id"]

    outcomes = run_together(
        session_factory,
        notifications,
        lambda s: s.cancel_order(RequestContext(user_id=CUSTOMER_ID), order_id),
        lambda s: s.cancel_order(RequestContext(user_id=CUSTOMER_ID), order_id),
    )

    assert len(outcomes) == 2
    assert outcomes.count(None) == 1
    assert stock_of(session_factory, wallet.id) == 5


@pytest.mark.postgres
@on_postgres
def test_status_change_waits_for_order_row_lock(users, db, session_factory, notifications):
    wallet = make_product(db, "Wallet", "10.00", 5)
    fill_cart(db, CUSTOMER_ID, [(wallet, 2)])
    order_id = OrderService(db, notification_service=notifications).place_order(
        RequestContext(user_id=CUSTOMER_ID)
    )["order_id"]

    holder = session_factory()
    OrderRepo(holder).get_order_for_update(order_id)

    outcomes = []

    def cancel():
        with session_factory() as session:
            service = OrderService(session, notification_service=notifications)
            outcomes.append(service.cancel_order(RequestContext(user_id=CUSTOMER_ID), order_id)["status"])

    worker = threading.Thread(target=cancel)
    worker.start()
    worker.join(timeout=0.5)
    # blocked on SELECT ... FOR UPDATE while the holder keeps its transaction open
    assert worker.is_alive()

    holder.commit()
    holder.close()
    worker.join(timeout=30)

    assert outcomes == ["CANCELLED"]
    assert stock_of(session_factory, wallet.id) == 5
