"""
Order workflow tests.

Verifies:
- Checkout totals, line snapshots and stock decrements
- Nothing is persisted when any part of checkout fails
- Status lifecycle, including the cancelled -> zero total rule
- Cascading delete
- Standalone header/line endpoints' validation
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from backoffice.errors import ConflictError, InsufficientStockError, NotFoundError, UnavailableError, ValidationError
from backoffice.extensions import db
from backoffice.models import Customer, Order, OrderItem
from backoffice.services import audit_service, concurrency, order_service

from conftest import stock_of


def _order_count(db_session) -> int:
    return db_session.query(Order).count()


def _line_count(db_session) -> int:
    return db_session.query(OrderItem).count()


# =============================================================================
# CHECKOUT: HAPPY PATH
# =============================================================================


class TestCreateOrder:
    def test_round_trip_totals_and_stock(self, db_session, admin, customer, item_one, item_two):
        order = order_service.create_order(
            [{"item_id": item_one.item_id, "quantity": 2}, {"item_id": item_two.item_id, "quantity": 1}],
            {"customer_id": customer.customer_id},
            admin.admin_id,
            "2025-03-01",
        )

        assert order.order_total_price == Decimal("130.00")
        assert order.order_status == "pending"
        assert order.order_date == date(2025, 3, 1)

        lines = db_session.query(OrderItem).filter_by(order_id=order.order_id).order_by(OrderItem.order_item_id).all()
        assert [line.subtotal for line in lines] == [Decimal("100.00"), Decimal("30.00")]
        assert sum(line.subtotal for line in lines) == order.order_total_price

        assert stock_of(item_one.item_id) == 8
        assert stock_of(item_two.item_id) == 4

    def test_snapshots_names_and_prices(self, db_session, admin, customer, item_one):
        order = order_service.create_order(
            [{"item_id": item_one.item_id, "quantity": 1}],
            {"customer_id": customer.customer_id},
            admin.admin_id,
            date(2025, 3, 2),
        )

        assert order.customer_name == "Jose Rizal"
        assert order.admin_name == "Maria Reyes"

        line = order.items[0]
        assert line.unit_price == Decimal("50.00")
        assert line.description == "Bottled Water"
        assert line.unit == "bottle"

        # Later catalog edits do not rewrite the line
        item_one.price = Decimal("99.00")
        db_session.commit()
        db_session.expire_all()
        assert db_session.get(OrderItem, line.order_item_id).unit_price == Decimal("50.00")

    def test_repeated_item_merges_into_one_line(self, db_session, admin, customer, item_one):
        order = order_service.create_order(
            [{"item_id": item_one.item_id, "quantity": 2}, {"item_id": item_one.item_id, "quantity": 3}],
            {"customer_id": customer.customer_id},
            admin.admin_id,
            "2025-03-01",
        )

        assert len(order.items) == 1
        assert order.items[0].quantity == 5
        assert order.items[0].subtotal == Decimal("250.00")
        assert order.order_total_price == Decimal("250.00")
        assert stock_of(item_one.item_id) == 5

    def test_offset_timestamp_keeps_written_day(self, db_session, admin, customer, item_one):
        order = order_service.create_order(
            [{"item_id": item_one.item_id, "quantity": 1}],
            {"customer_id": customer.customer_id},
            admin.admin_id,
            "2025-03-01T03:00:00+08:00",
        )
        assert order.order_date == date(2025, 3, 1)

    def test_exact_stock_is_allowed(self, db_session, admin, customer, item_two):
        order_service.create_order(
            [{"item_id": item_two.item_id, "quantity": 5}],
            {"customer_id": customer.customer_id},
            admin.admin_id,
            "2025-03-01",
        )
        assert stock_of(item_two.item_id) == 0

    def test_inline_new_customer_is_created(self, db_session, admin, item_one):
        order = order_service.create_order(
            [{"item_id": item_one.item_id, "quantity": 1}],
            {"new_customer": {
                "name": "Andres Bonifacio",
                "address": "Tondo, Manila",
                "email": "andres@example.com",
                "number": "09191234567",
            }},
            admin.admin_id,
            "2025-03-01",
        )

        customer = db_session.query(Customer).filter_by(customer_email="andres@example.com").one()
        assert order.customer_id == customer.customer_id
        assert order.customer_name == "Andres Bonifacio"

    def test_initial_status_cancelled_forces_zero_total(self, db_session, admin, customer, item_one):
        order = order_service.create_order(
            [{"item_id": item_one.item_id, "quantity": 2}],
            {"customer_id": customer.customer_id},
            admin.admin_id,
            "2025-03-01",
            initial_status="Cancelled",
        )
        assert order.order_status == "cancelled"
        assert order.order_total_price == Decimal("0.00")

    def test_audit_entry_recorded(self, db_session, admin, customer, item_one):
        order = order_service.create_order(
            [{"item_id": item_one.item_id, "quantity": 2}],
            {"customer_id": customer.customer_id},
            admin.admin_id,
            "2025-03-01",
            actor="Maria Reyes",
        )

        entries = audit_service.list_entries()
        assert len(entries) == 1
        assert entries[0].log_description == f"Order created: ID {order.order_id} for Jose Rizal total 100.00"
        assert entries[0].log_created_by == "Maria Reyes"


# =============================================================================
# CHECKOUT: FAILURES LEAVE NOTHING BEHIND
# =============================================================================


class TestCreateOrderFailures:
    def test_insufficient_stock_changes_nothing(self, db_session, admin, customer, item_one, item_two):
        with pytest.raises(InsufficientStockError) as exc_info:
            order_service.create_order(
                [{"item_id": item_one.item_id, "quantity": 2}, {"item_id": item_two.item_id, "quantity": 6}],
                {"customer_id": customer.customer_id},
                admin.admin_id,
                "2025-03-01",
            )

        assert exc_info.value.details["available"] == 5
        assert exc_info.value.details["unit"] == "pack"
        assert "Available quantity: 5 pack" in str(exc_info.value)

        assert _order_count(db_session) == 0
        assert _line_count(db_session) == 0
        assert stock_of(item_one.item_id) == 10
        assert stock_of(item_two.item_id) == 5
        assert audit_service.list_entries() == []

    def test_merged_quantity_checked_against_stock(self, db_session, admin, customer, item_two):
        with pytest.raises(InsufficientStockError):
            order_service.create_order(
                [{"item_id": item_two.item_id, "quantity": 3}, {"item_id": item_two.item_id, "quantity": 3}],
                {"customer_id": customer.customer_id},
                admin.admin_id,
                "2025-03-01",
            )
        assert stock_of(item_two.item_id) == 5

    def test_nonexistent_item(self, db_session, admin, customer, item_one):
        with pytest.raises(NotFoundError):
            order_service.create_order(
                [{"item_id": item_one.item_id, "quantity": 1}, {"item_id": 999999, "quantity": 1}],
                {"customer_id": customer.customer_id},
                admin.admin_id,
                "2025-03-01",
            )

        assert _order_count(db_session) == 0
        assert _line_count(db_session) == 0
        assert stock_of(item_one.item_id) == 10

    def test_unknown_customer(self, db_session, admin, item_one):
        with pytest.raises(NotFoundError):
            order_service.create_order(
                [{"item_id": item_one.item_id, "quantity": 1}],
                {"customer_id": 424242},
                admin.admin_id,
                "2025-03-01",
            )
        assert stock_of(item_one.item_id) == 10

    def test_unknown_admin_rolls_back_inline_customer(self, db_session, item_one):
        with pytest.raises(NotFoundError):
            order_service.create_order(
                [{"item_id": item_one.item_id, "quantity": 1}],
                {"new_customer": {
                    "name": "Apolinario Mabini",
                    "address": "Tanauan, Batangas",
                    "email": "mabini@example.com",
                    "number": "09201234567",
                }},
                777,
                "2025-03-01",
            )

        assert db_session.query(Customer).count() == 0
        assert _order_count(db_session) == 0
        assert stock_of(item_one.item_id) == 10

    def test_insufficient_stock_rolls_back_inline_customer(self, db_session, admin, item_two):
        with pytest.raises(InsufficientStockError):
            order_service.create_order(
                [{"item_id": item_two.item_id, "quantity": 50}],
                {"new_customer": {
                    "name": "Emilio Aguinaldo",
                    "address": "Kawit, Cavite",
                    "email": "emilio@example.com",
                    "number": "09211234567",
                }},
                admin.admin_id,
                "2025-03-01",
            )
        assert db_session.query(Customer).count() == 0

    @pytest.mark.parametrize(
        "new_customer",
        [
            {"name": "", "address": "Somewhere", "email": "a@b.co", "number": "09171234567"},
            {"name": "A", "address": "", "email": "a@b.co", "number": "09171234567"},
            {"name": "A", "address": "Somewhere", "email": "not-an-email", "number": "09171234567"},
            {"name": "A", "address": "Somewhere", "email": "a@b.co", "number": "0917123"},
            {"name": "A", "address": "Somewhere", "email": "a@b.co", "number": ""},
            "Jane Doe",
            ["Jane Doe", "Manila"],
        ],
    )
    def test_inline_customer_validation(self, db_session, admin, item_one, new_customer):
        with pytest.raises(ValidationError):
            order_service.create_order(
                [{"item_id": item_one.item_id, "quantity": 1}],
                {"new_customer": new_customer},
                admin.admin_id,
                "2025-03-01",
            )
        assert db_session.query(Customer).count() == 0
        assert stock_of(item_one.item_id) == 10

    @pytest.mark.parametrize(
        "cart",
        [
            [],
            None,
            [{"item_id": 1}],
            [{"item_id": 1, "quantity": 0}],
            [{"item_id": 1, "quantity": -2}],
            [{"item_id": 1, "quantity": 1.5}],
            ["not-an-entry"],
        ],
    )
    def test_cart_validation(self, db_session, admin, customer, cart):
        with pytest.raises(ValidationError):
            order_service.create_order(cart, {"customer_id": customer.customer_id}, admin.admin_id, "2025-03-01")

    def test_invalid_date_and_status(self, db_session, admin, customer, item_one):
        cart = [{"item_id": item_one.item_id, "quantity": 1}]
        selection = {"customer_id": customer.customer_id}

        with pytest.raises(ValidationError):
            order_service.create_order(cart, selection, admin.admin_id, "not-a-date")
        with pytest.raises(ValidationError):
            order_service.create_order(cart, selection, admin.admin_id, None)
        with pytest.raises(ValidationError):
            order_service.create_order(cart, selection, admin.admin_id, "2025-03-01", initial_status="lost")
        with pytest.raises(ValidationError):
            order_service.create_order(cart, {}, admin.admin_id, "2025-03-01")
        with pytest.raises(ValidationError):
            order_service.create_order(cart, selection, None, "2025-03-01")

    def test_lost_decrement_race_is_conflict(self, db_session, admin, customer, item_one, item_two, monkeypatch):
        calls = []

        def losing_decrement(item_id, amount):
            calls.append(item_id)
            # First line wins, second loses the race
            return len(calls) == 1

        monkeypatch.setattr(order_service, "decrement_item_quantity", losing_decrement)

        with pytest.raises(ConflictError):
            order_service.create_order(
                [{"item_id": item_one.item_id, "quantity": 1}, {"item_id": item_two.item_id, "quantity": 1}],
                {"customer_id": customer.customer_id},
                admin.admin_id,
                "2025-03-01",
            )

        assert _order_count(db_session) == 0
        assert _line_count(db_session) == 0

    def test_database_timeout_surfaces_as_unavailable(self, db_session, admin, customer, item_one, monkeypatch):
        attempts = []

        def locked_begin():
            attempts.append(1)
            raise OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))

        monkeypatch.setattr(order_service, "begin_write_transaction", locked_begin)
        monkeypatch.setattr(concurrency.time, "sleep", lambda seconds: None)

        with pytest.raises(UnavailableError):
            order_service.create_order(
                [{"item_id": item_one.item_id, "quantity": 1}],
                {"customer_id": customer.customer_id},
                admin.admin_id,
                "2025-03-01",
            )

        assert len(attempts) == 3
        assert _order_count(db_session) == 0
        assert stock_of(item_one.item_id) == 10


# =============================================================================
# STATUS LIFECYCLE
# =============================================================================


@pytest.fixture
def placed_order(db_session, admin, customer, item_one, item_two):
    return order_service.create_order(
        [{"item_id": item_one.item_id, "quantity": 2}, {"item_id": item_two.item_id, "quantity": 1}],
        {"customer_id": customer.customer_id},
        admin.admin_id,
        "2025-03-01",
    )


class TestUpdateOrderStatus:
    def test_cancel_zeroes_total_without_restock(self, db_session, placed_order, item_one, item_two):
        order = order_service.update_order_status(placed_order.order_id, "cancelled", actor="Maria Reyes")

        assert order.order_status == "cancelled"
        assert order.order_total_price == Decimal("0.00")
        # Stock stays decremented
        assert stock_of(item_one.item_id) == 8
        assert stock_of(item_two.item_id) == 4

        latest = audit_service.list_entries()[0]
        assert "from pending to cancelled" in latest.log_description
        assert "total 0.00" in latest.log_description

    def test_case_insensitive_and_stored_lower_case(self, db_session, placed_order):
        order = order_service.update_order_status(placed_order.order_id, "SHIPPED")
        assert order.order_status == "shipped"
        assert order.order_total_price == Decimal("130.00")

    def test_any_transition_is_allowed(self, db_session, placed_order):
        order_service.update_order_status(placed_order.order_id, "delivered")
        order = order_service.update_order_status(placed_order.order_id, "pending")
        assert order.order_status == "pending"

    def test_invalid_status(self, db_session, placed_order):
        with pytest.raises(ValidationError):
            order_service.update_order_status(placed_order.order_id, "returned")
        with pytest.raises(ValidationError):
            order_service.update_order_status(placed_order.order_id, None)

    def test_unknown_order(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.update_order_status(31337, "shipped")


# =============================================================================
# CASCADING DELETE
# =============================================================================


class TestDeleteOrder:
    def test_deletes_order_and_lines(self, db_session, placed_order):
        order_id = placed_order.order_id

        summary = order_service.delete_order(order_id)

        assert summary["order_id"] == order_id
        assert summary["item_count"] == 2
        db_session.expire_all()
        assert db_session.get(Order, order_id) is None
        assert db_session.query(OrderItem).filter_by(order_id=order_id).count() == 0

        latest = audit_service.list_entries()[0]
        assert latest.log_description.startswith(f"Order deleted: ID {order_id}")

    def test_unknown_order_changes_nothing(self, db_session, placed_order):
        with pytest.raises(NotFoundError):
            order_service.delete_order(placed_order.order_id + 100)

        assert _order_count(db_session) == 1
        assert _line_count(db_session) == 2

    def test_delete_twice(self, db_session, placed_order):
        order_id = placed_order.order_id
        order_service.delete_order(order_id)
        with pytest.raises(NotFoundError):
            order_service.delete_order(order_id)

    def test_failed_header_delete_keeps_lines(self, db_session, placed_order):
        order_id = placed_order.order_id
        session = db.session()

        def fail_order_delete(orm_execute_state):
            statement = orm_execute_state.statement
            if orm_execute_state.is_delete and statement.table.name == Order.__tablename__:
                raise RuntimeError("order delete failed")

        event.listen(session, "do_orm_execute", fail_order_delete)
        try:
            with pytest.raises(RuntimeError):
                order_service.delete_order(order_id)
        finally:
            event.remove(session, "do_orm_execute", fail_order_delete)

        db_session.expire_all()
        assert db_session.get(Order, order_id) is not None
        assert db_session.query(OrderItem).filter_by(order_id=order_id).count() == 2


# =============================================================================
# READS AND STANDALONE ENDPOINTS
# =============================================================================


class TestOrderReads:
    def test_get_order_with_items(self, db_session, placed_order):
        data = order_service.get_order_with_items(placed_order.order_id)
        assert data["order"]["order_total_price"] == "130.00"
        assert [line["subtotal"] for line in data["order_items"]] == ["100.00", "30.00"]

    def test_list_orders_newest_first(self, db_session, admin, customer, item_one):
        cart = [{"item_id": item_one.item_id, "quantity": 1}]
        selection = {"customer_id": customer.customer_id}
        older = order_service.create_order(cart, selection, admin.admin_id, "2025-01-01")
        newer = order_service.create_order(cart, selection, admin.admin_id, "2025-02-01")

        assert [o.order_id for o in order_service.list_orders()] == [newer.order_id, older.order_id]

    def test_get_unknown_order(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.get_order(1)


class TestAddOrderItem:
    def test_stores_caller_subtotal_as_is(self, db_session, placed_order, item_one):
        line = order_service.add_order_item({
            "order_id": placed_order.order_id,
            "item_id": item_one.item_id,
            "quantity": 2,
            "unit_price": "50.00",
            "subtotal": "75.00",
        })
        assert line.subtotal == Decimal("75.00")
        assert line.description == "Bottled Water"
        # Stock untouched by the standalone line endpoint
        assert stock_of(item_one.item_id) == 8

    @pytest.mark.parametrize(
        "quantity,unit_price,subtotal",
        [
            (0, "50.00", "0.00"),
            (-1, "50.00", "50.00"),
            (1, "-1.00", "0.00"),
            (1, "50.00", "-5.00"),
        ],
    )
    def test_invalid_values(self, db_session, placed_order, item_one, quantity, unit_price, subtotal):
        with pytest.raises(ValidationError) as exc_info:
            order_service.add_order_item({
                "order_id": placed_order.order_id,
                "item_id": item_one.item_id,
                "quantity": quantity,
                "unit_price": unit_price,
                "subtotal": subtotal,
            })
        assert str(exc_info.value) == order_service.ORDER_ITEM_VALUES_MESSAGE

    def test_missing_fields(self, db_session, placed_order):
        with pytest.raises(ValidationError):
            order_service.add_order_item({"order_id": placed_order.order_id})

    def test_unknown_order(self, db_session, item_one):
        with pytest.raises(NotFoundError):
            order_service.add_order_item({
                "order_id": 5150,
                "item_id": item_one.item_id,
                "quantity": 1,
                "unit_price": "50.00",
                "subtotal": "50.00",
            })


class TestCreateOrderRecord:
    def test_inserts_header(self, db_session, customer):
        order = order_service.create_order_record({
            "customer_id": customer.customer_id,
            "admin_name": "Maria Reyes",
            "order_date": "2025-04-01",
            "order_status": "Processing",
            "order_total_price": "99.95",
        })
        assert order.order_status == "processing"
        assert order.order_total_price == Decimal("99.95")
        assert order.customer_name == "Jose Rizal"

    def test_negative_total_rejected(self, db_session, customer):
        with pytest.raises(ValidationError):
            order_service.create_order_record({
                "customer_id": customer.customer_id,
                "admin_name": "Maria Reyes",
                "order_date": "2025-04-01",
                "order_status": "pending",
                "order_total_price": "-1",
            })
