from decimal import Decimal

import pytest

from pizza_store import Cart, ItemNotFoundError, MAX_ITEM_QUANTITY, OrderStatus, RECENT_ORDER_LIMIT, Session


def order_rows(db, order_id):
    return db.execute_query_and_return_result(
        "SELECT login, storeID, totalPrice, orderStatus FROM FoodOrder WHERE orderID=?;",
        (order_id,),
    )


def line_rows(db, order_id):
    return db.execute_query_and_return_result(
        "SELECT itemName, quantity FROM ItemsInOrder WHERE orderID=? ORDER BY itemName;",
        (order_id,),
    )


def test_cart_accumulates_repeated_names():
    cart = Cart()
    cart.add("Pepperoni Pizza", 1, "11.99")
    cart.add("pepperoni pizza", 2, "11.99")
    cart.add("Soda", 1, "1.99")
    assert len(cart) == 2
    assert cart.lines["pepperoni pizza"].quantity == 3
    assert cart.total == Decimal("37.96")


def test_empty_cart():
    cart = Cart()
    assert not cart
    assert cart.total == Decimal("0.00")


def test_place_order_end_to_end(accounts, orders, db, feed):
    assert accounts.create_user("alice", "pw1", "555-1111")
    session = Session()
    assert accounts.log_in(session, "alice", "pw1") == "alice"

    feed("1", "Cheese Pizza", "2", "done")
    order_id = orders.place_order(session)

    [[login, store_id, total, status]] = order_rows(db, order_id)
    assert (login, store_id) == ("alice", "1")
    assert float(total) == pytest.approx(19.98)
    assert status == OrderStatus.RECEIVED.value == "Order Received"
    assert line_rows(db, order_id) == [["Cheese Pizza", "2"]]


def test_place_order_reports_total(orders, alice, feed, capsys):
    feed("1", "Cheese Pizza", "2", "done")
    orders.place_order(alice)
    assert "total price: $19.98" in capsys.readouterr().out


def test_same_item_twice_is_one_line(orders, alice, db, feed):
    feed("2", "Pepperoni Pizza", "1", "pepperoni PIZZA", "2", "DONE")
    order_id = orders.place_order(alice)
    assert line_rows(db, order_id) == [["Pepperoni Pizza", "3"]]
    assert float(order_rows(db, order_id)[0][2]) == pytest.approx(3 * 11.99)


def test_total_is_sum_of_price_times_quantity(orders, alice, db, feed):
    feed("1", "Cheese Pizza", "1", "Garlic Knots", "3", "soda", "2", "done")
    order_id = orders.place_order(alice)
    expected = 9.99 + 3 * 4.99 + 2 * 1.99
    assert float(order_rows(db, order_id)[0][2]) == pytest.approx(expected)
    assert line_rows(db, order_id) == [["Cheese Pizza", "1"], ["Garlic Knots", "3"], ["Soda", "2"]]


def test_unknown_item_reprompts(orders, alice, db, feed, capsys):
    feed("1", "Calzone Supreme", "1", "Cheese Pizza", "1", "done")
    order_id = orders.place_order(alice)
    assert "invalid item name" in capsys.readouterr().out
    assert line_rows(db, order_id) == [["Cheese Pizza", "1"]]


def test_bad_quantity_reprompts(orders, alice, db, feed):
    feed("x", "1", "Cheese Pizza", "two", "0", "2", "done")
    order_id = orders.place_order(alice)
    assert line_rows(db, order_id) == [["Cheese Pizza", "2"]]


def test_no_items_cancels_order(orders, alice, db, feed, capsys):
    feed("1", "done")
    assert orders.place_order(alice) is None
    assert "order canceled" in capsys.readouterr().out
    assert db.execute_query("SELECT * FROM FoodOrder;") == 0


def test_unknown_store_leaves_nothing_behind(orders, alice, db, feed, capsys):
    feed("999", "Cheese Pizza", "1", "done")
    assert orders.place_order(alice) is None
    assert "database error" in capsys.readouterr().out
    assert db.execute_query("SELECT * FROM FoodOrder;") == 0


def test_vanished_item_rolls_back_header(orders, alice, db):
    cart = Cart()
    cart.add("Cheese Pizza", 1, "9.99")
    cart.add("Discontinued Pizza", 1, "8.00")
    with pytest.raises(ItemNotFoundError):
        orders.submit_order(alice, 1, cart)
    assert db.execute_query("SELECT * FROM FoodOrder;") == 0
    assert db.execute_query("SELECT * FROM ItemsInOrder;") == 0


def test_vanished_item_is_reported(orders, alice, db, feed, monkeypatch, capsys):
    monkeypatch.setattr(orders, "canonical_item_name", lambda name: None)
    feed("1", "Cheese Pizza", "1", "done")
    assert orders.place_order(alice) is None
    assert "no longer on the menu" in capsys.readouterr().out
    assert db.execute_query("SELECT * FROM FoodOrder;") == 0


def test_submit_order_returns_sequential_ids(orders, alice):
    cart = Cart()
    cart.add("Soda", 1, "1.99")
    first = orders.submit_order(alice, 1, cart)
    second = orders.submit_order(alice, 2, cart)
    assert second == first + 1


def place(orders, session, store_id=1, item="Soda", quantity=1, price="1.99"):
    cart = Cart()
    cart.add(item, quantity, price)
    return orders.submit_order(session, store_id, cart)


def test_customer_sees_only_own_orders(orders, alice, bob, capsys):
    place(orders, alice)
    place(orders, bob)
    place(orders, alice)
    capsys.readouterr()
    assert orders.view_all_orders(alice) == 2
    out = capsys.readouterr().out
    assert "orderID\tstoreID\ttotalPrice\torderStatus" in out


def test_staff_see_every_order(orders, alice, bob, driver, manager, capsys):
    place(orders, alice)
    place(orders, bob)
    assert orders.view_all_orders(driver) == 2
    assert orders.view_all_orders(manager) == 2
    assert "orderID\tlogin\tstoreID" in capsys.readouterr().out


def test_recent_orders_are_limited_and_newest_first(orders, alice, capsys):
    ids = [place(orders, alice) for _ in range(RECENT_ORDER_LIMIT + 2)]
    capsys.readouterr()
    assert orders.view_recent_orders(alice) == RECENT_ORDER_LIMIT
    lines = capsys.readouterr().out.splitlines()
    shown = [int(line.split("\t")[0]) for line in lines if line[:1].isdigit()]
    assert shown == sorted(ids, reverse=True)[:RECENT_ORDER_LIMIT]


def test_no_orders_message(orders, alice, capsys):
    assert orders.view_all_orders(alice) == 0
    assert "no orders found" in capsys.readouterr().out


def test_owner_views_order_details(orders, alice, capsys):
    order_id = place(orders, alice, item="Cheese Pizza", quantity=2, price="9.99")
    capsys.readouterr()
    assert orders.view_order_info(alice, order_id)
    out = capsys.readouterr().out
    assert "Order Received" in out
    assert "$19.98" in out
    assert "Cheese Pizza" in out


def test_customer_denied_other_customers_order(orders, alice, bob, capsys):
    order_id = place(orders, alice)
    capsys.readouterr()
    assert not orders.view_order_info(bob, order_id)
    assert "permission denied" in capsys.readouterr().out


def test_staff_view_any_order(orders, alice, driver, manager):
    order_id = place(orders, alice)
    assert orders.view_order_info(driver, order_id)
    assert orders.view_order_info(manager, order_id)


def test_missing_order_detail(orders, alice, capsys):
    assert not orders.view_order_info(alice, 4242)
    assert "order not found" in capsys.readouterr().out


def test_order_detail_prompts_for_id(orders, alice, feed):
    order_id = place(orders, alice)
    feed("abc", str(order_id))
    assert orders.view_order_info(alice)


def test_customer_cannot_update_status(orders, alice, db, capsys):
    order_id = place(orders, alice)
    assert not orders.update_order_status(alice, order_id, OrderStatus.DELIVERED)
    assert "permission denied" in capsys.readouterr().out
    assert order_rows(db, order_id)[0][3] == "Order Received"


def test_driver_updates_status(orders, alice, driver, db):
    order_id = place(orders, alice)
    assert orders.update_order_status(driver, order_id, OrderStatus.OUT_FOR_DELIVERY)
    assert order_rows(db, order_id)[0][3] == "Out for Delivery"


def test_status_may_move_backwards(orders, alice, manager, db):
    order_id = place(orders, alice)
    orders.update_order_status(manager, order_id, OrderStatus.DELIVERED)
    assert orders.update_order_status(manager, order_id, OrderStatus.PREPARING)
    assert order_rows(db, order_id)[0][3] == "Preparing"


def test_interactive_status_update(orders, alice, manager, db, feed):
    order_id = place(orders, alice)
    feed(str(order_id), "4")
    assert orders.update_order_status(manager)
    assert order_rows(db, order_id)[0][3] == "Delivered"


def test_invalid_status_choice(orders, alice, manager, db, feed, capsys):
    order_id = place(orders, alice)
    feed(str(order_id), "7")
    assert not orders.update_order_status(manager)
    assert "invalid status choice" in capsys.readouterr().out
    assert order_rows(db, order_id)[0][3] == "Order Received"


def test_status_update_for_missing_order(orders, manager, capsys):
    assert not orders.update_order_status(manager, 555, OrderStatus.DELIVERED)
    assert "order not found" in capsys.readouterr().out


def test_overflowing_order_id_is_reported(orders, alice, capsys):
    assert orders.view_order_info(alice, 10**20) is None
    assert "database error" in capsys.readouterr().out


def test_quantity_above_limit_is_reprompted(orders, alice, db, feed, capsys):
    feed("1", "Cheese Pizza", str(MAX_ITEM_QUANTITY + 1), "3", "done")
    order_id = orders.place_order(alice)
    assert "please enter a whole number" in capsys.readouterr().out
    assert line_rows(db, order_id) == [["Cheese Pizza", "3"]]
