from decimal import Decimal

import pytest

from chalicelib.carts import Cart
from chalicelib.menu_items import MenuItem
from chalicelib.utils import exceptions


def test_get_missing_cart(customer):
    with pytest.raises(exceptions.NotFound):
        Cart.init_by_user_id(customer.id_)


def test_add_item_to_cart(customer, item_a, item_b):
    Cart.add_item(customer.id_, item_a.id_, 2)
    cart = Cart.add_item(customer.id_, item_b.id_, 1)

    stored = Cart.init_by_user_id(customer.id_)
    assert [(item['menu_item_id'], item['quantity']) for item in stored.items] == [(item_a.id_, 2), (item_b.id_, 1)]
    assert stored.total() == Decimal('250.00')
    assert cart.to_ui()['total'] == Decimal('250.00')
    assert cart.to_ui()['id'] == customer.id_


def test_add_same_item_twice(customer, item_a):
    Cart.add_item(customer.id_, item_a.id_, 1)
    MenuItem.init_get_by_id(item_a.id_).update({'price': 110})
    Cart.add_item(customer.id_, item_a.id_, 2)

    items = Cart.init_by_user_id(customer.id_).items
    assert len(items) == 1
    assert items[0]['quantity'] == 3
    assert items[0]['price'] == Decimal('110.00')


def test_add_item_validation(customer, item_a):
    with pytest.raises(exceptions.InvalidArgument):
        Cart.add_item(customer.id_, item_a.id_, 0)
    with pytest.raises(exceptions.NotFound):
        Cart.add_item(customer.id_, 'missing-item', 1)


def test_remove_item_and_clear(customer, item_a, item_b):
    Cart.add_item(customer.id_, item_a.id_, 1)
    Cart.add_item(customer.id_, item_b.id_, 1)

    cart = Cart.init_by_user_id(customer.id_).remove_item(item_a.id_)
    assert [item['menu_item_id'] for item in Cart.init_by_user_id(customer.id_).items] == [item_b.id_]
    with pytest.raises(exceptions.NotFound):
        cart.remove_item(item_a.id_)

    cart.clear()
    assert Cart.init_by_user_id(customer.id_).items == []
