from decimal import Decimal

import pytest

from chalicelib.billing import get_bill
from chalicelib.constants.constants import ORDER_PREPARING, PAYMENT_SUCCESS
from chalicelib.coupons import Coupon, apply_coupon, get_coupon_by_code
from chalicelib.menu_items import MenuItem
from chalicelib.orders import Order
from chalicelib.payments import Payment, get_order_payments, validate_payment, get_payment_by_order_id
from chalicelib.utils import exceptions
from tests.utils.records import place_order


@pytest.fixture
def coupon_10(gen_table):
    return Coupon.create({'code': 'SAVE10', 'discount': 10, 'description': 'ten percent off'})


@pytest.fixture
def order_250(customer, restaurant, item_a, item_b):
    return place_order(customer, restaurant, (item_a, 2), (item_b, 1))


def test_checkout_scenario(order_250, coupon_10):
    assert order_250.total_amount == Decimal('250.00')

    order = apply_coupon(order_250.id_, 'SAVE10')
    assert order.total_amount == Decimal('225.00')
    assert order.coupon_code == 'SAVE10'

    bill = get_bill(order.id_)
    assert bill['subtotal'] == Decimal('250.00')
    assert bill['discount'] == Decimal('25.00')
    assert bill['tax'] == Decimal('11.25')
    assert bill['cgst'] == Decimal('5.63')
    assert bill['sgst'] == Decimal('5.63')
    assert bill['total'] == Decimal('236.25')

    with pytest.raises(exceptions.InvalidArgument):
        Payment.record(order.id_, Decimal('230'), 'CARD')
    assert get_order_payments(order.id_) == []

    payment = Payment.record(order.id_, Decimal('236.25'), 'CARD')
    assert payment.status == PAYMENT_SUCCESS
    assert payment.amount == Decimal('236.25')
    assert validate_payment(order.id_, Decimal('236.25')) is True
    assert validate_payment(order.id_, Decimal('230')) is False


def test_bill_without_coupon(order_250):
    bill = get_bill(order_250.id_)

    assert bill['discount'] == Decimal('0.00')
    assert bill['tax'] == Decimal('12.50')
    assert bill['total'] == Decimal('262.50')


def test_bill_survives_deleted_coupon(order_250, coupon_10):
    apply_coupon(order_250.id_, 'SAVE10')
    coupon_10._delete_db_record()

    bill = get_bill(order_250.id_)
    assert bill['discount'] == Decimal('25.00')
    assert bill['total'] == Decimal('236.25')


def test_coupon_applies_once(order_250, coupon_10):
    Coupon.create({'code': 'SAVE20', 'discount': 20})
    apply_coupon(order_250.id_, 'SAVE10')

    with pytest.raises(exceptions.InvalidState):
        apply_coupon(order_250.id_, 'SAVE10')
    with pytest.raises(exceptions.InvalidState):
        apply_coupon(order_250.id_, 'SAVE20')
    assert Order.init_by_id(order_250.id_).total_amount == Decimal('225.00')


def test_coupon_rules(order_250, coupon_10):
    with pytest.raises(exceptions.NotFound):
        apply_coupon(order_250.id_, 'NOPE')

    Coupon.create({'code': 'OFF', 'discount': 15, 'active': False})
    with pytest.raises(exceptions.InvalidArgument):
        apply_coupon(order_250.id_, 'OFF')

    order_250.update_status(ORDER_PREPARING)
    with pytest.raises(exceptions.InvalidState):
        apply_coupon(order_250.id_, 'SAVE10')
    assert Order.init_by_id(order_250.id_).coupon_code is None


def test_coupon_discount_is_capped(gen_table):
    coupon = Coupon.create({'code': 'ALL', 'discount': 150})

    assert coupon.discount_of(Decimal('80')) == Decimal('80.00')
    assert coupon.discount_of(Decimal('0')) == Decimal('0.00')


def test_coupon_create_and_update(coupon_10):
    with pytest.raises(exceptions.InvalidArgument):
        Coupon.create({'code': 'SAVE10', 'discount': 5})
    with pytest.raises(exceptions.InvalidArgument):
        Coupon.create({'code': 'ZERO', 'discount': 0})

    Coupon.init_by_code('SAVE10').update({'discount': 12, 'active': False})
    coupon = get_coupon_by_code('SAVE10')
    assert coupon.discount == Decimal('12')
    assert coupon.active is False


def test_payment_rules(order_250):
    total = get_bill(order_250.id_)['total']

    with pytest.raises(exceptions.NotFound):
        Payment.record('missing-order', total, 'CARD')
    with pytest.raises(exceptions.InvalidArgument):
        Payment.record(order_250.id_, Decimal('-1'), 'CARD')
    with pytest.raises(exceptions.InvalidArgument):
        Payment.record(order_250.id_, total, ' ')
    with pytest.raises(exceptions.NotFound):
        get_payment_by_order_id(order_250.id_)

    Payment.record(order_250.id_, total + Decimal('0.01'), 'UPI')
    with pytest.raises(exceptions.InvalidState):
        Payment.record(order_250.id_, total, 'CARD')
    assert len(get_order_payments(order_250.id_)) == 1
    assert get_payment_by_order_id(order_250.id_).payment_method == 'UPI'


def test_bill_ignores_later_coupon_edits(order_250, coupon_10):
    apply_coupon(order_250.id_, 'SAVE10')
    Payment.record(order_250.id_, Decimal('236.25'), 'CARD')

    coupon_10.update({'discount': 50})
    bill = get_bill(order_250.id_)
    assert bill['discount'] == Decimal('25.00')
    assert bill['total'] == Decimal('236.25')
    assert validate_payment(order_250.id_, bill['total']) is True

    coupon_10.update({'code': 'SAVE50'})
    assert get_bill(order_250.id_)['total'] == Decimal('236.25')


def test_bill_lines_add_up_after_rounding(customer, restaurant, food_menu, coupon_10):
    item = MenuItem.create(food_menu, {'name': 'Filter Coffee', 'price': Decimal('10.05'), 'veg_or_non_veg': 'VEG'})
    order = apply_coupon(place_order(customer, restaurant, (item, 1)).id_, 'SAVE10')

    bill = get_bill(order.id_)
    assert bill['discount'] == Decimal('1.01')
    assert order.total_amount == Decimal('9.04')
    assert bill['subtotal'] - bill['discount'] == order.total_amount
    assert bill['tax'] == Decimal('0.45')
    assert bill['total'] == Decimal('9.49')
    assert bill['subtotal'] - bill['discount'] + bill['tax'] == bill['total']
