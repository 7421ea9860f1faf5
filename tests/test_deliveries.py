import pytest

from chalicelib.constants.constants import ORDER_DISPATCHED, ORDER_DELIVERED, ORDER_PREPARING, DELIVERY_ASSIGNED, \
    DELIVERY_DELIVERED
from chalicelib.deliveries import Delivery, assign_delivery, get_worker_deliveries, get_order_delivery
from chalicelib.orders import Order
from chalicelib.utils import exceptions
from tests.utils.records import place_order


@pytest.fixture
def order(customer, restaurant, item_a):
    return place_order(customer, restaurant, (item_a, 1))


def test_assign_delivery(order, worker):
    assigned = assign_delivery(order.id_, worker.id_)

    assert assigned.status == ORDER_DISPATCHED
    stored = Order.init_by_id(order.id_)
    assert stored.status == ORDER_DISPATCHED
    assert stored.delivery_boy_id == worker.id_

    delivery = get_order_delivery(order.id_)
    assert delivery.status == DELIVERY_ASSIGNED
    assert delivery.delivery_boy_id == worker.id_


def test_assign_from_preparing(order, worker):
    order.update_status(ORDER_PREPARING)

    assert assign_delivery(order.id_, worker.id_).status == ORDER_DISPATCHED


def test_assign_to_non_worker_is_rejected(order, customer, owner, worker):
    with pytest.raises(exceptions.InvalidArgument):
        assign_delivery(order.id_, customer.id_)

    order.cancel()
    with pytest.raises(exceptions.InvalidArgument):
        assign_delivery(order.id_, owner.id_)
    with pytest.raises(exceptions.InvalidState):
        assign_delivery(order.id_, worker.id_)
    with pytest.raises(exceptions.NotFound):
        assign_delivery(order.id_, 'missing-user')


def test_dispatched_order_is_assigned_once(order, worker):
    assign_delivery(order.id_, worker.id_)

    with pytest.raises(exceptions.InvalidState):
        assign_delivery(order.id_, worker.id_)
    assert len(get_worker_deliveries(worker.id_)) == 1


def test_assign_unknown_order(worker):
    with pytest.raises(exceptions.NotFound):
        assign_delivery('missing-order', worker.id_)


def test_delivery_lifecycle(order, worker):
    assign_delivery(order.id_, worker.id_)
    delivery = get_order_delivery(order.id_)

    with pytest.raises(exceptions.InvalidState):
        delivery.leave_feedback('cold food', 2)

    delivery.mark_delivered()
    assert Order.init_by_id(order.id_).status == ORDER_DELIVERED
    stored = Delivery.init_by_id(delivery.id_)
    assert stored.status == DELIVERY_DELIVERED
    assert stored.delivery_time is not None

    with pytest.raises(exceptions.InvalidState):
        stored.mark_delivered()
    with pytest.raises(exceptions.InvalidArgument):
        stored.leave_feedback('great', 6)

    stored.leave_feedback('hot and quick', 5)
    assert Delivery.init_by_id(delivery.id_).rating == 5


def test_worker_deliveries_embed_orders(order, worker):
    assign_delivery(order.id_, worker.id_)

    deliveries = get_worker_deliveries(worker.id_)
    assert len(deliveries) == 1
    assert deliveries[0]['order']['id'] == order.id_
    assert deliveries[0]['order']['status'] == ORDER_DISPATCHED
    assert get_worker_deliveries('nobody') == []


def test_add_delivery(order):
    with pytest.raises(exceptions.InvalidArgument):
        Delivery.add({})
    with pytest.raises(exceptions.NotFound):
        Delivery.add({'order_id': 'missing-order'})

    delivery = Delivery.add({'order_id': order.id_})
    assert Delivery.init_by_id(delivery.id_).order_id == order.id_
