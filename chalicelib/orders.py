from decimal import Decimal
from typing import Tuple, List, Dict
from uuid import uuid4

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.carts import Cart
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ORDER_PLACED, ORDER_STATUSES, ORDER_STATUS_TRANSITIONS, \
    ORDER_CANCELLED, ROLE_ADMIN, ROLE_RESTAURANT_OWNER, ROLE_CUSTOMER
from chalicelib.constants.status_codes import http200, http201
from chalicelib.menu_items import MenuItem
from chalicelib.restaurants import Restaurant
from chalicelib.users import User
from chalicelib.utils import auth as utils_auth, \
    data as utils_data, \
    db as utils_db, \
    app as utils_app, \
    notifications as utils_notifications, \
    exceptions
from chalicelib.utils.logger import logger, log_event


class Order(EntityBase):
    pk = keys_structure.orders_pk
    sk = keys_structure.orders_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'restaurant_id': lambda x: isinstance(x, str),
        'delivery_address': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'items': lambda x: isinstance(x, list) and len(x) > 0,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'status': lambda x: x in ORDER_STATUSES,
        'total_amount': lambda x: isinstance(x, Decimal) and x >= 0,
        "date_updated": lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'coupon_code': lambda x: isinstance(x, str),
        'coupon_discount': lambda x: isinstance(x, Decimal) and x > 0,
        'delivery_boy_id': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.user_id: str = kwargs.get('user_id')
        self.restaurant_id: str = kwargs.get('restaurant_id')
        self.delivery_address: str = kwargs.get('delivery_address')
        self.status: str = kwargs.get('status', ORDER_PLACED)
        self.items: List[Dict] = kwargs.get('items', [])
        self.total_amount: Decimal = utils_data.to_cents(kwargs.get('total_amount')) if \
            kwargs.get('total_amount') is not None else None
        self.coupon_code: str = kwargs.get('coupon_code')
        self.coupon_discount: Decimal = utils_data.to_decimal(kwargs['coupon_discount'], 'coupon_discount') if \
            kwargs.get('coupon_discount') is not None else None
        self.delivery_boy_id: str = kwargs.get('delivery_boy_id')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'order'

    @classmethod
    def init_by_id(cls, order_id):
        c = cls(order_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(f'Order {order_id} not found')
        return c

    @classmethod
    def place(cls, user_id: str, restaurant_id: str, delivery_address: str) -> 'Order':
        """
        Freezes the cart into an order. Order record, order history and cart are separate writes,
        a failure in between leaves the earlier writes in place
        """
        user = User.init_by_id(user_id)
        if not isinstance(delivery_address, str) or not delivery_address.strip():
            raise exceptions.InvalidArgument('delivery_address is mandatory')
        restaurant = Restaurant.init_by_id(restaurant_id)
        try:
            cart = Cart.init_by_user_id(user_id)
        except exceptions.NotFound:
            raise exceptions.InvalidState(f'Cart is empty for user {user_id}')
        if not cart.items:
            raise exceptions.InvalidState(f'Cart is empty for user {user_id}')

        # every line is resolved before any counter moves
        lines = []
        for cart_item in cart.items:
            menu_item = MenuItem.init_get_by_id(cart_item['menu_item_id'])
            if menu_item.restaurant_id != restaurant.id_:
                raise exceptions.InvalidArgument(f'Menu item {menu_item.id_} is not served by restaurant '
                                                 f'{restaurant.id_}')
            lines.append((menu_item, int(cart_item['quantity'])))
        items = [{
            'menu_item_id': menu_item.id_,
            'name': menu_item.name,
            'price': menu_item.price,
            'quantity': quantity
        } for menu_item, quantity in lines]
        for menu_item, quantity in lines:
            menu_item.increment_popularity(quantity)

        order = cls(
            id_=str(uuid4()),
            user_id=user.id_,
            restaurant_id=restaurant.id_,
            delivery_address=delivery_address.strip(),
            status=ORDER_PLACED,
            items=items,
            total_amount=items_subtotal(items)
        )
        order._create_db_record()
        pk, sk = user._get_pk_sk()
        utils_db.append_to_list({'partkey': pk, 'sortkey': sk}, 'order_history', [order.id_])
        cart.clear()
        log_event('order_placed', order_id=order.id_, user_id=user_id, total_amount=order.total_amount)
        return order

    def update_status(self, new_status: str) -> 'Order':
        if new_status not in ORDER_STATUSES:
            raise exceptions.InvalidArgument(f'Unknown order status {new_status}, expected one of {ORDER_STATUSES}')
        if new_status not in ORDER_STATUS_TRANSITIONS[self.status]:
            raise exceptions.InvalidState(f'Order {self.id_} can not move from {self.status} to {new_status}')
        old_status = self.status
        self.status = new_status
        self._update_db_record()
        log_event('order_status_changed', order_id=self.id_, old_status=old_status, new_status=new_status)
        utils_notifications.publish_order_status(self.id_, new_status)
        return self

    def cancel(self) -> 'Order':
        return self.update_status(ORDER_CANCELLED)

    def subtotal(self) -> Decimal:
        return items_subtotal(self.items)

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(order_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'restaurant_id': self.restaurant_id,
            'delivery_address': self.delivery_address,
            'status': self.status,
            'items': self.items,
            'total_amount': self.total_amount,
            'coupon_code': self.coupon_code,
            'coupon_discount': self.coupon_discount,
            'delivery_boy_id': self.delivery_boy_id,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }


def items_subtotal(items: List[Dict]) -> Decimal:
    subtotal = sum((Decimal(item['price']) * int(item['quantity']) for item in items), Decimal('0'))
    return utils_data.to_cents(subtotal)


def get_orders(filter_expression=None) -> List[Order]:
    records = utils_db.query_items_paged(
        key_condition_expression=Key('partkey').eq(Order.pk),
        filter_expression=filter_expression
    )
    orders = [Order(**record) for record in records]
    orders.sort(key=lambda order: order.date_created)
    return orders


def get_user_orders(user_id, restaurant_id=None) -> List[Order]:
    if restaurant_id:
        filter_expression = Attr('user_id').eq(user_id) & Attr('restaurant_id').eq(restaurant_id)
    else:
        filter_expression = Attr('user_id').eq(user_id)
    return get_orders(filter_expression)


def get_restaurant_orders(restaurant_id) -> List[Order]:
    return get_orders(Attr('restaurant_id').eq(restaurant_id))


def require_order_access(auth_result: Dict, order: Order):
    """
    Order owner, owner of the order's restaurant, assigned delivery worker or admin
    """
    if auth_result['role'] == ROLE_ADMIN or auth_result['user_id'] in (order.user_id, order.delivery_boy_id):
        return
    if auth_result['role'] == ROLE_RESTAURANT_OWNER:
        try:
            if Restaurant.init_by_id(order.restaurant_id).owner_id == auth_result['user_id']:
                return
        except exceptions.NotFound:
            logger.info(f'require_order_access ::: restaurant {order.restaurant_id} of order {order.id_} is gone')
    raise exceptions.AccessDenied(f"User {auth_result['user_id']} can't access order {order.id_}")


def require_restaurant_manager(auth_result: Dict, order: Order):
    utils_auth.require_role(auth_result, ROLE_ADMIN, ROLE_RESTAURANT_OWNER)
    if auth_result['role'] == ROLE_RESTAURANT_OWNER:
        utils_auth.require_owner_or_admin(auth_result, Restaurant.init_by_id(order.restaurant_id).owner_id)


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_place_order(request):
    qp = request.query_params or {}
    user_id = utils_data.require_param(qp, 'userId')
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    body = utils_data.parse_raw_body(request)
    order = Order.place(user_id, utils_data.require_param(qp, 'restaurantId'), body.get('delivery_address'))
    return Response(status_code=http201, body=order.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_user_orders(request):
    qp = request.query_params or {}
    user_id = utils_data.require_param(qp, 'userId')
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    orders = get_user_orders(user_id, qp.get('restaurantId'))
    return Response(status_code=http200, body=[order.to_ui() for order in orders])


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_restaurant_orders(request, restaurant_id):
    """
    Customers see their own orders at the restaurant, owners and admins see all of them
    """
    auth_result = request.auth_result
    if auth_result['role'] == ROLE_CUSTOMER:
        orders = get_user_orders(auth_result['user_id'], restaurant_id)
    else:
        utils_auth.require_role(auth_result, ROLE_ADMIN, ROLE_RESTAURANT_OWNER)
        utils_auth.require_owner_or_admin(auth_result, Restaurant.init_by_id(restaurant_id).owner_id)
        orders = get_restaurant_orders(restaurant_id)
    return Response(status_code=http200, body=[order.to_ui() for order in orders])


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_all_orders(request):
    utils_auth.require_role(request.auth_result, ROLE_ADMIN)
    return Response(status_code=http200, body=[order.to_ui() for order in get_orders()])


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_order(request, order_id):
    order = Order.init_by_id(order_id)
    require_order_access(request.auth_result, order)
    return Response(status_code=http200, body=order.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_order_status(request, order_id):
    order = Order.init_by_id(order_id)
    require_order_access(request.auth_result, order)
    return Response(status_code=http200, body={'id': order.id_, 'status': order.status})


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_update_order_status(request, order_id):
    status = utils_data.require_param(request.query_params, 'status')
    order = Order.init_by_id(order_id)
    require_restaurant_manager(request.auth_result, order)
    return Response(status_code=http200, body=order.update_status(status).to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_cancel_order(request, order_id):
    order = Order.init_by_id(order_id)
    utils_auth.require_self_or_admin(request.auth_result, order.user_id)
    return Response(status_code=http200, body=order.cancel().to_ui())
