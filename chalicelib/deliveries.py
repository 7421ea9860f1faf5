from typing import Tuple, Dict, List
from uuid import uuid4

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import DELIVERY_ASSIGNED, DELIVERY_DELIVERED, ROLE_ADMIN, \
    ROLE_DELIVERY_WORKER, ORDER_DISPATCHED, ORDER_DELIVERED, ASSIGNABLE_STATUSES
from chalicelib.constants.status_codes import http200, http201
from chalicelib.orders import Order
from chalicelib.utils import auth as utils_auth, \
    data as utils_data, \
    db as utils_db, \
    app as utils_app, \
    notifications as utils_notifications, \
    exceptions
from chalicelib.utils.logger import logger, log_event


class Delivery(EntityBase):
    pk = keys_structure.deliveries_pk
    sk = keys_structure.deliveries_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'order_id': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'status': lambda x: x in (DELIVERY_ASSIGNED, DELIVERY_DELIVERED),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'delivery_boy_id': lambda x: isinstance(x, str),
        'delivery_time': lambda x: isinstance(x, str),
        'feedback': lambda x: isinstance(x, str),
        'rating': lambda x: isinstance(x, int) and 1 <= x <= 5
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.order_id: str = kwargs.get('order_id')
        self.delivery_boy_id: str = kwargs.get('delivery_boy_id')
        self.status: str = kwargs.get('status', DELIVERY_ASSIGNED)
        self.delivery_time: str = kwargs.get('delivery_time')
        self.feedback: str = kwargs.get('feedback')
        self.rating: int = int(kwargs['rating']) if kwargs.get('rating') is not None else None
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'delivery'

    @classmethod
    def init_by_id(cls, delivery_id):
        c = cls(delivery_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(f'Delivery {delivery_id} not found')
        return c

    @classmethod
    def add(cls, body: Dict) -> 'Delivery':
        order_id = body.get('order_id')
        if not isinstance(order_id, str) or not order_id.strip():
            raise exceptions.InvalidArgument('Order ID must not be null or empty')
        Order.init_by_id(order_id)
        delivery = cls(id_=str(uuid4()), order_id=order_id, delivery_boy_id=body.get('delivery_boy_id'),
                       status=body.get('status', DELIVERY_ASSIGNED))
        delivery._create_db_record()
        return delivery

    def mark_delivered(self) -> 'Delivery':
        if self.status != DELIVERY_ASSIGNED:
            raise exceptions.InvalidState(f'Delivery {self.id_} is {self.status}')
        Order.init_by_id(self.order_id).update_status(ORDER_DELIVERED)
        self.status = DELIVERY_DELIVERED
        self.delivery_time = now_iso()
        self._update_db_record()
        log_event('order_delivered', delivery_id=self.id_, order_id=self.order_id)
        return self

    def leave_feedback(self, feedback: str, rating: int) -> 'Delivery':
        if self.status != DELIVERY_DELIVERED:
            raise exceptions.InvalidState(f'Feedback is accepted only for delivered orders, '
                                          f'delivery {self.id_} is {self.status}')
        if not 1 <= rating <= 5:
            raise exceptions.InvalidArgument(f'Rating must be between 1 and 5, got {rating}')
        self.feedback = feedback
        self.rating = rating
        self._update_db_record()
        return self

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(delivery_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'order_id': self.order_id,
            'delivery_boy_id': self.delivery_boy_id,
            'status': self.status,
            'delivery_time': self.delivery_time,
            'feedback': self.feedback,
            'rating': self.rating,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }


def assign_delivery(order_id: str, delivery_boy_id: str) -> Order:
    """
    The assignee role is checked before the order: a non-worker fails whatever the order status is.
    A dispatched order is no longer assignable, so one order gets one Delivery record
    """
    if utils_auth.get_user_role(delivery_boy_id) != ROLE_DELIVERY_WORKER:
        raise exceptions.InvalidArgument(f'User {delivery_boy_id} is not a delivery worker')
    order = Order.init_by_id(order_id)
    if order.status not in ASSIGNABLE_STATUSES:
        raise exceptions.InvalidState(f'Order {order_id} is not in an assignable state, '
                                      f'current status: {order.status}')
    order.delivery_boy_id = delivery_boy_id
    order.status = ORDER_DISPATCHED
    order._update_db_record()
    delivery = Delivery(id_=str(uuid4()), order_id=order_id, delivery_boy_id=delivery_boy_id,
                        status=DELIVERY_ASSIGNED)
    delivery._create_db_record()
    log_event('delivery_assigned', order_id=order_id, delivery_boy_id=delivery_boy_id, delivery_id=delivery.id_)
    utils_notifications.publish_order_status(order_id, ORDER_DISPATCHED)
    return order


def get_worker_deliveries(delivery_boy_id: str) -> List[Dict]:
    """
    Each delivery embeds its order
    """
    if not isinstance(delivery_boy_id, str) or not delivery_boy_id.strip():
        raise exceptions.InvalidArgument('Delivery worker ID must not be null or empty')
    records = utils_db.query_items_paged(
        Key('partkey').eq(Delivery.pk),
        filter_expression=Attr('delivery_boy_id').eq(delivery_boy_id)
    )
    result = []
    for record in sorted(records, key=lambda r: r.get('date_created', '')):
        delivery = Delivery(**record)
        result.append({**delivery.to_ui(), 'order': Order.init_by_id(delivery.order_id).to_ui()})
    logger.info(f'get_worker_deliveries ::: {len(result)} deliveries for {delivery_boy_id}')
    return result


def get_order_delivery(order_id: str) -> Delivery:
    records = utils_db.query_items_paged(
        Key('partkey').eq(Delivery.pk),
        filter_expression=Attr('order_id').eq(order_id)
    )
    if not records:
        raise exceptions.NotFound(f'Delivery not found for order {order_id}')
    return Delivery(**sorted(records, key=lambda r: r.get('date_created', ''))[-1])


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_assign_delivery(request, order_id):
    utils_auth.require_role(request.auth_result, ROLE_ADMIN)
    body = utils_data.parse_raw_body(request)
    delivery_boy_id = utils_data.require_param(body, 'deliveryBoyId')
    return Response(status_code=http200, body=assign_delivery(order_id, delivery_boy_id).to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_add_delivery(request):
    utils_auth.require_role(request.auth_result, ROLE_ADMIN)
    delivery = Delivery.add(utils_data.parse_raw_body(request))
    return Response(status_code=http201, body=delivery.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_delivery(request, delivery_id):
    delivery = Delivery.init_by_id(delivery_id)
    utils_auth.require_owner_or_admin(request.auth_result, delivery.delivery_boy_id)
    return Response(status_code=http200, body=delivery.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_worker_deliveries(request, delivery_boy_id):
    utils_auth.require_self_or_admin(request.auth_result, delivery_boy_id)
    return Response(status_code=http200, body=get_worker_deliveries(delivery_boy_id))


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_mark_delivered(request, delivery_id):
    auth_result = request.auth_result
    utils_auth.require_role(auth_result, ROLE_DELIVERY_WORKER, ROLE_ADMIN)
    delivery = Delivery.init_by_id(delivery_id)
    utils_auth.require_owner_or_admin(auth_result, delivery.delivery_boy_id)
    return Response(status_code=http200, body=delivery.mark_delivered().to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_leave_feedback(request, order_id):
    order = Order.init_by_id(order_id)
    if request.auth_result['user_id'] != order.user_id:
        raise exceptions.AccessDenied('Only the customer of the order can leave feedback')
    body = utils_data.parse_raw_body(request)
    rating = utils_data.to_int(utils_data.require_param(body, 'rating'), 'rating')
    delivery = get_order_delivery(order_id).leave_feedback(body.get('feedback'), rating)
    return Response(status_code=http200, body=delivery.to_ui())
