from decimal import Decimal
from typing import Tuple, Dict, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ORDER_PLACED, ROLE_ADMIN
from chalicelib.constants.status_codes import http200, http201
from chalicelib.orders import Order
from chalicelib.utils import auth as utils_auth, data as utils_data, db as utils_db, app as utils_app, exceptions
from chalicelib.utils.logger import logger, log_event


class Coupon(EntityBase):
    """
    Percentage discount, applied to an order at most once
    """
    pk = keys_structure.coupons_pk
    sk = keys_structure.coupons_sk

    editable_fields = ['code', 'discount', 'active', 'description']

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'code': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'discount': lambda x: isinstance(x, Decimal) and x > 0,
        'active': lambda x: isinstance(x, bool),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.code: str = kwargs.get('code')
        self.discount: Decimal = utils_data.to_decimal(kwargs['discount'], 'discount') if \
            kwargs.get('discount') is not None else None
        self.active: bool = kwargs.get('active', True)
        self.description: str = kwargs.get('description')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'coupon'

    @classmethod
    def init_by_code(cls, code) -> 'Coupon':
        coupon = get_coupon_by_code(code)
        if coupon is None:
            raise exceptions.NotFound(f'Coupon {code} not found')
        return coupon

    @classmethod
    def create(cls, body: Dict) -> 'Coupon':
        fields = {key: body[key] for key in cls.editable_fields if key in body}
        coupon = cls(id_=str(uuid4()), **fields)
        if coupon.discount is None or coupon.discount <= 0:
            raise exceptions.InvalidArgument('discount must be a positive percentage')
        if get_coupon_by_code(coupon.code) is not None:
            raise exceptions.InvalidArgument(f'Coupon {coupon.code} already exists')
        coupon._create_db_record()
        log_event('coupon_created', coupon_id=coupon.id_, code=coupon.code, discount=coupon.discount)
        return coupon

    def update(self, body: Dict) -> 'Coupon':
        fields = {key: body[key] for key in self.editable_fields if key in body}
        new_code = fields.get('code')
        if new_code and new_code != self.code and get_coupon_by_code(new_code) is not None:
            raise exceptions.InvalidArgument(f'Coupon {new_code} already exists')
        self.__init__(**{**self._to_dict(), **fields, 'date_updated': None})
        self._update_db_record()
        return self

    def discount_of(self, amount: Decimal) -> Decimal:
        return percentage_discount(self.discount, amount)

    def apply_to(self, order: Order) -> Order:
        if not self.active:
            raise exceptions.InvalidArgument(f'Coupon {self.code} is not active')
        if order.status != ORDER_PLACED:
            raise exceptions.InvalidState(f'Coupon can be applied only to a {ORDER_PLACED} order, '
                                          f'order {order.id_} is {order.status}')
        if order.coupon_code:
            raise exceptions.InvalidState(f'Order {order.id_} already has coupon {order.coupon_code}')
        old_total = order.total_amount
        order.total_amount = utils_data.to_cents(max(old_total - self.discount_of(old_total), Decimal('0')))
        order.coupon_code = self.code
        order.coupon_discount = self.discount
        order._update_db_record()
        log_event('coupon_applied', order_id=order.id_, code=self.code, old_total=old_total,
                  new_total=order.total_amount)
        return order

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(coupon_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'code': self.code,
            'discount': self.discount,
            'active': self.active,
            'description': self.description,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }


def percentage_discount(percent: Decimal, amount: Decimal) -> Decimal:
    """
    Never more than the amount itself
    """
    return utils_data.to_cents(min(percent / Decimal(100) * amount, amount))


def get_coupon_by_code(code: str) -> Optional[Coupon]:
    records = utils_db.query_items_paged(
        Key('partkey').eq(Coupon.pk),
        filter_expression=Attr('code').eq(code)
    )
    if len(records) > 1:
        logger.warning(f'get_coupon_by_code ::: {len(records)} coupons share the code {code}')
    return Coupon(**records[0]) if records else None


def apply_coupon(order_id: str, code: str) -> Order:
    coupon = Coupon.init_by_code(code)
    order = Order.init_by_id(order_id)
    return coupon.apply_to(order)


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_apply_coupon(request, order_id):
    code = utils_data.require_param(request.query_params, 'couponCode')
    order = Order.init_by_id(order_id)
    utils_auth.require_self_or_admin(request.auth_result, order.user_id)
    return Response(status_code=http200, body=apply_coupon(order_id, code).to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_coupon(request, code):
    return Response(status_code=http200, body=Coupon.init_by_code(code).to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_create_coupon(request):
    utils_auth.require_role(request.auth_result, ROLE_ADMIN)
    coupon = Coupon.create(utils_data.parse_raw_body(request))
    return Response(status_code=http201, body=coupon.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_update_coupon(request, code):
    utils_auth.require_role(request.auth_result, ROLE_ADMIN)
    coupon = Coupon.init_by_code(code).update(utils_data.parse_raw_body(request))
    return Response(status_code=http200, body=coupon.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_delete_coupon(request, code):
    utils_auth.require_role(request.auth_result, ROLE_ADMIN)
    Coupon.init_by_code(code)._delete_db_record()
    return Response(status_code=http200, body={'message': f'Coupon {code} was deleted'})
