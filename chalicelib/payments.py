from decimal import Decimal
from typing import Tuple, List
from uuid import uuid4

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.billing import get_bill
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import PAYMENT_SUCCESS, PAYMENT_TOLERANCE
from chalicelib.constants.status_codes import http200, http201
from chalicelib.orders import Order, require_order_access
from chalicelib.utils import auth as utils_auth, data as utils_data, db as utils_db, app as utils_app, exceptions
from chalicelib.utils.logger import logger, log_event


class Payment(EntityBase):
    pk = keys_structure.payments_pk
    sk = keys_structure.payments_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'order_id': lambda x: isinstance(x, str),
        'amount': lambda x: isinstance(x, Decimal) and x > 0,
        'payment_method': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'status': lambda x: x == PAYMENT_SUCCESS,
        'date_created': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.order_id: str = kwargs.get('order_id')
        self.amount: Decimal = utils_data.to_cents(kwargs['amount']) if \
            kwargs.get('amount') is not None else None
        self.payment_method: str = kwargs.get('payment_method')
        self.status: str = kwargs.get('status', PAYMENT_SUCCESS)
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.record_type = 'payment'

    @classmethod
    def init_by_id(cls, payment_id):
        c = cls(payment_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(f'Payment {payment_id} not found')
        return c

    @classmethod
    def record(cls, order_id: str, amount: Decimal, payment_method: str) -> 'Payment':
        """
        The amount must match the bill total within a cent, one successful payment per order
        """
        bill = get_bill(order_id)
        if amount <= 0:
            raise exceptions.InvalidArgument(f'Payment amount must be positive, got {amount}')
        if abs(amount - bill['total']) > PAYMENT_TOLERANCE:
            raise exceptions.InvalidArgument(f'Payment amount {amount} does not match bill total {bill["total"]}')
        if not isinstance(payment_method, str) or not payment_method.strip():
            raise exceptions.InvalidArgument('paymentMethod is mandatory')
        if get_order_payments(order_id, status=PAYMENT_SUCCESS):
            raise exceptions.InvalidState(f'Order {order_id} is already paid')
        payment = cls(id_=str(uuid4()), order_id=order_id, amount=amount, payment_method=payment_method.strip(),
                      status=PAYMENT_SUCCESS)
        payment._create_db_record()
        log_event('payment_recorded', payment_id=payment.id_, order_id=order_id, amount=payment.amount)
        return payment

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(payment_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'order_id': self.order_id,
            'amount': self.amount,
            'payment_method': self.payment_method,
            'status': self.status,
            'date_created': self.date_created
        }


def get_order_payments(order_id: str, status: str = None) -> List[Payment]:
    filter_expression = Attr('order_id').eq(order_id)
    if status:
        filter_expression = filter_expression & Attr('status').eq(status)
    records = utils_db.query_items_paged(Key('partkey').eq(Payment.pk), filter_expression=filter_expression)
    payments = [Payment(**record) for record in records]
    payments.sort(key=lambda payment: payment.date_created)
    return payments


def get_payment_by_order_id(order_id: str) -> Payment:
    payments = get_order_payments(order_id)
    if not payments:
        raise exceptions.NotFound(f'Payment not found for order {order_id}')
    successful = [payment for payment in payments if payment.status == PAYMENT_SUCCESS]
    return (successful or payments)[-1]


def validate_payment(order_id: str, claimed_amount: Decimal) -> bool:
    payment = get_payment_by_order_id(order_id)
    valid = payment.status == PAYMENT_SUCCESS and abs(payment.amount - claimed_amount) <= PAYMENT_TOLERANCE
    logger.info(f'validate_payment ::: {order_id=}, {claimed_amount=}, stored={payment.amount}, {valid=}')
    return valid


def _amount(qp) -> Decimal:
    return utils_data.to_decimal(utils_data.require_param(qp, 'amount'), 'amount')


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_record_payment(request):
    qp = request.query_params or {}
    order = Order.init_by_id(utils_data.require_param(qp, 'orderId'))
    utils_auth.require_self_or_admin(request.auth_result, order.user_id)
    payment = Payment.record(order.id_, _amount(qp), qp.get('paymentMethod'))
    return Response(status_code=http201, body=payment.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_validate_payment(request):
    qp = request.query_params or {}
    order = Order.init_by_id(utils_data.require_param(qp, 'orderId'))
    utils_auth.require_self_or_admin(request.auth_result, order.user_id)
    return Response(status_code=http200, body={'order_id': order.id_, 'valid': validate_payment(order.id_, _amount(qp))})


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_payment(request, payment_id):
    payment = Payment.init_by_id(payment_id)
    require_order_access(request.auth_result, Order.init_by_id(payment.order_id))
    return Response(status_code=http200, body=payment.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_order_payment(request, order_id):
    require_order_access(request.auth_result, Order.init_by_id(order_id))
    return Response(status_code=http200, body=get_payment_by_order_id(order_id).to_ui())
