from decimal import Decimal
from typing import Dict

from chalice import Response

from chalicelib.constants.constants import TAX_RATE, CGST_RATE, SGST_RATE
from chalicelib.constants.status_codes import http200
from chalicelib.coupons import percentage_discount
from chalicelib.orders import Order, require_order_access
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data
from chalicelib.utils.logger import logger


def order_discount(order: Order, subtotal: Decimal) -> Decimal:
    """
    Uses the percentage frozen on the order when the coupon was applied, later coupon edits
    and deletes do not change the bill. Orders without it fall back to the amount taken off the total
    """
    if not order.coupon_code:
        return Decimal('0')
    if order.coupon_discount is None:
        logger.info(f'order_discount ::: order {order.id_} has no frozen coupon percentage, '
                    f'deriving discount from total_amount')
        return max(subtotal - order.total_amount, Decimal('0'))
    return percentage_discount(order.coupon_discount, subtotal)


def get_bill(order_id: str) -> Dict:
    """
    Bill of an order, computed on every call and never persisted.
    Each line is rounded to cents first, the total is the sum of the rounded lines
    """
    order = Order.init_by_id(order_id)
    subtotal = order.subtotal()
    discount = utils_data.to_cents(order_discount(order, subtotal))
    taxable = subtotal - discount
    tax = utils_data.to_cents(taxable * TAX_RATE)
    return {
        'order_id': order.id_,
        'subtotal': subtotal,
        'discount': discount,
        'tax': tax,
        'cgst': utils_data.to_cents(taxable * CGST_RATE),
        'sgst': utils_data.to_cents(taxable * SGST_RATE),
        'total': taxable + tax
    }


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_bill(request, order_id):
    require_order_access(request.auth_result, Order.init_by_id(order_id))
    return Response(status_code=http200, body=get_bill(order_id))
