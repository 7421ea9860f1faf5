from decimal import Decimal
from typing import Tuple, List, Dict
from uuid import uuid4

from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.status_codes import http200
from chalicelib.menu_items import MenuItem
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, exceptions
from chalicelib.utils.logger import logger


class Cart(EntityBase):
    """
    One cart per user, keyed by the user id
    """
    pk = keys_structure.carts_pk
    sk = keys_structure.carts_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'items': lambda x: isinstance(x, list),
        'date_updated': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.user_id: str = id_
        self.items: List[Dict] = kwargs.get('items', [])
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type: str = 'cart'

    @classmethod
    def init_by_user_id(cls, user_id):
        c = cls(user_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(f'Cart not found for user {user_id}')
        return c

    @classmethod
    def init_or_new(cls, user_id):
        try:
            return cls.init_by_user_id(user_id)
        except exceptions.NotFound:
            return cls(user_id)

    @classmethod
    def add_item(cls, user_id: str, menu_item_id: str, quantity: int) -> 'Cart':
        """
        Adding an item which is already in the cart increases its quantity,
        the price snapshot is refreshed with the current menu price
        """
        if quantity <= 0:
            raise exceptions.InvalidArgument(f'Quantity must be positive, got {quantity}')
        menu_item = MenuItem.init_get_by_id(menu_item_id)
        cart = cls.init_or_new(user_id)
        existing = next((item for item in cart.items if item['menu_item_id'] == menu_item_id), None)
        if existing is not None:
            existing['quantity'] = int(existing['quantity']) + quantity
            existing['price'] = menu_item.price
            logger.debug(f'add_item ::: {menu_item_id=} new quantity={existing["quantity"]}')
        else:
            cart.items.append({
                'id': str(uuid4()),
                'menu_item_id': menu_item_id,
                'quantity': quantity,
                'price': menu_item.price
            })
        cart.date_updated = now_iso()
        cart._save()
        return cart

    def remove_item(self, menu_item_id: str) -> 'Cart':
        items = [item for item in self.items if item['menu_item_id'] != menu_item_id]
        if len(items) == len(self.items):
            raise exceptions.NotFound(f'Menu item {menu_item_id} is not in the cart')
        self.items = items
        self._save()
        return self

    def clear(self) -> 'Cart':
        self.items = []
        self._save()
        logger.info(f"clear ::: cart of user {self.user_id} was cleared")
        return self

    def total(self) -> Decimal:
        return sum((Decimal(item['price']) * int(item['quantity']) for item in self.items), Decimal('0'))

    def _save(self):
        # put, not update: the cart may not exist yet
        self._create_db_record()

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(user_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'items': self.items,
            'date_updated': self.date_updated
        }

    def _to_ui(self):
        item = super()._to_ui()
        item['total'] = self.total()
        return item


def _cart_user_id(request) -> str:
    user_id = utils_data.require_param(request.query_params, 'userId')
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    return user_id


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_update_cart(request):
    user_id = _cart_user_id(request)
    qp = request.query_params
    cart = Cart.add_item(
        user_id,
        utils_data.require_param(qp, 'menuItemId'),
        utils_data.to_int(utils_data.require_param(qp, 'quantity'), 'quantity')
    )
    return Response(status_code=http200, body=cart.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_cart(request):
    cart = Cart.init_by_user_id(_cart_user_id(request))
    return Response(status_code=http200, body=cart.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_clear_cart(request):
    Cart.init_by_user_id(_cart_user_id(request)).clear()
    return Response(status_code=http200, body={'message': 'Cart was successfully cleared'})


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_remove_item_from_cart(request, menu_item_id):
    cart = Cart.init_by_user_id(_cart_user_id(request)).remove_item(menu_item_id)
    return Response(status_code=http200, body=cart.to_ui())
