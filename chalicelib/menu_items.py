from decimal import Decimal
from typing import List, Dict, Tuple
from uuid import uuid4

from boto3.dynamodb.conditions import Attr, Key
from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import VEG, NON_VEG, ROLE_ADMIN, ROLE_RESTAURANT_OWNER
from chalicelib.constants.status_codes import http200, http201
from chalicelib.food_menus import FoodMenu
from chalicelib.utils import auth as utils_auth, data as utils_data, exceptions, db as utils_db, app as utils_app
from chalicelib.utils.logger import logger


class MenuItem(EntityBase):
    pk = keys_structure.menu_items_pk
    sk = keys_structure.menu_items_sk

    editable_fields = ['name', 'description', 'price', 'cuisine_type', 'meal_type', 'veg_or_non_veg',
                       'rating', 'reviews']

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'food_menu_id': lambda x: isinstance(x, str),
        'restaurant_id': lambda x: isinstance(x, str),
        "date_created": lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'price': lambda x: isinstance(x, Decimal) and x > 0,
        'veg_or_non_veg': lambda x: x in (VEG, NON_VEG),
        "date_updated": lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'cuisine_type': lambda x: isinstance(x, str),
        'meal_type': lambda x: isinstance(x, str),
        'rating': lambda x: isinstance(x, Decimal) and 0 <= x <= 5,
        'reviews': lambda x: isinstance(x, list)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.food_menu_id: str = kwargs.get('food_menu_id')
        self.restaurant_id: str = kwargs.get('restaurant_id')
        self.name: str = kwargs.get('name')
        self.description: str = kwargs.get('description')
        self.price: Decimal = utils_data.to_cents(utils_data.to_decimal(kwargs['price'], 'price')) if \
            kwargs.get('price') is not None else None
        self.cuisine_type: str = kwargs.get('cuisine_type')
        self.meal_type: str = kwargs.get('meal_type')
        self.veg_or_non_veg: str = kwargs.get('veg_or_non_veg')
        self.number_of_times_ordered: int = int(kwargs.get('number_of_times_ordered', 0))
        self.rating: Decimal = utils_data.to_decimal(kwargs['rating'], 'rating') if \
            kwargs.get('rating') is not None else None
        self.reviews: list = kwargs.get('reviews', [])
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'menu_item'

    @classmethod
    def init_get_by_id(cls, menu_item_id):
        logger.info("init_get_by_id ::: started")
        c = cls(menu_item_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(f'Menu item {menu_item_id} not found')
        return c

    @classmethod
    def create(cls, food_menu: FoodMenu, body: Dict) -> 'MenuItem':
        fields = {key: body[key] for key in cls.editable_fields if key in body}
        menu_item = cls(id_=str(uuid4()), food_menu_id=food_menu.id_, restaurant_id=food_menu.restaurant_id,
                        **fields)
        menu_item._create_db_record()
        return menu_item

    def update(self, body: Dict) -> 'MenuItem':
        fields = {key: body[key] for key in self.editable_fields if key in body}
        self.__init__(**{**self._to_dict(), **fields, 'date_updated': None})
        self._update_db_record()
        return self

    def increment_popularity(self, quantity: int) -> None:
        """
        Atomic counter, concurrent orders never lose an increment
        """
        pk, sk = self._get_pk_sk()
        response = utils_db.increment_counter({'partkey': pk, 'sortkey': sk}, 'number_of_times_ordered', quantity)
        self.number_of_times_ordered = int(response['Attributes']['number_of_times_ordered'])

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(menu_item_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'food_menu_id': self.food_menu_id,
            'restaurant_id': self.restaurant_id,
            'name': self.name,
            'description': self.description,
            'price': self.price,
            'cuisine_type': self.cuisine_type,
            'meal_type': self.meal_type,
            'veg_or_non_veg': self.veg_or_non_veg,
            'number_of_times_ordered': self.number_of_times_ordered,
            'rating': self.rating,
            'reviews': self.reviews,
            "date_created": self.date_created,
            "date_updated": self.date_updated
        }


def get_menu_items(filter_expression=None) -> List[MenuItem]:
    records: List[Dict] = utils_db.query_items_paged(
        Key('partkey').eq(keys_structure.menu_items_pk),
        filter_expression=filter_expression
    )
    return [MenuItem(**record) for record in records]


def get_restaurant_menu_items(restaurant_id, cuisine_type=None, meal_type=None) -> List[MenuItem]:
    filter_expression = Attr('restaurant_id').eq(restaurant_id)
    if cuisine_type:
        filter_expression = filter_expression & Attr('cuisine_type').eq(cuisine_type)
    if meal_type:
        filter_expression = filter_expression & Attr('meal_type').eq(meal_type)
    return get_menu_items(filter_expression)


def get_menu_items_by_cuisines(cuisines: List[str]) -> List[MenuItem]:
    if not cuisines:
        return []
    return get_menu_items(Attr('cuisine_type').is_in(list(cuisines)))


def get_popular_menu_items(limit: int) -> List[MenuItem]:
    items = get_menu_items()
    items.sort(key=lambda item: item.number_of_times_ordered, reverse=True)
    return items[:limit]


def get_menu_items_by_ids(menu_item_ids: List[str]) -> List[MenuItem]:
    """
    Ids which no longer exist are skipped
    """
    result = []
    for menu_item_id in menu_item_ids:
        try:
            result.append(MenuItem.init_get_by_id(menu_item_id))
        except exceptions.NotFound:
            logger.info(f'get_menu_items_by_ids ::: menu item {menu_item_id} does not exist anymore, skipped')
    return result


def _require_menu_owner(auth_result: Dict, food_menu: FoodMenu):
    utils_auth.require_role(auth_result, ROLE_ADMIN, ROLE_RESTAURANT_OWNER)
    utils_auth.require_owner_or_admin(auth_result, food_menu.restaurant().owner_id)


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_create_menu_item(request, food_menu_id):
    food_menu = FoodMenu.init_by_id(food_menu_id)
    _require_menu_owner(request.auth_result, food_menu)
    menu_item = MenuItem.create(food_menu, utils_data.parse_raw_body(request))
    return Response(status_code=http201, body=menu_item.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_create_restaurant_menu_item(request, restaurant_id):
    food_menu = FoodMenu.init_by_restaurant_id(restaurant_id)
    _require_menu_owner(request.auth_result, food_menu)
    menu_item = MenuItem.create(food_menu, utils_data.parse_raw_body(request))
    return Response(status_code=http201, body=menu_item.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_update_menu_item(request, menu_item_id):
    menu_item = MenuItem.init_get_by_id(menu_item_id)
    _require_menu_owner(request.auth_result, FoodMenu.init_by_id(menu_item.food_menu_id))
    menu_item.update(utils_data.parse_raw_body(request))
    return Response(status_code=http200, body=menu_item.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_menu_item(request, menu_item_id):
    return Response(status_code=http200, body=MenuItem.init_get_by_id(menu_item_id).to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_restaurant_menu(request, restaurant_id):
    food_menu = FoodMenu.init_by_restaurant_id(restaurant_id)
    menu_items = [item.to_ui() for item in get_restaurant_menu_items(restaurant_id)]
    logger.info(f"endpoint_get_restaurant_menu ::: returning menu items={[item['id'] for item in menu_items]}")
    return Response(status_code=http200, body={'menu': food_menu.to_ui(), 'menu_items': menu_items})


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_menu_items_by_cuisine(request, restaurant_id, cuisine_type):
    menu_items = get_restaurant_menu_items(restaurant_id, cuisine_type=cuisine_type)
    return Response(status_code=http200, body=[item.to_ui() for item in menu_items])


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_menu_items_by_meal_type(request, restaurant_id, meal_type):
    menu_items = get_restaurant_menu_items(restaurant_id, meal_type=meal_type)
    return Response(status_code=http200, body=[item.to_ui() for item in menu_items])
