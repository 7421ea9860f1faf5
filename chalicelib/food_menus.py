from typing import Tuple, Dict
from uuid import uuid4

from boto3.dynamodb.conditions import Attr, Key
from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_ADMIN, ROLE_RESTAURANT_OWNER
from chalicelib.constants.status_codes import http200, http201
from chalicelib.restaurants import Restaurant
from chalicelib.utils import auth as utils_auth, data as utils_data, exceptions, db as utils_db, app as utils_app
from chalicelib.utils.logger import logger


class FoodMenu(EntityBase):
    pk = keys_structure.food_menus_pk
    sk = keys_structure.food_menus_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'restaurant_id': lambda x: isinstance(x, str),
        "date_created": lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        "date_updated": lambda x: isinstance(x, str)
    }

    def __init__(self, id_, restaurant_id=None, **kwargs):
        EntityBase.__init__(self, id_)

        self.restaurant_id: str = restaurant_id
        self.name: str = kwargs.get('name')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'food_menu'

    @classmethod
    def init_by_id(cls, food_menu_id):
        c = cls(food_menu_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(f'Food menu {food_menu_id} not found')
        return c

    @classmethod
    def init_by_restaurant_id(cls, restaurant_id):
        """
        The first menu of the restaurant is "the menu" of the restaurant
        """
        records = utils_db.query_items_paged(
            Key('partkey').eq(cls.pk),
            filter_expression=Attr('restaurant_id').eq(restaurant_id)
        )
        if not records:
            raise exceptions.NotFound(f'Restaurant {restaurant_id} has no menu')
        records.sort(key=lambda record: record.get('date_created', ''))
        return cls(**records[0])

    @classmethod
    def create(cls, restaurant: Restaurant, body: Dict) -> 'FoodMenu':
        food_menu = cls(id_=str(uuid4()), restaurant_id=restaurant.id_, name=body.get('name') or restaurant.name)
        food_menu._create_db_record()
        logger.info(f'FoodMenu.create ::: menu {food_menu.id_} created for restaurant {restaurant.id_}')
        return food_menu

    def restaurant(self) -> Restaurant:
        return Restaurant.init_by_id(self.restaurant_id)

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(food_menu_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'restaurant_id': self.restaurant_id,
            'name': self.name,
            "date_created": self.date_created,
            "date_updated": self.date_updated
        }


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_create_food_menu(request, restaurant_id):
    auth_result = request.auth_result
    utils_auth.require_role(auth_result, ROLE_ADMIN, ROLE_RESTAURANT_OWNER)
    restaurant = Restaurant.init_by_id(restaurant_id)
    utils_auth.require_owner_or_admin(auth_result, restaurant.owner_id)
    food_menu = FoodMenu.create(restaurant, utils_data.parse_raw_body(request))
    return Response(status_code=http201, body=food_menu.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_food_menu(request, food_menu_id):
    food_menu = FoodMenu.init_by_id(food_menu_id)
    utils_auth.require_owner_or_admin(request.auth_result, food_menu.restaurant().owner_id)
    return Response(status_code=http200, body=food_menu.to_ui())
