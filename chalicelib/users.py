from decimal import Decimal
from typing import Tuple, List, Dict, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib import auth, restaurants
from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLES, SELF_REGISTRATION_ROLES
from chalicelib.constants.status_codes import http200, http201
from chalicelib.menu_items import MenuItem, get_menu_items_by_ids
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, exceptions
from chalicelib.utils.logger import logger, log_event


class User(EntityBase):
    pk = keys_structure.users_pk
    sk = keys_structure.users_sk

    editable_fields = ['email', 'phone', 'address', 'first_name', 'last_name', 'location']

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'username': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'role': lambda x: x in ROLES,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'email': lambda x: isinstance(x, str),
        'phone': lambda x: isinstance(x, str),
        'address': lambda x: isinstance(x, str),
        'first_name': lambda x: isinstance(x, str),
        'last_name': lambda x: isinstance(x, str),
        'location': lambda x: isinstance(x, list) and len(x) == 2,
        'favorite_cuisines': lambda x: isinstance(x, list) and all(isinstance(i, str) for i in x)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.username: str = kwargs.get('username')
        self.email: str = kwargs.get('email')
        self.phone: str = kwargs.get('phone')
        self.address: str = kwargs.get('address')
        self.role: str = kwargs.get('role')
        self.first_name: str = kwargs.get('first_name')
        self.last_name: str = kwargs.get('last_name')
        self.location: Optional[list] = utils_data.to_location(kwargs.get('location'))
        self.liked_menu_items: List[str] = kwargs.get('liked_menu_items', [])
        self.favorite_cuisines: List[str] = kwargs.get('favorite_cuisines', [])
        self.order_history: List[str] = kwargs.get('order_history', [])
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'user'

    @classmethod
    def init_by_id(cls, id_):
        logger.info("init_by_id ::: started")
        c = cls(id_)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(f'User {id_} not found')
        return c

    @classmethod
    def register(cls, body: Dict, credentials: auth.CognitoCredentials = None) -> 'User':
        """
        Profile goes to DynamoDB, password goes to the credential store only.
        Admin accounts are never self-registered
        """
        role = body.get('role')
        if role not in ROLES:
            raise exceptions.InvalidArgument(f'Unknown role {role}, expected one of {ROLES}')
        if role not in SELF_REGISTRATION_ROLES:
            raise exceptions.InvalidArgument(f'Role {role} can not be self-registered')
        username = utils_data.require_param(body, 'username')
        password = utils_data.require_param(body, 'password')
        if get_user_by_username(username) is not None:
            raise exceptions.InvalidArgument(f'Username {username} is already taken')

        fields = {key: body[key] for key in [*cls.editable_fields, 'favorite_cuisines'] if key in body}
        user = cls(id_=str(uuid4()), username=username, role=role, **fields)
        user._create_db_record()
        try:
            (credentials or auth.credentials()).register(username, password, user.email, role, user.id_)
        except Exception:
            logger.exception(f'register ::: credentials were not created for {username=}, removing profile')
            user._delete_db_record()
            raise
        log_event('user_registered', user_id=user.id_, role=role)
        return user

    def update(self, body: Dict) -> 'User':
        fields = {key: body[key] for key in self.editable_fields if key in body}
        self.__init__(**{**self._to_dict(), **fields, 'date_updated': None})
        self._update_db_record()
        return self

    def delete(self, credentials: auth.CognitoCredentials = None) -> None:
        (credentials or auth.credentials()).delete(self.username)
        self._delete_db_record()
        log_event('user_deleted', user_id=self.id_)

    def like_menu_item(self, menu_item_id: str) -> 'User':
        MenuItem.init_get_by_id(menu_item_id)
        if menu_item_id in self.liked_menu_items:
            logger.info(f'like_menu_item ::: {menu_item_id} is already liked by {self.id_}')
            return self
        pk, sk = self._get_pk_sk()
        response = utils_db.append_to_list({'partkey': pk, 'sortkey': sk}, 'liked_menu_items', [menu_item_id])
        self.liked_menu_items = response['Attributes']['liked_menu_items']
        return self

    def liked_items(self) -> List[MenuItem]:
        return get_menu_items_by_ids(self.liked_menu_items)

    def nearby_restaurants(self, min_rating: Decimal, max_distance_km: Decimal):
        if self.location is None:
            raise exceptions.InvalidArgument(f'User {self.id_} has no location')
        return restaurants.find_nearby(self.location, min_rating, max_distance_km)

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(user_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'username': self.username,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'role': self.role,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'location': self.location,
            'liked_menu_items': self.liked_menu_items,
            'favorite_cuisines': self.favorite_cuisines,
            'order_history': self.order_history,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }


def get_user_by_username(username: str) -> Optional[User]:
    records = utils_db.query_items_paged(
        Key('partkey').eq(User.pk),
        filter_expression=Attr('username').eq(username)
    )
    return User(**records[0]) if records else None


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_register(request):
    user = User.register(utils_data.parse_raw_body(request))
    return Response(status_code=http201, body=user.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_user(request, user_id):
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    return Response(status_code=http200, body=User.init_by_id(user_id).to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_update_user(request, user_id):
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    user = User.init_by_id(user_id).update(utils_data.parse_raw_body(request))
    return Response(status_code=http200, body=user.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_delete_user(request, user_id):
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    User.init_by_id(user_id).delete()
    return Response(status_code=http200, body={'message': 'User was deleted successfully', 'id': user_id})


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_like_menu_item(request, user_id, menu_item_id):
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    user = User.init_by_id(user_id).like_menu_item(menu_item_id)
    return Response(status_code=http200, body=user.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_liked_menu_items(request, user_id):
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    items = User.init_by_id(user_id).liked_items()
    return Response(status_code=http200, body=[item.to_ui() for item in items])


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_nearby_restaurants(request, user_id):
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    qp = request.query_params or {}
    min_rating = utils_data.to_decimal(qp.get('minRating', 0), 'minRating')
    max_distance_km = utils_data.to_decimal(utils_data.require_param(qp, 'maxDistanceKm'), 'maxDistanceKm')
    nearby = User.init_by_id(user_id).nearby_restaurants(min_rating, max_distance_km)
    return Response(
        status_code=http200,
        body=[{**restaurant.to_ui(), 'distance_km': round(distance, 3)} for restaurant, distance in nearby]
    )
