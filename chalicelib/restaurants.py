from decimal import Decimal
from math import radians, sin, cos, asin, sqrt
from typing import Tuple, List, Dict, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Key
from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_ADMIN, ROLE_RESTAURANT_OWNER, EARTH_RADIUS_KM
from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils import auth as utils_auth, data as utils_data, exceptions, db as utils_db, app as utils_app
from chalicelib.utils.logger import logger, log_event


class Restaurant(EntityBase):
    pk = keys_structure.restaurants_pk
    sk = keys_structure.restaurants_sk

    editable_fields = ['name', 'address', 'description', 'rating', 'location', 'cuisines']

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'owner_id': lambda x: isinstance(x, str),
        "date_created": lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'address': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'rating': lambda x: isinstance(x, Decimal) and 0 <= x <= 5,
        "date_updated": lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'location': lambda x: isinstance(x, list) and len(x) == 2,
        'cuisines': lambda x: isinstance(x, list)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.name: str = kwargs.get('name')
        self.address: str = kwargs.get('address')
        self.description: str = kwargs.get('description')
        self.rating: Decimal = utils_data.to_decimal(kwargs.get('rating', 0), 'rating')
        self.location: Optional[list] = utils_data.to_location(kwargs.get('location'))
        self.cuisines: list = kwargs.get('cuisines', [])
        self.owner_id: str = kwargs.get('owner_id')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'restaurant'

    @classmethod
    def init_by_id(cls, restaurant_id):
        logger.info("init_by_id ::: started")
        c = cls(restaurant_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(f'Restaurant {restaurant_id} not found')
        return c

    @classmethod
    def create(cls, body: Dict, auth_result: Dict) -> 'Restaurant':
        """
        Restaurant owners create restaurants for themselves, admins pass owner_id explicitly
        """
        owner_id = body.get('owner_id')
        if auth_result['role'] == ROLE_RESTAURANT_OWNER:
            owner_id = auth_result['user_id']
        if not owner_id:
            raise exceptions.InvalidArgument('owner_id is mandatory')
        owner_role = utils_auth.get_user_role(owner_id)
        if owner_role != ROLE_RESTAURANT_OWNER:
            raise exceptions.InvalidArgument(f'User {owner_id} is not a restaurant owner')
        fields = {key: body[key] for key in cls.editable_fields if key in body}
        restaurant = cls(id_=str(uuid4()), owner_id=owner_id, **fields)
        restaurant._create_db_record()
        log_event('restaurant_created', restaurant_id=restaurant.id_, owner_id=owner_id)
        return restaurant

    def update(self, body: Dict) -> 'Restaurant':
        fields = {key: body[key] for key in self.editable_fields if key in body}
        self.__init__(**{**self._to_dict(), **fields, 'date_updated': None})
        self._update_db_record()
        return self

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(restaurant_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name': self.name,
            'address': self.address,
            'description': self.description,
            'rating': self.rating,
            'location': self.location,
            'cuisines': self.cuisines,
            'owner_id': self.owner_id,
            "date_created": self.date_created,
            "date_updated": self.date_updated
        }


def get_all_restaurants() -> List[Restaurant]:
    records = utils_db.query_items_paged(Key('partkey').eq(keys_structure.restaurants_pk))
    return [Restaurant(**record) for record in records]


def search_restaurants(name: str = None, city: str = None) -> List[Restaurant]:
    """
    Case-insensitive substring match on name and on address (city is a part of the address)
    """
    restaurants = get_all_restaurants()
    if name:
        restaurants = [r for r in restaurants if name.lower() in (r.name or '').lower()]
    if city:
        restaurants = [r for r in restaurants if city.lower() in (r.address or '').lower()]
    return restaurants


def distance_km(location_from: list, location_to: list) -> float:
    """
    Great-circle distance between two [longitude, latitude] points
    """
    lon1, lat1, lon2, lat2 = map(radians, [float(location_from[0]), float(location_from[1]),
                                           float(location_to[0]), float(location_to[1])])
    a = sin((lat2 - lat1) / 2) ** 2 + cos(lat1) * cos(lat2) * sin((lon2 - lon1) / 2) ** 2
    return 2 * EARTH_RADIUS_KM * asin(sqrt(a))


def find_nearby(location: list, min_rating: Decimal, max_distance_km: Decimal) -> List[Tuple[Restaurant, float]]:
    if not 0 <= min_rating <= 5:
        raise exceptions.InvalidArgument(f'minRating must be between 0 and 5, got {min_rating}')
    if max_distance_km <= 0:
        raise exceptions.InvalidArgument(f'maxDistanceKm must be positive, got {max_distance_km}')
    result = []
    for restaurant in get_all_restaurants():
        if restaurant.location is None or restaurant.rating < min_rating:
            continue
        distance = distance_km(location, restaurant.location)
        if distance <= float(max_distance_km):
            result.append((restaurant, distance))
    result.sort(key=lambda pair: pair[1])
    logger.info(f'find_nearby ::: {len(result)} restaurants within {max_distance_km} km')
    return result


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_create_restaurant(request):
    auth_result = request.auth_result
    utils_auth.require_role(auth_result, ROLE_ADMIN, ROLE_RESTAURANT_OWNER)
    restaurant = Restaurant.create(utils_data.parse_raw_body(request), auth_result)
    return Response(status_code=http201, body=restaurant.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_restaurant(request, restaurant_id):
    return Response(status_code=http200, body=Restaurant.init_by_id(restaurant_id).to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_owned_restaurant(request, restaurant_id):
    restaurant = Restaurant.init_by_id(restaurant_id)
    utils_auth.require_owner_or_admin(request.auth_result, restaurant.owner_id)
    return Response(status_code=http200, body=restaurant.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_update_restaurant(request, restaurant_id):
    restaurant = Restaurant.init_by_id(restaurant_id)
    utils_auth.require_owner_or_admin(request.auth_result, restaurant.owner_id)
    restaurant.update(utils_data.parse_raw_body(request))
    return Response(status_code=http200, body=restaurant.to_ui())


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_restaurants(request):
    qp = request.query_params or {}
    restaurants = search_restaurants(name=qp.get('name'), city=qp.get('city'))
    logger.info(f"endpoint_get_restaurants ::: returning restaurants={[rest.id_ for rest in restaurants]}")
    return Response(status_code=http200, body=[restaurant.to_ui() for restaurant in restaurants])
