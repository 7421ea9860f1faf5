import hashlib
import json
import os
from typing import List, Optional

import requests
from chalice import Response

from chalicelib.constants.constants import VEG, NON_VEG, POPULAR_ITEMS_LIMIT, VEG_PREFERENCE_THRESHOLD, \
    RECOMMENDATION_CACHE_TTL_SECONDS
from chalicelib.constants.status_codes import http200
from chalicelib.menu_items import MenuItem, get_menu_items_by_cuisines, get_popular_menu_items, \
    get_menu_items_by_ids
from chalicelib.orders import get_user_orders
from chalicelib.users import User
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, cache as utils_cache, \
    exceptions
from chalicelib.utils.logger import logger


def cache_key(user_id: str, favorite_cuisines: Optional[List[str]]) -> str:
    """
    Preferences are part of the key: changed cuisines never hit a stale entry
    """
    if favorite_cuisines:
        preferences_hash = hashlib.sha256(json.dumps(list(favorite_cuisines)).encode()).hexdigest()[:16]
    else:
        preferences_hash = 'none'
    return f'recommendations:{user_id}:{preferences_hash}'


def cache_ttl_seconds() -> int:
    return int(os.environ.get('RECOMMENDATION_CACHE_TTL_SECONDS', RECOMMENDATION_CACHE_TTL_SECONDS))


def fetch_from_ranking_service(user: User) -> List[str]:
    """
    Empty list when the service is not configured, unavailable or answers with garbage
    """
    url = os.environ.get('RECOMMENDATION_SERVICE_URL')
    if not url:
        return []
    timeout = float(os.environ.get('RECOMMENDATION_SERVICE_TIMEOUT', 2))
    try:
        response = requests.post(
            url,
            json={'favorite_cuisines': user.favorite_cuisines, 'order_history': user.order_history},
            timeout=timeout
        )
        response.raise_for_status()
        menu_item_ids = response.json()
    except (requests.RequestException, ValueError) as error:
        logger.warning(f'fetch_from_ranking_service ::: ranking service unavailable for user {user.id_}, {error=}')
        return []
    if not isinstance(menu_item_ids, list):
        logger.warning(f'fetch_from_ranking_service ::: unexpected response for user {user.id_}: {menu_item_ids}')
        return []
    return [str(menu_item_id) for menu_item_id in menu_item_ids]


def infer_dietary_preference(user: User) -> Optional[str]:
    """
    VEG when more than 70% of the ordered lines are veg, NON_VEG otherwise, None without history
    """
    ordered_ids = [item['menu_item_id'] for order in get_user_orders(user.id_) for item in order.items
                   if item.get('menu_item_id')]
    ordered_items = get_menu_items_by_ids(ordered_ids)
    if not ordered_items:
        logger.debug(f'infer_dietary_preference ::: no order history for user {user.id_}')
        return None
    veg_count = len([item for item in ordered_items if item.veg_or_non_veg == VEG])
    return VEG if veg_count / len(ordered_items) > VEG_PREFERENCE_THRESHOLD else NON_VEG


def filter_by_preference(user: User, menu_item_ids: List[str]) -> List[str]:
    if not menu_item_ids:
        return menu_item_ids
    preference = infer_dietary_preference(user)
    if preference is None:
        return menu_item_ids
    return [item.id_ for item in get_menu_items_by_ids(menu_item_ids) if item.veg_or_non_veg == preference]


def local_recommendations(user: User) -> List[str]:
    """
    Liked items, then items of favorite cuisines, then the most popular items
    when fewer than five are collected
    """
    menu_item_ids: List[str] = list(dict.fromkeys(user.liked_menu_items))
    for item in get_menu_items_by_cuisines(user.favorite_cuisines):
        if item.id_ not in menu_item_ids:
            menu_item_ids.append(item.id_)
    if len(menu_item_ids) < POPULAR_ITEMS_LIMIT:
        for item in get_popular_menu_items(POPULAR_ITEMS_LIMIT):
            if item.id_ not in menu_item_ids:
                menu_item_ids.append(item.id_)
    return filter_by_preference(user, menu_item_ids)


def recommended_menu_item_ids(user: User) -> List[str]:
    menu_item_ids = fetch_from_ranking_service(user)
    if menu_item_ids:
        logger.info(f'recommended_menu_item_ids ::: ranking service answered for user {user.id_}')
        return filter_by_preference(user, menu_item_ids)
    logger.info(f'recommended_menu_item_ids ::: falling back to local ranking for user {user.id_}')
    return local_recommendations(user)


def get_recommendations(user_id: str) -> List[MenuItem]:
    user = User.init_by_id(user_id)
    key = cache_key(user.id_, user.favorite_cuisines)
    cached = utils_cache.get_cached(key)
    if cached:
        logger.info(f'get_recommendations ::: returning cached recommendations for user {user_id}')
        return get_menu_items_by_ids(cached)

    menu_item_ids = recommended_menu_item_ids(user)
    if menu_item_ids:
        utils_cache.set_cached(key, menu_item_ids, cache_ttl_seconds())
    else:
        logger.warning(f'get_recommendations ::: no recommendations generated for user {user_id}')
    return get_menu_items_by_ids(menu_item_ids)


def update_preferences(user_id: str, favorite_cuisines: List[str]) -> User:
    if not isinstance(favorite_cuisines, list) or not all(isinstance(c, str) for c in favorite_cuisines):
        raise exceptions.InvalidArgument('favorite_cuisines must be a list of strings')
    user = User.init_by_id(user_id)
    utils_cache.delete_cached(cache_key(user.id_, user.favorite_cuisines))
    user.favorite_cuisines = favorite_cuisines
    user._update_db_record()
    logger.info(f'update_preferences ::: user {user_id} favorite cuisines set to {favorite_cuisines}')
    return user


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_get_recommendations(request, user_id):
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    return Response(status_code=http200, body=[item.to_ui() for item in get_recommendations(user_id)])


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate
def endpoint_update_preferences(request, user_id):
    utils_auth.require_self_or_admin(request.auth_result, user_id)
    body = utils_data.parse_raw_body(request)
    user = update_preferences(user_id, body.get('favorite_cuisines'))
    return Response(status_code=http200, body=user.to_ui())
