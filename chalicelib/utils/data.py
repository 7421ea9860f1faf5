import json
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional

from chalicelib.constants.constants import CENTS
from chalicelib.utils import exceptions


def replace_dict_key(item, orig_key, new_key):
    if orig_key in item:
        if new_key not in item:
            item[new_key] = item[orig_key]
        del item[orig_key]


def substitute_keys(dict_to_process: dict, base_keys: dict, opt_dict=None):
    if opt_dict is None:
        opt_dict = {}
    all_keys = {**base_keys, **opt_dict}
    for key, val in all_keys.items():
        if val:
            replace_dict_key(dict_to_process, key, val)
        elif key in dict_to_process.keys():
            dict_to_process.pop(key, None)


def parse_raw_body(chalice_request) -> Dict:
    request_raw_body = chalice_request.raw_body
    if not request_raw_body:
        return {}
    try:
        body = json.loads(request_raw_body)
    except ValueError:
        raise exceptions.InvalidArgument('Request body is not a valid JSON document')
    if not isinstance(body, dict):
        raise exceptions.InvalidArgument('Request body must be a JSON object')
    return fix_values_from_ui(item=body)


def fix_values_from_ui(item):
    """
    Remove keys with empty or None values and transform float to Decimal
    """
    if item.get('_values_from_ui_strategy') == 'delete_empty':
        list_to_cleanup = ['', None]
    else:
        list_to_cleanup = [None]
    item = cleanup_dict(item, list_to_cleanup)
    item.pop('_values_from_ui_strategy', None)
    result = json.dumps(item)
    return json.loads(result, parse_float=Decimal)


def cleanup_dict(item: dict, list_of_values: list):
    """ Remove None fields in dict with. Supports one nesting.  """

    def sub_clean(sub_item):
        return {
            key: value
            for key, value in sub_item.items()
            if value not in list_of_values
        }

    clean = {}
    for k, v in item.items():
        if isinstance(v, dict):
            nested = sub_clean(v)
            if len(nested.keys()) > 0:
                clean[k] = nested
        elif v not in list_of_values:
            clean[k] = v
    return clean


def to_decimal(value: Any, field: str) -> Decimal:
    """
    Query string and JSON numbers are turned into Decimal, DynamoDB does not accept float
    """
    if isinstance(value, bool):
        raise exceptions.InvalidArgument(f'{field} must be a number')
    try:
        result = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise exceptions.InvalidArgument(f'{field} must be a number, got {value!r}')
    if not result.is_finite():
        raise exceptions.InvalidArgument(f'{field} must be a finite number')
    return result


def to_cents(value: Any) -> Decimal:
    """
    Every money amount is rounded half-up to cents
    """
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise exceptions.InvalidArgument(f'{field} must be an integer')
    try:
        return int(str(value))
    except (TypeError, ValueError):
        raise exceptions.InvalidArgument(f'{field} must be an integer, got {value!r}')


def require_param(params: Optional[Dict], name: str) -> str:
    value = (params or {}).get(name)
    if value is None or str(value).strip() == '':
        raise exceptions.InvalidArgument(f'{name} is mandatory')
    return value


def to_location(value: Any) -> Optional[list]:
    """
    [longitude, latitude] pair, stored as Decimals
    """
    if value is None:
        return None
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise exceptions.InvalidArgument('location must be a [longitude, latitude] pair')
    longitude, latitude = to_decimal(value[0], 'longitude'), to_decimal(value[1], 'latitude')
    if not -180 <= longitude <= 180 or not -90 <= latitude <= 90:
        raise exceptions.InvalidArgument('location is out of range')
    return [longitude, latitude]
