from datetime import datetime, timedelta
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from chalicelib.constants import keys_structure
from chalicelib.utils import db as utils_db, exceptions
from chalicelib.utils.logger import logger


def _key(cache_key: str) -> dict:
    return {
        'partkey': keys_structure.recommendations_cache_pk,
        'sortkey': keys_structure.recommendations_cache_sk.format(cache_key=cache_key)
    }


def get_cached(cache_key: str) -> Optional[List[str]]:
    """
    Returns None on miss, on expired entry and when the cache is unavailable.
    DynamoDB removes expired items lazily, so ttl_ is checked here as well
    """
    try:
        item = utils_db.get_db_item(**_key(cache_key))
    except exceptions.RecordNotFound:
        return None
    except (BotoCoreError, ClientError) as error:
        logger.warning(f'get_cached ::: cache read failed, {cache_key=}, {error=}')
        return None
    if int(item.get('ttl_', 0)) <= int(datetime.now().timestamp()):
        logger.info(f'get_cached ::: {cache_key=} expired')
        return None
    return list(item.get('values', []))


def set_cached(cache_key: str, values: List[str], ttl_seconds: int) -> None:
    try:
        utils_db.put_db_record({
            **_key(cache_key),
            'record_type': 'cache',
            'values': values,
            'ttl_': int((datetime.now() + timedelta(seconds=ttl_seconds)).timestamp())
        })
    except (BotoCoreError, ClientError) as error:
        logger.warning(f'set_cached ::: cache write failed, {cache_key=}, {error=}')


def delete_cached(cache_key: str) -> None:
    try:
        utils_db.delete_db_record(_key(cache_key))
    except (BotoCoreError, ClientError) as error:
        logger.warning(f'delete_cached ::: cache invalidation failed, {cache_key=}, {error=}')
