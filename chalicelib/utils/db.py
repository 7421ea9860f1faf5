import functools
import os

import boto3

from chalicelib.constants import substitute_keys
from chalicelib.utils import data
from chalicelib.utils import exceptions
from chalicelib.utils.boto_clients import aws_config_ddb
from chalicelib.utils.logger import logger, log_exception


def log_db_call(func):
    """
        should be used for any atomic
        get/put/update/delete item in the code
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug(f'{func.__name__}:: args={args}, kwargs={kwargs}')
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            log_exception(e, msg=f'Got exception while trying to {func.__name__}: ')
            raise
        logger.info(f'{func.__name__}:: SUCCESS')
        return result

    return wrapper


def get_table(table_name: str):
    if os.environ.get('ENDPOINT_URL'):
        table = boto3.resource('dynamodb', endpoint_url=os.environ.get('ENDPOINT_URL')).Table(table_name)
    else:
        table = boto3.resource('dynamodb', config=aws_config_ddb()).Table(table_name)

    table.put_item = log_db_call(table.put_item)
    table.get_item = log_db_call(table.get_item)
    table.update_item = log_db_call(table.update_item)
    table.delete_item = log_db_call(table.delete_item)
    return table


def get_gen_table():
    return get_table(os.environ.get('GEN_TABLE_NAME'))


def put_db_record(item: dict, table=get_gen_table):
    table().put_item(Item=item)


def delete_db_record(key: dict, table=get_gen_table):
    table().delete_item(Key=key)


def update_db_record(key: dict, update_body: dict, allowed_attrs_to_update: list,
                     allowed_attrs_to_delete: list, table=get_gen_table):
    data.substitute_keys(dict_to_process=update_body, base_keys=substitute_keys.to_db)
    set_expr, expr_attr_values, remove_expr = generate_update_expression(
        update_body=update_body,
        allowed_attrs_to_update=allowed_attrs_to_update,
        allowed_attrs_to_delete=allowed_attrs_to_delete
    )
    update_item_dict = {"Key": key, "ReturnValues": "UPDATED_NEW", }

    set_response = None
    if set_expr:
        set_item_dict = {
            **update_item_dict,
            "UpdateExpression": set_expr[0],
            "ExpressionAttributeNames": set_expr[1],
            "ExpressionAttributeValues": expr_attr_values
        }
        set_response = table().update_item(**set_item_dict)

    remove_response = None
    if remove_expr:
        remove_item_dict = {
            **update_item_dict,
            "UpdateExpression": remove_expr[0],
            "ExpressionAttributeNames": remove_expr[1]
        }
        remove_response = table().update_item(**remove_item_dict)

    return set_response, remove_response


def generate_update_expression(update_body: dict, allowed_attrs_to_update: list, allowed_attrs_to_delete: list):
    """
    Generate expressions to update and delete attributes.
    if a key of update_body is empty - the attribute is deleted, else - attribute is updated.
    Each expression comes with its attribute names map: status, name, location are reserved words
    """
    expr_attr_values = {}
    set_names, remove_names = {}, {}
    set_expr = 'SET '
    remove_expr = 'REMOVE '
    return_value = [None, None, None]
    for field in allowed_attrs_to_update:
        field_value = update_body.get(field, None)
        if field_value is None:
            continue
        # if field is in update_body but is equal to empty string, list etc. - delete field
        if field_value in ['', [], {}] and field in allowed_attrs_to_delete:
            remove_names[f'#{field}'] = field
            remove_expr += f'#{field}, '
        else:
            set_names[f'#{field}'] = field
            expr_attr_values[f':{field}'] = field_value
            set_expr += f'#{field}=:{field}, '

    if set_expr != 'SET ':
        return_value[0] = (set_expr[:-2], set_names)
        return_value[1] = expr_attr_values

    if remove_expr != 'REMOVE ':
        return_value[2] = (remove_expr[:-2], remove_names)

    return return_value


def increment_counter(key: dict, field: str, value, table=get_gen_table):
    """
    Atomic ADD, the attribute is created with the value when missing
    """
    return table().update_item(
        Key=key,
        UpdateExpression=f'ADD #{field} :value',
        ExpressionAttributeNames={f'#{field}': field},
        ExpressionAttributeValues={':value': value},
        ReturnValues='UPDATED_NEW'
    )


def append_to_list(key: dict, field: str, values: list, table=get_gen_table):
    return table().update_item(
        Key=key,
        UpdateExpression=f'SET #{field} = list_append(if_not_exists(#{field}, :empty), :values)',
        ExpressionAttributeNames={f'#{field}': field},
        ExpressionAttributeValues={':values': values, ':empty': []},
        ReturnValues='UPDATED_NEW'
    )


def get_db_item(partkey, sortkey, table=get_gen_table):
    result = table().get_item(
        Key={
            'partkey': partkey,
            'sortkey': sortkey
        }
    )

    if 'Item' in result:
        return result['Item']
    else:
        logger.info(f"get_db_item ::: record partkey={partkey} sortkey={sortkey} not found")
        raise exceptions.RecordNotFound(f'record partkey={partkey} sortkey={sortkey} not found')


def query_items_paginated(
        key_condition_expression,
        filter_expression=None,
        projection_expression=None,
        table=get_gen_table,
        index_name=None,
        expr_attr_names=None,
        limit=None,
        start_key=None
):
    kwargs = {'KeyConditionExpression': key_condition_expression}
    if filter_expression:
        kwargs.update({'FilterExpression': filter_expression})

    if projection_expression:
        kwargs.update({'ProjectionExpression': projection_expression})

    if expr_attr_names:
        kwargs.update({'ExpressionAttributeNames': expr_attr_names})

    if limit:
        kwargs.update({'Limit': int(limit)})

    if index_name:
        kwargs.update({'IndexName': index_name})

    if start_key:
        kwargs.update({'ExclusiveStartKey': start_key})

    resp = table().query(**kwargs)
    return resp['Items'], resp.get('LastEvaluatedKey')


def query_items_paged(key_condition_expression, filter_expression=None, projection_expression=None,
                      table=get_gen_table, index_name=None, expr_attr_names=None):
    """ This method shall be used whenever you think the query will
        return more than 1mb of data at once"""
    all_items = []
    items, last_evaluated_key = query_items_paginated(
        key_condition_expression,
        filter_expression=filter_expression,
        projection_expression=projection_expression,
        table=table,
        index_name=index_name,
        expr_attr_names=expr_attr_names
    )
    all_items.extend(items)

    while last_evaluated_key is not None:
        items, last_evaluated_key = query_items_paginated(
            key_condition_expression,
            filter_expression=filter_expression,
            projection_expression=projection_expression,
            table=table,
            index_name=index_name,
            expr_attr_names=expr_attr_names,
            start_key=last_evaluated_key
        )
        all_items.extend(items)

    return all_items
