from decimal import Decimal
from unittest import mock

import jwt
import pytest

from chalicelib.utils import auth as utils_auth, data as utils_data, db as utils_db, exceptions


def test_generate_update_expression():
    set_expr, values, remove_expr = utils_db.generate_update_expression(
        update_body={'status': 'PREPARING', 'name': 'x', 'description': '', 'ignored': 1},
        allowed_attrs_to_update=['status', 'name', 'description'],
        allowed_attrs_to_delete=['description']
    )

    assert set_expr == ('SET #status=:status, #name=:name', {'#status': 'status', '#name': 'name'})
    assert values == {':status': 'PREPARING', ':name': 'x'}
    assert remove_expr == ('REMOVE #description', {'#description': 'description'})


def test_generate_update_expression_nothing_to_do():
    assert utils_db.generate_update_expression({}, ['status'], []) == [None, None, None]


def test_get_db_item_not_found(gen_table):
    with pytest.raises(exceptions.RecordNotFound):
        utils_db.get_db_item('orders', 'missing')


def test_to_decimal():
    assert utils_data.to_decimal('236.25', 'amount') == Decimal('236.25')
    assert utils_data.to_decimal(3, 'amount') == Decimal('3')
    for value in ('abc', None, True, 'NaN'):
        with pytest.raises(exceptions.InvalidArgument):
            utils_data.to_decimal(value, 'amount')


def test_to_cents_rounds_half_up():
    assert utils_data.to_cents(Decimal('1.005')) == Decimal('1.01')
    assert utils_data.to_cents(Decimal('2.675')) == Decimal('2.68')
    assert utils_data.to_cents('0.125') == Decimal('0.13')
    assert utils_data.to_cents(3) == Decimal('3.00')


def test_to_location():
    assert utils_data.to_location(None) is None
    assert utils_data.to_location([1.5, 2]) == [Decimal('1.5'), Decimal('2')]
    for value in ([1], 'here', [0, 91]):
        with pytest.raises(exceptions.InvalidArgument):
            utils_data.to_location(value)


def test_require_param():
    assert utils_data.require_param({'userId': 'u1'}, 'userId') == 'u1'
    with pytest.raises(exceptions.InvalidArgument):
        utils_data.require_param({'userId': ' '}, 'userId')
    with pytest.raises(exceptions.InvalidArgument):
        utils_data.require_param(None, 'userId')


def test_parse_raw_body_keeps_decimals():
    request = mock.Mock(raw_body=b'{"price": 9.99, "note": null}')
    assert utils_data.parse_raw_body(request) == {'price': Decimal('9.99')}

    with pytest.raises(exceptions.InvalidArgument):
        utils_data.parse_raw_body(mock.Mock(raw_body=b'[1, 2]'))


def test_guards():
    customer = {'user_id': 'u1', 'role': 'customer'}
    admin = {'user_id': 'a1', 'role': 'admin'}

    utils_auth.require_self_or_admin(customer, 'u1')
    utils_auth.require_self_or_admin(admin, 'u1')
    utils_auth.require_role(admin, 'admin', 'restaurant_owner')
    with pytest.raises(exceptions.AccessDenied):
        utils_auth.require_self_or_admin(customer, 'u2')
    with pytest.raises(exceptions.AccessDenied):
        utils_auth.require_role(customer, 'admin')
    with pytest.raises(exceptions.AccessDenied):
        utils_auth.require_owner_or_admin(customer, 'u2')


def test_resolve_principal_user_id_mode(customer):
    request = mock.Mock(headers={'authorization': f'Bearer {customer.id_}'})

    assert utils_auth.resolve_principal(request) == {
        'user_id': customer.id_, 'role': customer.role, 'username': customer.username}


def test_resolve_principal_cognito_mode(customer, monkeypatch):
    monkeypatch.setenv('AUTH_MODE', 'cognito')
    request = mock.Mock(headers={'authorization': 'jwt-token'})

    with mock.patch.object(utils_auth, 'user_id_from_cognito_token', return_value=customer.id_) as decode:
        assert utils_auth.resolve_principal(request)['user_id'] == customer.id_
    decode.assert_called_once_with('jwt-token')


def test_invalid_cognito_token(monkeypatch):
    monkeypatch.setenv('COGNITO_POOL_ID', 'eu-central-1_pool')
    monkeypatch.setenv('COGNITO_CLIENT_ID', 'client')

    with mock.patch.object(jwt, 'PyJWKClient') as jwks_client:
        jwks_client.return_value.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientError('no key')
        with pytest.raises(exceptions.NotAuthorizedException):
            utils_auth.user_id_from_cognito_token('not-a-jwt')
