from decimal import Decimal
from unittest import mock

import pytest
from botocore.exceptions import ClientError

from chalicelib.auth import CognitoCredentials
from chalicelib.constants.constants import ROLE_CUSTOMER
from chalicelib.users import User, get_user_by_username
from chalicelib.utils import exceptions


def register_body(**kwargs):
    return {'username': 'dave', 'password': 'S3cret!pass', 'email': 'dave@example.com', 'role': ROLE_CUSTOMER,
            **kwargs}


def test_register(gen_table):
    credentials = mock.Mock()
    user = User.register(register_body(favorite_cuisines=['Thai']), credentials=credentials)

    credentials.register.assert_called_once_with('dave', 'S3cret!pass', 'dave@example.com', ROLE_CUSTOMER, user.id_)
    stored = User.init_by_id(user.id_)
    assert stored.username == 'dave'
    assert stored.favorite_cuisines == ['Thai']
    assert 'password' not in stored.to_ui()


def test_register_rules(customer):
    credentials = mock.Mock()

    with pytest.raises(exceptions.InvalidArgument):
        User.register(register_body(role='admin'), credentials=credentials)
    with pytest.raises(exceptions.InvalidArgument):
        User.register(register_body(role='chef'), credentials=credentials)
    with pytest.raises(exceptions.InvalidArgument):
        User.register(register_body(password=''), credentials=credentials)
    with pytest.raises(exceptions.InvalidArgument):
        User.register(register_body(username=customer.username), credentials=credentials)
    credentials.register.assert_not_called()


def test_register_rolls_back_profile(gen_table):
    credentials = mock.Mock()
    credentials.register.side_effect = ClientError(
        {'Error': {'Code': 'InvalidPasswordException', 'Message': 'Password is too weak'}}, 'AdminSetUserPassword')

    with pytest.raises(ClientError):
        User.register(register_body(), credentials=credentials)
    assert get_user_by_username('dave') is None


def test_update_and_delete(customer):
    credentials = mock.Mock()
    User.init_by_id(customer.id_).update({'phone': '+911234567890', 'role': 'admin'})

    stored = User.init_by_id(customer.id_)
    assert stored.phone == '+911234567890'
    assert stored.role == ROLE_CUSTOMER

    stored.delete(credentials=credentials)
    credentials.delete.assert_called_once_with(customer.username)
    with pytest.raises(exceptions.NotFound):
        User.init_by_id(customer.id_)


def test_like_menu_item_is_idempotent(customer, item_a, item_b):
    user = User.init_by_id(customer.id_)
    user.like_menu_item(item_a.id_)
    user.like_menu_item(item_a.id_)
    user.like_menu_item(item_b.id_)

    stored = User.init_by_id(customer.id_)
    assert stored.liked_menu_items == [item_a.id_, item_b.id_]
    assert [item.id_ for item in stored.liked_items()] == [item_a.id_, item_b.id_]

    with pytest.raises(exceptions.NotFound):
        stored.like_menu_item('missing-item')


def test_nearby_restaurants(customer, owner, restaurant):
    nearby = User.init_by_id(customer.id_).nearby_restaurants(Decimal('4'), Decimal('10'))
    assert [r.id_ for r, _ in nearby] == [restaurant.id_]

    with pytest.raises(exceptions.InvalidArgument):
        User.init_by_id(owner.id_).nearby_restaurants(Decimal('4'), Decimal('10'))


@mock.patch('chalicelib.auth.cognito_client')
@mock.patch('chalicelib.auth.Cognito')
def test_cognito_register(cognito, cognito_client):
    CognitoCredentials('pool', 'client', 'eu-central-1').register('dave', 'pw', 'dave@example.com', 'customer', 'u1')

    cognito.assert_called_once_with('pool', 'client', user_pool_region='eu-central-1')
    create_kwargs = cognito.return_value.admin_create_user.call_args.kwargs
    assert create_kwargs['attr_map'] == {'custom:role': 'role', 'custom:user_id': 'user_id'}
    assert create_kwargs['user_id'] == 'u1'
    cognito_client.return_value.admin_set_user_password.assert_called_once_with(
        UserPoolId='pool', Username='dave', Password='pw', Permanent=True)


@mock.patch('chalicelib.auth.Cognito')
def test_cognito_login(cognito):
    session = cognito.return_value
    session.id_token, session.access_token, session.refresh_token = 'id', 'access', 'refresh'

    tokens = CognitoCredentials('pool', 'client', 'eu-central-1').login('dave', 'pw')

    session.authenticate.assert_called_once_with(password='pw')
    assert tokens == {'token': 'id', 'id_token': 'id', 'access_token': 'access', 'refresh_token': 'refresh'}


@mock.patch('chalicelib.auth.Cognito')
def test_cognito_login_failure(cognito):
    cognito.return_value.authenticate.side_effect = ClientError(
        {'Error': {'Code': 'NotAuthorizedException', 'Message': 'Incorrect username or password.'}}, 'InitiateAuth')

    with pytest.raises(exceptions.NotAuthorizedException):
        CognitoCredentials('pool', 'client', 'eu-central-1').login('dave', 'wrong')
