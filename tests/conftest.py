from decimal import Decimal

import boto3
import pytest
from moto import mock_aws

from chalicelib.constants.constants import ROLE_CUSTOMER, ROLE_ADMIN, ROLE_RESTAURANT_OWNER, ROLE_DELIVERY_WORKER, \
    VEG, NON_VEG
from chalicelib.food_menus import FoodMenu
from chalicelib.menu_items import MenuItem
from chalicelib.restaurants import Restaurant
from tests.utils.records import create_user, TABLE_NAME, REGION
from tests.utils.request_utils import local_client


@pytest.fixture(autouse=True)
def aws_environment(monkeypatch):
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', REGION)
    monkeypatch.setenv('DEFAULT_REGION', REGION)
    monkeypatch.delenv('AWS_REGION', raising=False)
    monkeypatch.delenv('ENDPOINT_URL', raising=False)
    monkeypatch.delenv('ORDER_STATUS_TOPIC_ARN', raising=False)
    monkeypatch.delenv('RECOMMENDATION_SERVICE_URL', raising=False)
    monkeypatch.setenv('GEN_TABLE_NAME', TABLE_NAME)
    monkeypatch.setenv('AUTH_MODE', 'user_id')


@pytest.fixture
def gen_table():
    with mock_aws():
        table = boto3.resource('dynamodb', region_name=REGION).create_table(
            TableName=TABLE_NAME,
            KeySchema=[
                {'AttributeName': 'partkey', 'KeyType': 'HASH'},
                {'AttributeName': 'sortkey', 'KeyType': 'RANGE'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'partkey', 'AttributeType': 'S'},
                {'AttributeName': 'sortkey', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )
        yield table


@pytest.fixture
def order_status_topic(gen_table, monkeypatch):
    topic_arn = boto3.client('sns', region_name=REGION).create_topic(Name='order-status')['TopicArn']
    monkeypatch.setenv('ORDER_STATUS_TOPIC_ARN', topic_arn)
    return topic_arn


@pytest.fixture
def customer(gen_table):
    return create_user(ROLE_CUSTOMER, username='alice', location=[Decimal('77.5946'), Decimal('12.9716')])


@pytest.fixture
def admin(gen_table):
    return create_user(ROLE_ADMIN, username='root')


@pytest.fixture
def owner(gen_table):
    return create_user(ROLE_RESTAURANT_OWNER, username='bob')


@pytest.fixture
def worker(gen_table):
    return create_user(ROLE_DELIVERY_WORKER, username='carl')


@pytest.fixture
def restaurant(owner):
    restaurant = Restaurant(
        id_='rest-1',
        owner_id=owner.id_,
        name='Spice Route',
        address='12 MG Road, Bangalore',
        rating=Decimal('4.5'),
        location=[Decimal('77.6000'), Decimal('12.9750')],
        cuisines=['Indian']
    )
    restaurant._create_db_record()
    return restaurant


@pytest.fixture
def food_menu(restaurant):
    return FoodMenu.create(restaurant, {'name': 'Main menu'})


@pytest.fixture
def item_a(food_menu):
    return MenuItem.create(food_menu, {
        'name': 'Paneer Tikka',
        'price': 100,
        'cuisine_type': 'Indian',
        'meal_type': 'Dinner',
        'veg_or_non_veg': VEG
    })


@pytest.fixture
def item_b(food_menu):
    return MenuItem.create(food_menu, {
        'name': 'Chicken Biryani',
        'price': 50,
        'cuisine_type': 'Indian',
        'meal_type': 'Lunch',
        'veg_or_non_veg': NON_VEG
    })


@pytest.fixture
def client(gen_table):
    with local_client() as client:
        yield client
