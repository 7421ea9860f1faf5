from decimal import Decimal

import pytest

from chalicelib.constants.constants import ROLE_ADMIN, ROLE_RESTAURANT_OWNER
from chalicelib.food_menus import FoodMenu
from chalicelib.menu_items import MenuItem, get_restaurant_menu_items, get_popular_menu_items
from chalicelib.restaurants import Restaurant, search_restaurants, distance_km, find_nearby
from chalicelib.utils import exceptions


def test_owner_creates_restaurant_for_self(owner):
    auth_result = {'user_id': owner.id_, 'role': ROLE_RESTAURANT_OWNER}
    restaurant = Restaurant.create({'name': 'Noodle Bar', 'address': '5 Church St, Bangalore', 'rating': 4,
                                    'owner_id': 'someone-else'}, auth_result)

    stored = Restaurant.init_by_id(restaurant.id_)
    assert stored.owner_id == owner.id_
    assert stored.rating == Decimal('4')


def test_admin_creates_restaurant_for_owner(admin, owner, customer):
    auth_result = {'user_id': admin.id_, 'role': ROLE_ADMIN}
    body = {'name': 'Noodle Bar', 'address': '5 Church St, Bangalore'}

    with pytest.raises(exceptions.InvalidArgument):
        Restaurant.create(body, auth_result)
    with pytest.raises(exceptions.InvalidArgument):
        Restaurant.create({**body, 'owner_id': customer.id_}, auth_result)
    with pytest.raises(exceptions.NotFound):
        Restaurant.create({**body, 'owner_id': 'missing-user'}, auth_result)

    assert Restaurant.create({**body, 'owner_id': owner.id_}, auth_result).owner_id == owner.id_


def test_restaurant_validation(owner):
    auth_result = {'user_id': owner.id_, 'role': ROLE_RESTAURANT_OWNER}

    with pytest.raises(exceptions.InvalidArgument):
        Restaurant.create({'name': 'Too Good', 'address': 'Somewhere', 'rating': 7}, auth_result)
    with pytest.raises(exceptions.InvalidArgument):
        Restaurant.create({'name': '', 'address': 'Somewhere'}, auth_result)
    with pytest.raises(exceptions.InvalidArgument):
        Restaurant.create({'name': 'Lost', 'address': 'Somewhere', 'location': [200, 10]}, auth_result)


def test_search_restaurants(restaurant, owner):
    Restaurant(id_='rest-2', owner_id=owner.id_, name='Pasta Place', address='1 Main St, Mumbai')._create_db_record()

    assert [r.id_ for r in search_restaurants(name='spice')] == [restaurant.id_]
    assert [r.id_ for r in search_restaurants(city='mumbai')] == ['rest-2']
    assert search_restaurants(name='pasta', city='bangalore') == []
    assert len(search_restaurants()) == 2


def test_distance_km():
    assert distance_km([0, 0], [0, 0]) == 0
    assert distance_km([0, 0], [0, 1]) == pytest.approx(111.19, abs=0.01)


def test_find_nearby(restaurant, owner):
    Restaurant(id_='far', owner_id=owner.id_, name='Far Away', address='Delhi', rating=Decimal('5'),
               location=[Decimal('77.2090'), Decimal('28.6139')])._create_db_record()
    Restaurant(id_='bad', owner_id=owner.id_, name='Close But Bad', address='Bangalore', rating=Decimal('2'),
               location=[Decimal('77.5950'), Decimal('12.9720')])._create_db_record()
    here = [Decimal('77.5946'), Decimal('12.9716')]

    nearby = find_nearby(here, Decimal('4'), Decimal('5'))
    assert [r.id_ for r, _ in nearby] == [restaurant.id_]
    assert nearby[0][1] == pytest.approx(0.7, abs=0.05)

    assert [r.id_ for r, _ in find_nearby(here, Decimal('0'), Decimal('5'))] == ['bad', restaurant.id_]

    with pytest.raises(exceptions.InvalidArgument):
        find_nearby(here, Decimal('6'), Decimal('5'))
    with pytest.raises(exceptions.InvalidArgument):
        find_nearby(here, Decimal('4'), Decimal('0'))


def test_food_menu_lookup(restaurant):
    with pytest.raises(exceptions.NotFound):
        FoodMenu.init_by_restaurant_id(restaurant.id_)

    menu = FoodMenu.create(restaurant, {})
    assert menu.name == restaurant.name
    assert FoodMenu.init_by_restaurant_id(restaurant.id_).id_ == menu.id_
    assert FoodMenu.init_by_id(menu.id_).restaurant().id_ == restaurant.id_


def test_menu_item_filters(restaurant, item_a, item_b):
    assert {i.id_ for i in get_restaurant_menu_items(restaurant.id_)} == {item_a.id_, item_b.id_}
    assert [i.id_ for i in get_restaurant_menu_items(restaurant.id_, cuisine_type='Indian', meal_type='Lunch')] \
        == [item_b.id_]
    assert get_restaurant_menu_items(restaurant.id_, cuisine_type='Thai') == []


def test_menu_item_validation(food_menu):
    with pytest.raises(exceptions.InvalidArgument):
        MenuItem.create(food_menu, {'name': 'Free lunch', 'price': 0, 'veg_or_non_veg': 'VEG'})
    with pytest.raises(exceptions.InvalidArgument):
        MenuItem.create(food_menu, {'name': 'Mystery', 'price': 10, 'veg_or_non_veg': 'VEGAN'})
    with pytest.raises(exceptions.NotFound):
        MenuItem.init_get_by_id('missing-item')


def test_popularity(item_a, item_b):
    item_b.increment_popularity(3)
    item_a.increment_popularity(1)

    assert [i.id_ for i in get_popular_menu_items(1)] == [item_b.id_]
    assert MenuItem.init_get_by_id(item_b.id_).number_of_times_ordered == 3
