from chalice import Chalice

from chalicelib import auth, users, restaurants, food_menus, menu_items, carts, orders, coupons, billing, \
    payments, deliveries, recommendations

app = Chalice(app_name='food-delivery')

app.debug = True


@app.route('/health-check', methods=['GET'], cors=True)
def health_check():
    return {'health': 'check'}


# AUTH
@app.route('/users', methods=['POST'], cors=True)
def register_user():
    return users.endpoint_register(app.current_request)


@app.route('/auth/register', methods=['POST'], cors=True)
def auth_register():
    return users.endpoint_register(app.current_request)


@app.route('/auth/login', methods=['POST'], cors=True)
def login():
    return auth.endpoint_login(app.current_request)


@app.route('/auth/refresh', methods=['POST'], cors=True)
def refresh_token():
    return auth.endpoint_refresh(app.current_request)


@app.route('/auth/logout', methods=['POST'], cors=True)
def logout():
    return auth.endpoint_logout(app.current_request)


# USERS
@app.route('/api/users/{user_id}', methods=['GET'], cors=True)
def get_user(user_id):
    return users.endpoint_get_user(app.current_request, user_id)


@app.route('/api/users/{user_id}', methods=['PUT'], cors=True)
def update_user(user_id):
    return users.endpoint_update_user(app.current_request, user_id)


@app.route('/api/users/{user_id}', methods=['DELETE'], cors=True)
def delete_user(user_id):
    return users.endpoint_delete_user(app.current_request, user_id)


@app.route('/api/users/{user_id}/like/{menu_item_id}', methods=['POST'], cors=True)
def like_menu_item(user_id, menu_item_id):
    return users.endpoint_like_menu_item(app.current_request, user_id, menu_item_id)


@app.route('/api/users/{user_id}/liked', methods=['GET'], cors=True)
def get_liked_menu_items(user_id):
    return users.endpoint_get_liked_menu_items(app.current_request, user_id)


@app.route('/api/users/{user_id}/preferences', methods=['PUT'], cors=True)
def update_preferences(user_id):
    return recommendations.endpoint_update_preferences(app.current_request, user_id)


@app.route('/api/users/{user_id}/recommendations', methods=['GET'], cors=True)
def get_recommendations(user_id):
    return recommendations.endpoint_get_recommendations(app.current_request, user_id)


@app.route('/api/users/{user_id}/restaurants/nearby', methods=['GET'], cors=True)
def get_nearby_restaurants(user_id):
    """
    ?minRating=4&maxDistanceKm=5
    """
    return users.endpoint_get_nearby_restaurants(app.current_request, user_id)


# CART
@app.route('/api/users/cart', methods=['PUT'], cors=True)
def update_cart():
    """
    ?userId=...&menuItemId=...&quantity=...
    """
    return carts.endpoint_update_cart(app.current_request)


@app.route('/api/users/cart', methods=['GET'], cors=True)
def get_cart():
    return carts.endpoint_get_cart(app.current_request)


@app.route('/api/users/cart', methods=['DELETE'], cors=True)
def clear_cart():
    return carts.endpoint_clear_cart(app.current_request)


@app.route('/api/users/cart/items/{menu_item_id}', methods=['DELETE'], cors=True)
def remove_item_from_cart(menu_item_id):
    return carts.endpoint_remove_item_from_cart(app.current_request, menu_item_id)


# ORDERS
@app.route('/api/users/orders', methods=['PUT'], cors=True)
def place_order():
    """
    ?userId=...&restaurantId=... with {"delivery_address": "..."} in the body,
    the order is built from the user's cart
    """
    return orders.endpoint_place_order(app.current_request)


@app.route('/api/users/orders', methods=['GET'], cors=True)
def get_user_orders():
    """
    ?userId=...[&restaurantId=...]
    """
    return orders.endpoint_get_user_orders(app.current_request)


@app.route('/api/users/orders/{order_id}', methods=['GET'], cors=True)
def get_order(order_id):
    return orders.endpoint_get_order(app.current_request, order_id)


@app.route('/api/users/orders/{order_id}/status', methods=['GET'], cors=True)
def get_order_status(order_id):
    return orders.endpoint_get_order_status(app.current_request, order_id)


@app.route('/api/users/orders/{order_id}/status', methods=['PUT'], cors=True)
def update_order_status(order_id):
    """
    restaurant owner or admin operation, ?status=PREPARING
    """
    return orders.endpoint_update_order_status(app.current_request, order_id)


@app.route('/api/users/orders/{order_id}/cancel', methods=['POST'], cors=True)
def cancel_order(order_id):
    return orders.endpoint_cancel_order(app.current_request, order_id)


@app.route('/api/users/orders/{order_id}/coupon', methods=['POST'], cors=True)
def apply_coupon(order_id):
    """
    ?couponCode=...
    """
    return coupons.endpoint_apply_coupon(app.current_request, order_id)


@app.route('/api/users/orders/{order_id}/bill', methods=['GET'], cors=True)
def get_bill(order_id):
    return billing.endpoint_get_bill(app.current_request, order_id)


@app.route('/api/users/orders/{order_id}/payment', methods=['GET'], cors=True)
def get_order_payment(order_id):
    return payments.endpoint_get_order_payment(app.current_request, order_id)


@app.route('/api/users/orders/{order_id}/feedback', methods=['POST'], cors=True)
def leave_feedback(order_id):
    """
    {"rating": 1..5, "feedback": "..."}, only after delivery
    """
    return deliveries.endpoint_leave_feedback(app.current_request, order_id)


@app.route('/api/restaurants/{restaurant_id}/orders', methods=['GET'], cors=True)
def get_restaurant_orders(restaurant_id):
    return orders.endpoint_get_restaurant_orders(app.current_request, restaurant_id)


# PAYMENTS
@app.route('/api/users/payments', methods=['POST'], cors=True)
def record_payment():
    """
    ?orderId=...&amount=...&paymentMethod=...
    """
    return payments.endpoint_record_payment(app.current_request)


@app.route('/api/users/payments/validate', methods=['POST'], cors=True)
def validate_payment():
    """
    ?orderId=...&amount=...
    """
    return payments.endpoint_validate_payment(app.current_request)


@app.route('/api/users/payments/{payment_id}', methods=['GET'], cors=True)
def get_payment(payment_id):
    return payments.endpoint_get_payment(app.current_request, payment_id)


# DELIVERIES
@app.route('/api/users/deliveries/{delivery_id}', methods=['GET'], cors=True)
def get_delivery(delivery_id):
    return deliveries.endpoint_get_delivery(app.current_request, delivery_id)


@app.route('/api/users/deliveries/{delivery_id}/delivered', methods=['PUT'], cors=True)
def mark_delivered(delivery_id):
    """
    assigned delivery worker operation
    """
    return deliveries.endpoint_mark_delivered(app.current_request, delivery_id)


@app.route('/api/delivery-workers/{delivery_boy_id}/deliveries', methods=['GET'], cors=True)
def get_worker_deliveries(delivery_boy_id):
    return deliveries.endpoint_get_worker_deliveries(app.current_request, delivery_boy_id)


# RESTAURANTS
@app.route('/api/restaurants', methods=['GET'], cors=True)
def get_restaurants():
    """
    ?name=...&city=... narrow the list
    """
    return restaurants.endpoint_get_restaurants(app.current_request)


@app.route('/api/restaurants', methods=['POST'], cors=True)
def create_restaurant():
    """
    restaurant owner or admin operation
    """
    return restaurants.endpoint_create_restaurant(app.current_request)


@app.route('/api/restaurants/{restaurant_id}', methods=['GET'], cors=True)
def get_restaurant(restaurant_id):
    return restaurants.endpoint_get_restaurant(app.current_request, restaurant_id)


@app.route('/api/restaurants/{restaurant_id}', methods=['PUT'], cors=True)
def update_restaurant(restaurant_id):
    """
    restaurant owner or admin operation
    """
    return restaurants.endpoint_update_restaurant(app.current_request, restaurant_id)


@app.route('/api/restaurants/{restaurant_id}/owned', methods=['GET'], cors=True)
def get_owned_restaurant(restaurant_id):
    return restaurants.endpoint_get_owned_restaurant(app.current_request, restaurant_id)


# MENUS
@app.route('/api/restaurants/{restaurant_id}/menu', methods=['POST'], cors=True)
def create_food_menu(restaurant_id):
    return food_menus.endpoint_create_food_menu(app.current_request, restaurant_id)


@app.route('/api/restaurants/{restaurant_id}/menu', methods=['GET'], cors=True)
def get_restaurant_menu(restaurant_id):
    return menu_items.endpoint_get_restaurant_menu(app.current_request, restaurant_id)


@app.route('/api/restaurants/{restaurant_id}/menu-items', methods=['POST'], cors=True)
def create_restaurant_menu_item(restaurant_id):
    return menu_items.endpoint_create_restaurant_menu_item(app.current_request, restaurant_id)


@app.route('/api/restaurants/{restaurant_id}/menu-items/cuisine/{cuisine_type}', methods=['GET'], cors=True)
def get_menu_items_by_cuisine(restaurant_id, cuisine_type):
    return menu_items.endpoint_get_menu_items_by_cuisine(app.current_request, restaurant_id, cuisine_type)


@app.route('/api/restaurants/{restaurant_id}/menu-items/meal-type/{meal_type}', methods=['GET'], cors=True)
def get_menu_items_by_meal_type(restaurant_id, meal_type):
    return menu_items.endpoint_get_menu_items_by_meal_type(app.current_request, restaurant_id, meal_type)


@app.route('/api/menus/{food_menu_id}', methods=['GET'], cors=True)
def get_food_menu(food_menu_id):
    return food_menus.endpoint_get_food_menu(app.current_request, food_menu_id)


@app.route('/api/menus/{food_menu_id}/items', methods=['POST'], cors=True)
def create_menu_item(food_menu_id):
    return menu_items.endpoint_create_menu_item(app.current_request, food_menu_id)


@app.route('/api/menu-items/{menu_item_id}', methods=['GET'], cors=True)
def get_menu_item(menu_item_id):
    return menu_items.endpoint_get_menu_item(app.current_request, menu_item_id)


@app.route('/api/menu-items/{menu_item_id}', methods=['PUT'], cors=True)
def update_menu_item(menu_item_id):
    return menu_items.endpoint_update_menu_item(app.current_request, menu_item_id)


# COUPONS
@app.route('/api/coupons/{code}', methods=['GET'], cors=True)
def get_coupon(code):
    return coupons.endpoint_get_coupon(app.current_request, code)


# ADMIN
@app.route('/api/admin/orders', methods=['GET'], cors=True)
def get_all_orders():
    return orders.endpoint_get_all_orders(app.current_request)


@app.route('/api/admin/orders/{order_id}/assign-delivery', methods=['PUT'], cors=True)
def assign_delivery(order_id):
    """
    {"deliveryBoyId": "..."}, the order moves to DISPATCHED
    """
    return deliveries.endpoint_assign_delivery(app.current_request, order_id)


@app.route('/api/admin/deliveries', methods=['POST'], cors=True)
def add_delivery():
    return deliveries.endpoint_add_delivery(app.current_request)


@app.route('/api/admin/coupons', methods=['POST'], cors=True)
def create_coupon():
    return coupons.endpoint_create_coupon(app.current_request)


@app.route('/api/admin/coupons/{code}', methods=['PUT'], cors=True)
def update_coupon(code):
    return coupons.endpoint_update_coupon(app.current_request, code)


@app.route('/api/admin/coupons/{code}', methods=['DELETE'], cors=True)
def delete_coupon(code):
    return coupons.endpoint_delete_coupon(app.current_request, code)
