users_pk = 'users'
users_sk = '{user_id}'

restaurants_pk = 'restaurants'
restaurants_sk = '{restaurant_id}'

food_menus_pk = 'food_menus'
food_menus_sk = '{food_menu_id}'

menu_items_pk = 'menu_items'
menu_items_sk = '{menu_item_id}'

carts_pk = 'carts'
carts_sk = '{user_id}'

orders_pk = 'orders'
orders_sk = '{order_id}'

coupons_pk = 'coupons'
coupons_sk = '{coupon_id}'

payments_pk = 'payments'
payments_sk = '{payment_id}'

deliveries_pk = 'deliveries'
deliveries_sk = '{delivery_id}'

recommendations_cache_pk = 'cache_recommendations'
recommendations_cache_sk = '{cache_key}'
