from decimal import Decimal

# ROLES
ROLE_CUSTOMER = 'customer'
ROLE_ADMIN = 'admin'
ROLE_RESTAURANT_OWNER = 'restaurant_owner'
ROLE_DELIVERY_WORKER = 'delivery_worker'

ROLES = [ROLE_CUSTOMER, ROLE_ADMIN, ROLE_RESTAURANT_OWNER, ROLE_DELIVERY_WORKER]
SELF_REGISTRATION_ROLES = [ROLE_CUSTOMER, ROLE_RESTAURANT_OWNER, ROLE_DELIVERY_WORKER]

# ORDER STATUSES
ORDER_PLACED = 'PLACED'
ORDER_PREPARING = 'PREPARING'
ORDER_COOKING = 'COOKING'
ORDER_PACKED = 'PACKED'
ORDER_DISPATCHED = 'DISPATCHED'
ORDER_DELIVERED = 'DELIVERED'
ORDER_CANCELLED = 'CANCELLED'

ORDER_STATUSES = [ORDER_PLACED, ORDER_PREPARING, ORDER_COOKING, ORDER_PACKED,
                  ORDER_DISPATCHED, ORDER_DELIVERED, ORDER_CANCELLED]

ORDER_STATUS_TRANSITIONS = {
    ORDER_PLACED: [ORDER_PREPARING, ORDER_CANCELLED],
    ORDER_PREPARING: [ORDER_COOKING, ORDER_CANCELLED],
    ORDER_COOKING: [ORDER_PACKED, ORDER_CANCELLED],
    ORDER_PACKED: [ORDER_DISPATCHED, ORDER_CANCELLED],
    ORDER_DISPATCHED: [ORDER_DELIVERED, ORDER_CANCELLED],
    ORDER_DELIVERED: [],
    ORDER_CANCELLED: []
}

ASSIGNABLE_STATUSES = [ORDER_PLACED, ORDER_PREPARING]

# DELIVERY STATUSES
DELIVERY_ASSIGNED = 'ASSIGNED'
DELIVERY_DELIVERED = 'DELIVERED'

# PAYMENTS
PAYMENT_SUCCESS = 'SUCCESS'
PAYMENT_TOLERANCE = Decimal('0.01')

# BILLING
TAX_RATE = Decimal('0.05')
CGST_RATE = Decimal('0.025')
SGST_RATE = Decimal('0.025')
CENTS = Decimal('1.00')

# MENU
VEG = 'VEG'
NON_VEG = 'NON_VEG'

# RECOMMENDATIONS
POPULAR_ITEMS_LIMIT = 5
VEG_PREFERENCE_THRESHOLD = 0.7
RECOMMENDATION_CACHE_TTL_SECONDS = 3600

# GEO
EARTH_RADIUS_KM = 6371.0
