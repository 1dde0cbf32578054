# API Route Constants

# Base API
API_BASE = '/api'

# Event routes
EVENT_BASE = f'{API_BASE}/event'
EVENT_CREATE = EVENT_BASE
EVENT_LIST = EVENT_BASE
EVENT_GET = f'{EVENT_BASE}/{{event_id}}'
EVENT_UPDATE = f'{EVENT_BASE}/{{event_id}}'
EVENT_RECONCILE = f'{EVENT_BASE}/{{event_id}}/reconcile'

# Reservation routes
RESERVATION_BASE = f'{API_BASE}/reservation'
RESERVATION_CREATE = RESERVATION_BASE
RESERVATION_MY_RESERVATIONS = f'{RESERVATION_BASE}/my_reservations'
RESERVATION_GET = f'{RESERVATION_BASE}/{{reservation_id}}'
RESERVATION_CANCEL = f'{RESERVATION_BASE}/{{reservation_id}}/cancel'
RESERVATION_PAY = f'{RESERVATION_BASE}/{{reservation_id}}/pay'
RESERVATION_PAYMENTS = f'{RESERVATION_BASE}/{{reservation_id}}/payments'

# System routes
HEALTH = '/health'
METRICS = '/metrics'
