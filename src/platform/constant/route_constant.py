# API Route Constants

# Base API
API_BASE = '/api'

# Operational routes
METRICS = '/metrics'

# Guest routes
GUEST_BASE = f'{API_BASE}/guests'

# Path params carrying the audit correlation id
CORRELATION_PATH_PARAMS = ('confirmation_no', 'name_id')
