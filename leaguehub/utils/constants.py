"""
Constants used across the league management system.
"""

# Page paths used by the authorization gate
SIGNIN_PATH = "/auth/signin"
PENDING_PATH = "/pending"
UNAUTHORIZED_PATH = "/unauthorized"
AUTH_PATH_PREFIX = "/auth"

# Cookie that carries the access token for browser page navigation
ACCESS_TOKEN_COOKIE = "access_token"

# Notifications endpoint returns only the most recent rows
NOTIFICATION_LIST_LIMIT = 50

# Registration rules
MIN_PASSWORD_LENGTH = 6

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
