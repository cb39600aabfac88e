"""Centralized constants for the Codespace auth screen."""

# Query parameters
MODE_QUERY_PARAM = 'mode'

# OAuth providers offered on the auth screen
OAUTH_PROVIDERS = ('github', 'google')
OAUTH_PROVIDER_LABELS = {
    'github': 'GitHub',
    'google': 'Google',
}

# Notification copy
SIGNUP_SUCCESS_TITLE = 'Account created!'
SIGNUP_SUCCESS_DESCRIPTION = 'Welcome to CodeSpace. Redirecting to the editor...'
SIGNIN_SUCCESS_TITLE = 'Welcome back!'
SIGNIN_SUCCESS_DESCRIPTION = 'Successfully signed in.'
ERROR_TITLE = 'Error'
DEFAULT_SUBMIT_ERROR = 'Something went wrong. Please try again.'
DEFAULT_OAUTH_ERROR = 'OAuth sign in failed.'

# Notification channel
DEFAULT_NOTIFICATION_LIMIT = 5

# In-memory identity backend
OAUTH_STATE_TTL_SECONDS = 600
CONFIRMATION_TTL_SECONDS = 86400
SESSION_TTL_SECONDS = 3600

# Cookie binding a browser to its identity client
CLIENT_COOKIE_NAME = 'codespace_client'
CLIENT_IDLE_TTL_SECONDS = 3600
