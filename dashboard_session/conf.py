"""Cookie names and lifetimes shared across the package."""

# Encrypted session cookie (OAuth tokens + dashboard selections).
SESSION_COOKIE = "df_google_tokens"
SESSION_MAX_AGE = 60 * 60 * 24 * 30  # 30 days

# Plaintext cookies used only during the OAuth redirect round trip.
STATE_COOKIE = "df_oauth_state"
RETURN_TO_COOKIE = "df_oauth_returnTo"
OAUTH_COOKIE_MAX_AGE = 10 * 60

COOKIE_PATH = "/"
COOKIE_SAMESITE = "Lax"

DEFAULT_RETURN_TO = "/settings/analytics#dashboard"
