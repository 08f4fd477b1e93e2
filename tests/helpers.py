"""Request builders for store tests."""
from aiohttp.test_utils import make_mocked_request

from dashboard_session.conf import SESSION_COOKIE


def request_with_cookies(**cookies):
    """Mocked GET request carrying the given cookies."""
    header = "; ".join(f"{name}={value}" for name, value in cookies.items())
    headers = {"Cookie": header} if header else {}
    return make_mocked_request("GET", "/", headers=headers)


def session_request(envelope):
    return request_with_cookies(**{SESSION_COOKIE: envelope})
