import hmac
import json
import time
import logging
from requests import Session, RequestException

from errors import UpstreamTransportError

logger = logging.getLogger("bybit_proxy.http")

RECV_WINDOW = '20000'

API_KEY_HEADER = 'X-BAPI-API-KEY'
SIGN_HEADER = 'X-BAPI-SIGN'
TIMESTAMP_HEADER = 'X-BAPI-TIMESTAMP'
RECV_WINDOW_HEADER = 'X-BAPI-RECV-WINDOW'

AUTH_HEADERS = (API_KEY_HEADER, SIGN_HEADER, TIMESTAMP_HEADER, RECV_WINDOW_HEADER)


def sign(secret, message):
    """HMAC-SHA256 of a UTF-8 message, as lowercase hex."""
    return hmac.new(
        secret.encode('utf-8'),
        message.encode('utf-8'),
        digestmod='sha256'
    ).hexdigest()


def to_text(value):
    """Render a JSON value the way a JavaScript template literal would."""
    if value is True:
        return 'true'
    if value is False:
        return 'false'
    if value is None:
        return 'null'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ','.join('' if item is None else to_text(item) for item in value)
    if isinstance(value, dict):
        return '[object Object]'
    return str(value)


def build_query_string(params):
    """Join params as key=value pairs in the order given. Values are not URL-encoded."""
    if not params:
        return ''
    return '&'.join(f"{key}={to_text(value)}" for key, value in params.items())


def dump_body(body):
    """Serialize a JSON body the way JSON.stringify does: compact, key order kept."""
    return json.dumps(body, separators=(',', ':'), ensure_ascii=False)


def current_timestamp():
    return str(int(time.time() * 1000))


def read_json(response):
    """Decode an upstream response body, treating non-JSON as a transport failure."""
    try:
        return response.json()
    except ValueError as e:
        raise UpstreamTransportError(f"invalid JSON from upstream (status {response.status_code}): {e}") from e


class HTTP(Session):
    """Session bound to one upstream endpoint.

    When built with an api key and secret, every request is signed with the
    four X-BAPI-* headers. Sessions are meant to live for a single inbound
    request so credentials are never shared between callers.
    """

    def __init__(self, endpoint, api_key=None, api_secret=None, timeout=None):
        super().__init__()
        self.endpoint = endpoint.rstrip('/')
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout

    def auth_headers(self, payload, timestamp=None):
        if timestamp is None:
            timestamp = current_timestamp()
        signature = sign(self.api_secret, timestamp + self.api_key + RECV_WINDOW + payload)
        return {
            API_KEY_HEADER: self.api_key,
            SIGN_HEADER: signature,
            TIMESTAMP_HEADER: timestamp,
            RECV_WINDOW_HEADER: RECV_WINDOW,
        }

    def request(self, method, path, *args, payload=None, **kwargs):
        """Send a request to endpoint + path.

        payload is the exact text that gets signed. It defaults to the body
        for POST and to '' otherwise; callers signing a query string pass
        the string they built.
        """
        url = self.endpoint + path
        body = kwargs.get('data')

        # Sign the request if needed
        if self.api_key and self.api_secret:
            if payload is None:
                payload = (body or '') if method.upper() == 'POST' else ''
            kwargs['headers'] = kwargs.get('headers') or {}
            kwargs['headers'].update(self.auth_headers(payload))

        # str bodies would otherwise go out latin-1 encoded
        if isinstance(body, str):
            kwargs['data'] = body.encode('utf-8')

        if self.timeout is not None:
            kwargs.setdefault('timeout', self.timeout)

        try:
            return super().request(method, url, *args, **kwargs)
        except RequestException as e:
            logger.error("%s %s failed: %s", method.upper(), url, e)
            raise UpstreamTransportError(str(e)) from e
