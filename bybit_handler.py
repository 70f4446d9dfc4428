import logging

from custom_http import HTTP, build_query_string, dump_body, read_json
from errors import ValidationError

logger = logging.getLogger("bybit_proxy.signed")

REQUIRED_FIELDS = ('apiKey', 'apiSecret', 'endpoint')


def validate_credentials(data):
    """Raise ValidationError unless apiKey, apiSecret and endpoint are all non-empty."""
    if not isinstance(data, dict) or any(not data.get(field) for field in REQUIRED_FIELDS):
        raise ValidationError(f"Missing required fields: {', '.join(REQUIRED_FIELDS)}")


def handle_signed_request(data: dict, endpoint: str, timeout=None):
    """Sign a GET over the query string and return the upstream JSON."""
    validate_credentials(data)
    params = data.get('params') or {}

    query_string = build_query_string(params)
    path = data['endpoint'] + (f"?{query_string}" if query_string else '')

    with HTTP(endpoint, api_key=data['apiKey'], api_secret=data['apiSecret'], timeout=timeout) as session:
        logger.info("[Signed] GET %s%s", session.endpoint, path)
        response = session.request('GET', path, payload=query_string)
        result = read_json(response)

    logger.info("[Signed] Response: %s - retCode: %s", response.status_code, _ret_code(result))
    return result


def handle_signed_post(data: dict, endpoint: str, timeout=None):
    """Sign a POST over its JSON body and return the upstream JSON."""
    validate_credentials(data)
    body = data.get('body', {})

    body_string = dump_body(body)

    with HTTP(endpoint, api_key=data['apiKey'], api_secret=data['apiSecret'], timeout=timeout) as session:
        logger.info("[Signed POST] %s%s", session.endpoint, data['endpoint'])
        logger.info("[Signed POST] Body: %s", body_string)
        response = session.request(
            'POST',
            data['endpoint'],
            data=body_string,
            payload=body_string,
            headers={'Content-Type': 'application/json'},
        )
        result = read_json(response)

    logger.info("[Signed POST] Response: %s - retCode: %s", response.status_code, _ret_code(result))
    return result


def _ret_code(result):
    return result.get('retCode') if isinstance(result, dict) else None
