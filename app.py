import logging
from datetime import datetime, timezone

import requests
from flask import Flask, request, jsonify
from flask_cors import CORS

from bybit_handler import handle_signed_request, handle_signed_post
from custom_http import HTTP, AUTH_HEADERS, dump_body, read_json
from errors import ValidationError
from settings import load_config

config = load_config()

logging.basicConfig(
    level=config['LOG_LEVEL'],
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger("bybit_proxy")

app = Flask(__name__)
app.json.sort_keys = False
app.json.ensure_ascii = False

# Allow cross-origin requests
CORS(app)

PROXY_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE']


def handle_error(e, prefix):
    """Turn an exception into a retCode/retMsg body and status code."""
    if isinstance(e, ValidationError):
        return {"retCode": -1, "retMsg": str(e)}, 400
    return {"retCode": -1, "retMsg": f"{prefix}: {e}"}, 500


def forwarded_headers(headers):
    """Copy the recognized auth headers under their canonical names, skipping absent ones."""
    forwarded = {'Content-Type': 'application/json'}
    for name in AUTH_HEADERS:
        value = headers.get(name)
        if value:
            forwarded[name] = value
    return forwarded


@app.route('/', methods=['GET'])
def health():
    return {
        "status": "ok",
        "message": "Bybit API Proxy Server",
        "timestamp": datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
    }


@app.route('/ip', methods=['GET'])
def egress_ip():
    """Report the IP address upstream services see for this process."""
    try:
        response = requests.get(config['IP_ECHO_URL'], timeout=config['UPSTREAM_TIMEOUT'])
        return {"ip": response.json()['ip']}
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        logger.error("[IP] Error: %s", e)
        return {"error": str(e)}, 500


@app.route('/proxy/', defaults={'rest': ''}, methods=PROXY_METHODS)
@app.route('/proxy/<path:rest>', methods=PROXY_METHODS)
def proxy(rest):
    """Forward the request to the upstream as-is, keeping any caller-made signature."""
    query_string = request.query_string.decode('utf-8')
    path = f"/{rest}" + (f"?{query_string}" if query_string else '')
    method = request.method

    kwargs = {'headers': forwarded_headers(request.headers)}
    if method == 'POST':
        body = request.get_json(silent=True)
        if body is not None:
            kwargs['data'] = dump_body(body)

    try:
        with HTTP(config['BYBIT_BASE_URL'], timeout=config['UPSTREAM_TIMEOUT']) as session:
            logger.info("[Proxy] %s %s%s", method, session.endpoint, path)
            response = session.request(method, path, **kwargs)
            data = read_json(response)
    except Exception as e:
        logger.error("[Proxy] Error: %s", e)
        body, status = handle_error(e, "Proxy error")
        return jsonify(body), status

    logger.info("[Proxy] Response: %s - retCode: %s", response.status_code,
                data.get('retCode') if isinstance(data, dict) else None)
    return jsonify(data), response.status_code


@app.route('/signed-request', methods=['POST'])
def signed_request():
    """Sign a GET with caller-supplied credentials and relay the result."""
    data = request.get_json(silent=True)
    try:
        result = handle_signed_request(data, config['BYBIT_BASE_URL'], timeout=config['UPSTREAM_TIMEOUT'])
    except Exception as e:
        logger.error("[Signed] Error: %s", e)
        body, status = handle_error(e, "Request error")
        return jsonify(body), status
    return jsonify(result), 200


@app.route('/signed-post', methods=['POST'])
def signed_post():
    """Sign a POST body with caller-supplied credentials and relay the result."""
    data = request.get_json(silent=True)
    try:
        result = handle_signed_post(data, config['BYBIT_BASE_URL'], timeout=config['UPSTREAM_TIMEOUT'])
    except Exception as e:
        logger.error("[Signed POST] Error: %s", e)
        body, status = handle_error(e, "Request error")
        return jsonify(body), status
    return jsonify(result), 200


if __name__ == '__main__':
    port = config['PORT']
    logger.info("Bybit API Proxy Server running on port %s", port)
    logger.info("Health check: http://localhost:%s/", port)
    logger.info("Proxy endpoint: http://localhost:%s/proxy/{bybit-api-path}", port)
    logger.info("Signed GET request: POST http://localhost:%s/signed-request", port)
    logger.info("Signed POST request: POST http://localhost:%s/signed-post", port)
    app.run(host=config['HOST'], port=port)
