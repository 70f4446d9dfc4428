import json
import os

DEFAULTS = {
    'PORT': 3000,
    'HOST': '0.0.0.0',
    'BYBIT_BASE_URL': 'https://api.bybit.com',
    'IP_ECHO_URL': 'https://api.ipify.org?format=json',
    'UPSTREAM_TIMEOUT': None,
    'LOG_LEVEL': 'INFO',
}


def load_config(path=None, environ=None):
    """Build the proxy config from defaults, an optional JSON file and the environment.

    The file is named by CONFIG_FILE (default config.json) and may be absent.
    Environment variables win over the file.
    """
    environ = os.environ if environ is None else environ
    path = path or environ.get('CONFIG_FILE', 'config.json')

    config = dict(DEFAULTS)
    if os.path.exists(path):
        with open(path) as config_file:
            config.update(json.load(config_file))

    for key in DEFAULTS:
        if environ.get(key):
            config[key] = environ[key]

    config['PORT'] = int(config['PORT'])
    if config['UPSTREAM_TIMEOUT'] not in (None, ''):
        config['UPSTREAM_TIMEOUT'] = float(config['UPSTREAM_TIMEOUT'])
    else:
        config['UPSTREAM_TIMEOUT'] = None
    config['BYBIT_BASE_URL'] = config['BYBIT_BASE_URL'].rstrip('/')
    return config
