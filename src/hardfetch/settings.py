"""
Settings for hardfetch.

These settings are global and can be accessed from any module in the hardfetch package.

They provide the defaults used when a request leaves an option unset, and the
limits the URL validator enforces.

The SETTINGS dict structure follows the structure of hardfetch submodules.

Expected usage behavior:

```python
from hardfetch.settings import SETTINGS

CLIENT_SETTINGS = SETTINGS.http.client
```

Once initialized, the settings are expected to be immutable (not enforced).
"""

from hardfetch import __version__

SETTINGS = {
    'http': {
        'client': {
            'timeout': 30000,       # milliseconds, per attempt
            'retries': 3,           # attempts = retries + 1
            'retry_delay': 1000,    # milliseconds, doubled on every retry
            'user_agent': f"hardfetch/{__version__}",
            'api_key_header': "X-API-Key",
        },
        'policy': {
            'retry': {
                # 4xx statuses that are still worth another attempt
                'retryable_client_statuses': (408, 429),
                'max_delay': None,  # milliseconds, None disables the cap
                'jitter': False,
            },
            'validation': {
                'max_url_length': 2048,
                'allowed_schemes': ("http", "https"),
                'blocked_hosts': ("localhost", "127.0.0.1", "::1"),
                'private_networks': (
                    "10.0.0.0/8",
                    "172.16.0.0/12",
                    "192.168.0.0/16",
                    "169.254.0.0/16",
                ),
            },
        },
    },
}


class AttrDict(dict):
    """
    A dictionary subclass that allows dot-notation access while
    recursively converting nested dictionaries.
    """
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Point the instance __dict__ to itself to allow attribute access
        self.__dict__ = self
        for key, value in self.items():
            self[key] = self._convert(value)

    @classmethod
    def _convert(cls, value):
        """Recursively converts dicts to AttrDicts, leaving other types alone."""
        if isinstance(value, dict):
            return cls(value)
        elif isinstance(value, list):
            return [cls._convert(item) for item in value]
        return value

    def __setitem__(self, key, value):
        super().__setitem__(key, self._convert(value))

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError as exc:
            raise AttributeError(f"AttrDict object has no attribute '{key}'") from exc


SETTINGS = AttrDict(SETTINGS)
CLIENT_SETTINGS = SETTINGS.http.client
RETRY_SETTINGS = SETTINGS.http.policy.retry
VALIDATION_SETTINGS = SETTINGS.http.policy.validation
