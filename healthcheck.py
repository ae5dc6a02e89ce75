"""Container health probe: exits 0 when /api/health answers {"ok": true}."""

import json
import os
import sys
from urllib.error import URLError
from urllib.request import urlopen

DEFAULT_URL = "http://127.0.0.1:{port}/api/health"


def probe(url: str, timeout: float = 3.0) -> bool:
    try:
        with urlopen(url, timeout=timeout) as response:
            if response.status != 200:
                return False
            data = json.loads(response.read())
    except (URLError, OSError, ValueError):
        return False
    return isinstance(data, dict) and data.get("ok") is True


def main() -> int:
    url = os.environ.get("BILLBOOK_HEALTHCHECK_URL") or DEFAULT_URL.format(port=os.environ.get("BILLBOOK_PORT", "4000"))
    return 0 if probe(url) else 1


if __name__ == "__main__":
    sys.exit(main())
