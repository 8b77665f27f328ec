from __future__ import annotations

import json

import pytest

SCENARIO_FEED = {
    "syncToken": "1700000000",
    "createDate": "2026-10-16-00-00-00",
    "prefixes": [
        {"service": "CLOUDFRONT", "ip_prefix": "1.2.3.0/24", "region": "GLOBAL"},
        {"service": "OTHER", "ip_prefix": "9.9.9.0/24", "region": "us-east-1"},
    ],
    "ipv6_prefixes": [
        {"service": "CLOUDFRONT", "ipv6_prefix": "2001:db8::/32", "region": "GLOBAL"},
    ],
}


@pytest.fixture
def scenario_feed() -> dict[str, object]:
    return json.loads(json.dumps(SCENARIO_FEED))
