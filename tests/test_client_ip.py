from starlette.requests import Request

from kai.client_ip import extract_client_ip


def _request(headers=None, client=("127.0.0.1", 5000)):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/chat/stream",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_first_forwarded_for_entry_wins():
    req = _request({"X-Forwarded-For": " 203.0.113.1 , 10.0.0.2, 10.0.0.3"})

    assert extract_client_ip(req) == "203.0.113.1"


def test_peer_address_used_without_forwarded_for():
    assert extract_client_ip(_request(client=("192.0.2.44", 1234))) == "192.0.2.44"


def test_ipv4_mapped_ipv6_prefix_is_stripped():
    assert extract_client_ip(_request(client=("::ffff:192.0.2.44", 1234))) == "192.0.2.44"


def test_plain_ipv6_peer_is_kept():
    assert extract_client_ip(_request(client=("2001:db8::1", 1234))) == "2001:db8::1"


def test_unknown_when_no_peer_information():
    assert extract_client_ip(_request(client=None)) == "unknown"
