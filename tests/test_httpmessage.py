import pytest

from reactorhttp.httpmessage import HttpRequest, HttpResponse


def test_request_defaults_to_http_1_1():
    request = HttpRequest()
    assert request.version == "HTTP/1.1"
    assert request.headers == {}
    assert request.params == {}


def test_request_header_lookup():
    request = HttpRequest()
    request.set_header("Host", "example.com")
    assert request.has_header("Host")
    assert request.header("Host") == "example.com"
    assert not request.has_header("Accept")
    assert request.header("Accept") == ""


def test_request_header_keeps_first_value():
    request = HttpRequest()
    request.set_header("X-Test", "first")
    request.set_header("X-Test", "second")
    assert request.header("X-Test") == "first"


def test_request_params():
    request = HttpRequest()
    request.set_param("q", "search")
    request.set_param("q", "other")
    assert request.has_param("q")
    assert request.param("q") == "search"
    assert request.param("missing") == ""
    assert not request.has_param("missing")


def test_content_length():
    request = HttpRequest()
    assert request.content_length() == 0
    request.set_header("Content-Length", "42")
    assert request.content_length() == 42


def test_content_length_rejects_garbage():
    request = HttpRequest()
    request.set_header("Content-Length", "abc")
    with pytest.raises(ValueError):
        request.content_length()


@pytest.mark.parametrize(
    "headers, expected",
    [
        ({}, True),
        ({"Connection": "close"}, True),
        ({"Connection": "keep-alive"}, False),
    ],
)
def test_request_close(headers, expected):
    request = HttpRequest(headers=dict(headers))
    assert request.close() is expected


def test_request_reset():
    request = HttpRequest(method="GET", path="/a", version="HTTP/1.0", body=b"x")
    request.set_header("A", "1")
    request.set_param("b", "2")
    request.reset()
    assert request == HttpRequest()


def test_response_defaults():
    response = HttpResponse()
    assert response.status == 200
    assert response.body == b""
    assert response.redirect is False


def test_response_redirect_default_status():
    response = HttpResponse()
    response.set_redirect("/elsewhere")
    assert response.redirect
    assert response.redirect_url == "/elsewhere"
    assert response.status == 302


def test_response_redirect_custom_status():
    response = HttpResponse()
    response.set_redirect("/moved", 301)
    assert response.status == 301


def test_response_set_body_from_text():
    response = HttpResponse()
    response.set_body("hello", "text/plain")
    assert response.body == b"hello"
    assert response.header("Content-Type") == "text/plain"


def test_response_set_body_keeps_first_content_type():
    response = HttpResponse()
    response.set_body(b"a", "text/plain")
    response.set_body(b"b", "text/html")
    assert response.body == b"b"
    assert response.header("Content-Type") == "text/plain"


def test_response_close():
    response = HttpResponse()
    assert response.close() is True
    response.set_header("Connection", "keep-alive")
    assert response.close() is False


def test_response_reset():
    response = HttpResponse(status=404)
    response.set_body("x", "text/plain")
    response.set_redirect("/y")
    response.reset()
    assert response == HttpResponse()