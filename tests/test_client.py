import pytest

from webcam_gateway.client import GatewayClient


def test_image_url_encodes_source():
    client = GatewayClient("https://gateway.example.org")
    assert client.image_url("https://example.com/a b.jpg?x=1&y=2") == (
        "https://gateway.example.org/api/image?url=https%3A%2F%2Fexample.com%2Fa+b.jpg%3Fx%3D1%26y%3D2"
    )


def test_html_image_url_with_and_without_selector():
    client = GatewayClient("https://gateway.example.org/ignored/path")
    assert client.html_image_url("https://example.com/cam") == (
        "https://gateway.example.org/api/html-image?page=https%3A%2F%2Fexample.com%2Fcam"
    )
    assert client.html_image_url("https://example.com/cam", selector="img#live") == (
        "https://gateway.example.org/api/html-image?page=https%3A%2F%2Fexample.com%2Fcam&selector=img%23live"
    )


def test_custom_prefix():
    client = GatewayClient("http://localhost:8787", api_prefix="/gw/")
    assert client.image_url("https://example.com/x.jpg").startswith("http://localhost:8787/gw/image?url=")


def test_relative_base_url_is_rejected():
    with pytest.raises(ValueError, match="must be absolute"):
        GatewayClient("/api")
