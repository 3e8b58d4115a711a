from webcam_gateway.services.allowlist import Allowlist
from webcam_gateway.services.extractor import BufferedHtmlScanner, StreamingHtmlScanner
from webcam_gateway.services.gateway import WebcamGateway, build_gateway
from webcam_gateway.services.upstream import UpstreamFetcher

__all__ = [
    "Allowlist",
    "BufferedHtmlScanner",
    "StreamingHtmlScanner",
    "UpstreamFetcher",
    "WebcamGateway",
    "build_gateway",
]
