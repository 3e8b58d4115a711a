from webcam_gateway.api.dependencies import get_gateway
from webcam_gateway.api.routes import router

__all__ = ["get_gateway", "router"]
