from webcam_gateway.models.errors import ErrorBody

__all__ = ["ErrorBody"]
