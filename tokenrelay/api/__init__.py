"""Request pipeline, transport and service layer."""

from .pipeline import Request, RequestPipeline, Response, Transport
from .service import BaseApiService
from .transport import AiohttpTransport

__all__ = [
    "AiohttpTransport",
    "BaseApiService",
    "Request",
    "RequestPipeline",
    "Response",
    "Transport",
]
