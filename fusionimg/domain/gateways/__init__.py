from .generation_gateway import GenerationGateway
from .gateway_factory import GatewayFactory
from .gemini_gateway import GeminiGateway

# Register built-in gateways
GatewayFactory.register("gemini", GeminiGateway)

__all__ = ["GenerationGateway", "GatewayFactory", "GeminiGateway"]
