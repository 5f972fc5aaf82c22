from typing import Any

from .generation_gateway import GenerationGateway


class GatewayFactory:
    """Registry of generation backends, keyed by the name used in config and on the CLI.

    Keys are case-insensitive (`gateway: Gemini` in config.yml selects
    "gemini"). The gateway class receives the `gateway_settings()` mapping
    as its single `config` argument.
    """

    _registry: dict[str, type[GenerationGateway]] = {}

    @staticmethod
    def _normalize(key: str) -> str:
        return key.strip().lower()

    @classmethod
    def register(cls, key: str, gateway_class: type[GenerationGateway]) -> None:
        """Register (or replace) the gateway served under `key`.

        Raises:
            TypeError: If `gateway_class` is not a GenerationGateway subclass
            ValueError: If `key` is blank
        """
        if not (isinstance(gateway_class, type) and issubclass(gateway_class, GenerationGateway)):
            raise TypeError(f"{gateway_class!r} is not a GenerationGateway subclass")
        name = cls._normalize(key)
        if not name:
            raise ValueError("Gateway key must be non-empty")
        cls._registry[name] = gateway_class

    @classmethod
    def is_registered(cls, key: str) -> bool:
        return cls._normalize(key) in cls._registry

    @classmethod
    def create(cls, key: str, config: dict[str, Any] | None = None) -> GenerationGateway:
        """Instantiate the gateway registered under `key`.

        The remote service is not contacted here; credentials are checked on
        first use or via `validate()`.

        Raises:
            KeyError: If no gateway is registered under `key`
        """
        name = cls._normalize(key)
        if name not in cls._registry:
            raise KeyError(
                f"Gateway '{key}' is not registered "
                f"(registered: {', '.join(cls.list_gateways())})"
            )
        return cls._registry[name](config=config or {})

    @classmethod
    def list_gateways(cls) -> list[str]:
        """Registered gateway keys, sorted."""
        return sorted(cls._registry)

    @classmethod
    def get_all_metadata(cls) -> list[dict[str, Any]]:
        return [cls._registry[name].get_metadata() for name in cls.list_gateways()]

    @classmethod
    def get_metadata(cls, key: str) -> dict[str, Any] | None:
        """Metadata of the gateway under `key`, or None if unknown."""
        gateway_class = cls._registry.get(cls._normalize(key))
        return gateway_class.get_metadata() if gateway_class else None
