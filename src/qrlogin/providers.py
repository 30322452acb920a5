"""Built-in provider definitions and model-name helpers.

Each :class:`~qrlogin.models.Provider` has a default
:class:`~qrlogin.models.ProviderConfig` describing its QR login endpoints,
the fixed OAuth client identifier, and the OpenAI-compatible API base that
the resulting bearer token is valid for.
"""

from __future__ import annotations

from qrlogin.exceptions import ConfigError
from qrlogin.models import Provider, ProviderConfig

QWEN_OAUTH_BASE = "https://oauth.aliyun.com/v1/oauth"
QWEN_API_BASE = "https://dashscope.aliyuncs.com/compatible-mode/v1"

BUILTIN_PROVIDERS: dict[Provider, ProviderConfig] = {
    Provider.QWEN: ProviderConfig(
        qrcode_url=f"{QWEN_OAUTH_BASE}/qrcode",
        status_url=f"{QWEN_OAUTH_BASE}/qrcode/status",
        token_url=f"{QWEN_OAUTH_BASE}/token",
        client_id="qwen_cli_app",
        scope="openid profile email",
        redirect_uri="oob",
        api_base=QWEN_API_BASE,
        default_model="qwen-plus",
    ),
}

KNOWN_MODELS: dict[Provider, list[str]] = {
    Provider.QWEN: [
        "qwen-turbo",
        "qwen-plus",
        "qwen-max",
        "qwen-max-longcontext",
        "qwen-vl-max",
        "qwen-vl-plus",
        "qwen-audio-turbo",
    ],
}

_MODEL_PREFIXES: dict[Provider, tuple[str, ...]] = {
    Provider.QWEN: ("qwen/", "dashscope/"),
}


def get_provider(name: str | Provider) -> Provider:
    """Resolve a provider name to the enum.

    Raises:
        ConfigError: If *name* is not a known provider.
    """
    if isinstance(name, Provider):
        return name
    try:
        return Provider(name.strip().lower())
    except ValueError:
        known = ", ".join(p.value for p in Provider)
        raise ConfigError(f"Unknown provider '{name}'. Known providers: {known}") from None


def list_models(provider: Provider) -> list[str]:
    """Return the models the provider is known to serve."""
    return list(KNOWN_MODELS.get(provider, []))


def parse_model(provider: Provider, model: str) -> str:
    """Strip a routing prefix such as ``qwen/`` or ``dashscope/`` from *model*."""
    for prefix in _MODEL_PREFIXES.get(provider, ()):
        if model.startswith(prefix):
            return model[len(prefix):]
    return model
