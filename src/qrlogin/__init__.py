"""qrlogin -- QR-code OAuth login for hosted LLM providers.

This package signs a command-line user in to a remote LLM service (Qwen on
Alibaba Cloud) without a local redirect listener. The user scans a QR code
with the provider's mobile app, the CLI polls the authorization server until
the grant is approved, and the resulting bearer token is stored on disk for
downstream API clients.

Typical workflow::

    qrlogin auth login          # scan the QR code, wait for approval
    qrlogin auth status         # inspect the stored credential
    qrlogin auth logout         # forget it

The login flow uses PKCE (S256) so an intercepted authorization code is
useless without the verifier held by this process.

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and provider overrides.
    providers: Built-in provider endpoints and model catalogue.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stderr diagnostics with Rich support.
"""

__version__ = "0.1.0"
