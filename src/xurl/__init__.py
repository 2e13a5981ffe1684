"""xurl -- an authenticated, curl-like command-line client for the X API.

The package keeps a multi-app credential store on disk (bearer tokens,
OAuth 1.0a identities and per-user OAuth 2.0 tokens), decides which
credential to attach to each request, and dispatches synchronous,
streaming, and multipart requests against the configured API base URL.

Typical workflow::

    xurl auth apps add work --client-id ID --client-secret SECRET
    xurl auth oauth2                  # browser login, token saved
    xurl request /2/users/me          # authenticated GET

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for credentials, apps, and request options.
    config: Environment-derived configuration and on-disk paths.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric process exit codes.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "1.0.0"
