"""Authorization-code flow client built on httpx.

Each provider connector holds one :class:`OAuth2Client`. The client builds
the consent URL, exchanges the returned code for a token and creates
authenticated ``httpx.Client`` instances for calling the provider's API.
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from dashsync.logging import get_logger
from dashsync.social.base import OAuthExchangeError

logger = get_logger(__name__)

# Default timeout for HTTP requests (connect, read, write, pool)
DEFAULT_TIMEOUT = httpx.Timeout(10.0, read=30.0)


@dataclass(frozen=True)
class OAuth2Config:
    """Static OAuth2 client settings of one provider.

    Attributes:
        client_id: OAuth client identifier.
        client_secret: OAuth client secret.
        auth_url: Provider consent page URL.
        token_url: Provider token endpoint.
        redirect_url: Callback URL registered with the provider.
        scopes: Scopes requested on the consent page.
        send_client_credentials_via_post: Send client credentials in the
            token request body instead of an HTTP Basic header, for
            providers that do not support Basic auth.
        tls_client_cert: Path to a client certificate presented to the provider.
        tls_client_key: Path to the key of ``tls_client_cert``.
        tls_client_ca: Path to a CA bundle used to verify the provider.
        tls_skip_verify: Disable server certificate verification.
    """

    client_id: str
    client_secret: str
    auth_url: str
    token_url: str
    redirect_url: str = ""
    scopes: tuple[str, ...] = ()
    send_client_credentials_via_post: bool = False
    tls_client_cert: str = ""
    tls_client_key: str = ""
    tls_client_ca: str = ""
    tls_skip_verify: bool = False


@dataclass
class OAuth2Token:
    """An access token issued by a provider.

    ``extra`` keeps every other field of the token response, such as an
    OpenID Connect ``id_token``.
    """

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str = ""
    expiry: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> OAuth2Token:
        """Build a token from a token endpoint JSON response.

        Raises:
            OAuthExchangeError: If the response carries no access token.
        """
        access_token = data.get("access_token")
        if not access_token:
            error = data.get("error_description") or data.get("error") or "missing access_token"
            raise OAuthExchangeError(f"Token exchange failed: {error}")

        token_type = str(data.get("token_type") or "Bearer")
        # Providers disagree on the case of "bearer"
        if token_type.lower() == "bearer":
            token_type = "Bearer"

        expiry = None
        expires_in = data.get("expires_in")
        if isinstance(expires_in, int | float) and expires_in > 0:
            expiry = datetime.now(tz=UTC) + timedelta(seconds=expires_in)

        known = {"access_token", "token_type", "refresh_token", "expires_in"}
        return cls(
            access_token=str(access_token),
            token_type=token_type,
            refresh_token=str(data.get("refresh_token") or ""),
            expiry=expiry,
            extra={k: v for k, v in data.items() if k not in known},
        )

    @property
    def authorization(self) -> str:
        """Value of the Authorization header for this token."""
        return f"{self.token_type} {self.access_token}"


class OAuth2Client:
    """OAuth2 authorization-code flow for one provider.

    Example::

        client = OAuth2Client(config)
        url = client.auth_code_url("state-123", access_type="online")
        token = client.exchange(code)
        with client.client(token) as http:
            http.get("https://gitlab.example.com/api/v4/user")
    """

    def __init__(
        self,
        config: OAuth2Config,
        timeout: httpx.Timeout | float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the OAuth2 client.

        Args:
            config: Provider client settings.
            timeout: Optional custom timeout configuration.
            transport: Optional httpx transport used by every client this
                object creates.
        """
        self.config = config
        self.timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
        self._transport = transport

    def auth_code_url(self, state: str, **extra: str) -> str:
        """Build the provider consent URL.

        Args:
            state: Opaque CSRF state echoed back by the provider.
            **extra: Additional query parameters, e.g. ``hd`` or ``access_type``.

        Returns:
            The URL to redirect the user agent to.
        """
        params: dict[str, str] = {
            "response_type": "code",
            "client_id": self.config.client_id,
        }
        if self.config.redirect_url:
            params["redirect_uri"] = self.config.redirect_url
        if self.config.scopes:
            params["scope"] = " ".join(self.config.scopes)
        params["state"] = state
        params.update(extra)
        return str(httpx.URL(self.config.auth_url).copy_merge_params(params))

    def exchange(self, code: str) -> OAuth2Token:
        """Exchange an authorization code for a token.

        Args:
            code: The code returned to the redirect URL.

        Returns:
            The issued token.

        Raises:
            OAuthExchangeError: If the request fails or the response has no token.
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
        }
        if self.config.redirect_url:
            data["redirect_uri"] = self.config.redirect_url

        auth: tuple[str, str] | None = None
        if self.config.send_client_credentials_via_post:
            data["client_id"] = self.config.client_id
            data["client_secret"] = self.config.client_secret
        else:
            auth = (self.config.client_id, self.config.client_secret)

        try:
            with self.new_http_client(headers={"Accept": "application/json"}) as http:
                response = http.post(self.config.token_url, data=data, auth=auth)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as e:
            raise OAuthExchangeError(f"Token exchange timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise OAuthExchangeError(
                f"Token exchange failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise OAuthExchangeError(f"Token exchange request failed: {e}") from e
        except ValueError as e:
            raise OAuthExchangeError(f"Token exchange returned invalid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise OAuthExchangeError("Token exchange returned an unexpected response")

        token = OAuth2Token.from_response(payload)
        logger.debug("Exchanged authorization code at %s", self.config.token_url)
        return token

    def client(self, token: OAuth2Token) -> httpx.Client:
        """Create an HTTP client that authenticates with ``token``.

        The caller owns the returned client and must close it.
        """
        return self.new_http_client(headers={"Authorization": token.authorization})

    def new_http_client(self, headers: dict[str, str] | None = None) -> httpx.Client:
        """Create an HTTP client honoring the provider's TLS settings."""
        return httpx.Client(
            headers=headers,
            timeout=self.timeout,
            verify=self._verify(),
            transport=self._transport,
        )

    def _verify(self) -> ssl.SSLContext | bool:
        config = self.config
        if not (
            config.tls_client_ca
            or config.tls_skip_verify
            or (config.tls_client_cert and config.tls_client_key)
        ):
            return True

        context = ssl.create_default_context(cafile=config.tls_client_ca or None)
        if config.tls_skip_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        if config.tls_client_cert and config.tls_client_key:
            context.load_cert_chain(config.tls_client_cert, config.tls_client_key)
        return context
