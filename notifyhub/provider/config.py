"""Provider configuration models."""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


def _mask(secret: str | None) -> str:
    if not secret or len(secret) < 8:
        return "***"
    return f"{secret[:4]}...{secret[-4:]}"


class ProviderConfig(BaseModel, ABC):
    """Settings shared by every provider."""

    enabled: bool = Field(default=True, description="Whether the provider may send")
    connection_timeout: float = Field(default=30.0, gt=0, description="Connect timeout in seconds")
    read_timeout: float = Field(default=30.0, gt=0, description="Read timeout in seconds")
    test_mode: bool = Field(default=False, description="Use test credentials/endpoints")
    max_retries: int = Field(default=3, ge=0, description="Provider-side retry budget")

    @property
    @abstractmethod
    def provider_type(self) -> str:
        """Channel family served by this configuration."""
        pass

    @abstractmethod
    def is_valid(self) -> bool:
        """Return whether all required credentials are present."""
        pass


class EmailProviderConfig(ProviderConfig):
    """Email provider credentials and sending options."""

    api_key: str = Field(default="", description="Provider API key")
    api_secret: str = Field(default="", description="Provider API secret")
    api_base_url: str | None = Field(default=None, description="Override API endpoint")
    from_email: str = Field(default="", description="Default sender address")
    from_name: str | None = Field(default=None, description="Default sender display name")
    reply_to_email: str | None = Field(default=None, description="Default reply-to address")
    track_opens: bool = False
    track_clicks: bool = False
    sandbox_mode: bool = Field(default=False, description="Accept mail without delivering it")

    @property
    def provider_type(self) -> str:
        return "email"

    @property
    def api_key_masked(self) -> str:
        return _mask(self.api_key)

    def is_valid(self) -> bool:
        return bool(self.api_key.strip()) and bool(self.from_email.strip())


class SmsProviderConfig(ProviderConfig):
    """SMS provider credentials and messaging options."""

    account_sid: str = Field(default="", description="Account identifier")
    auth_token: str = Field(default="", description="Authentication token")
    api_base_url: str | None = None
    from_phone_number: str = Field(default="", description="Default sender number")
    short_code: str | None = None
    request_delivery_status: bool = True
    status_callback_url: str | None = None
    max_price_per_sms: float | None = Field(default=None, gt=0)
    validity_period: int = Field(default=86400, gt=0, description="Message validity in seconds")
    use_test_credentials: bool = False

    @property
    def provider_type(self) -> str:
        return "sms"

    @property
    def auth_token_masked(self) -> str:
        return _mask(self.auth_token)

    def is_valid(self) -> bool:
        return (
            bool(self.account_sid.strip())
            and bool(self.auth_token.strip())
            and bool(self.from_phone_number.strip() or (self.short_code or "").strip())
        )


class PushProviderConfig(ProviderConfig):
    """Push provider credentials and delivery defaults."""

    server_key: str = Field(default="", description="Legacy server key")
    project_id: str = Field(default="", description="Cloud project identifier")
    service_account_json: str | None = Field(default=None, description="Service account credentials")
    api_endpoint: str | None = None
    use_sandbox: bool = False
    default_ttl: int = Field(default=86400, ge=0, description="Default TTL in seconds")
    default_priority: str = "high"
    enable_analytics: bool = True
    dry_run: bool = Field(default=False, description="Validate requests without delivering")
    restricted_package_name: str | None = None
    bundle_id: str | None = None
    collapse_notifications: bool = False

    @property
    def provider_type(self) -> str:
        return "push"

    def is_valid(self) -> bool:
        has_credentials = bool(self.server_key.strip()) or bool((self.service_account_json or "").strip())
        return bool(self.project_id.strip()) and has_credentials
