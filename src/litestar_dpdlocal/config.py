"""DPD Local client and module configuration."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Literal
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ServiceCode = Literal["12", "07"]
LabelFormat = Literal["zpl", "clp", "epl", "html"]


class DPDCredentials(BaseModel):
    """DPD account credentials. Never mutated by the client."""

    model_config = ConfigDict(frozen=True)

    account_number: str
    username: str
    password: str


class DPDSettings(BaseSettings):
    """Runtime settings for the DPD client.

    Reads from environment variables with DPD_ prefix.
    """

    model_config = SettingsConfigDict(env_prefix="DPD_")

    base_url: str = "https://api.dpdlocal.co.uk"
    auth_endpoint: str = "/user/?action=login"
    shipment_endpoint: str = "/shipping/shipment"
    tracking_endpoint: str = "/shipping/network/"
    postcode_api_url: str = "https://api.postcodes.io"
    tracking_page_url: str = "https://track.dpdlocal.co.uk/"
    timeout_seconds: float = 30.0

    # Request retry settings
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0

    # Session acquisition settings
    session_max_retries: int = 3
    session_retry_delay_seconds: float = 2.0
    session_lifetime_minutes: int = 90
    # Calendar day used by the session staleness rule
    session_day_timezone: str = "Europe/London"

    account_number: str = ""
    username: str = ""
    password: str = ""
    encryption_key: str = ""

    @property
    def day_timezone(self) -> ZoneInfo:
        return ZoneInfo(self.session_day_timezone)

    @property
    def session_lifetime(self) -> timedelta:
        return timedelta(minutes=self.session_lifetime_minutes)

    def url_for(self, endpoint: str) -> str:
        """Absolute URL for an API endpoint; absolute inputs pass through."""
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    def get_credentials(self) -> DPDCredentials:
        return DPDCredentials(
            account_number=self.account_number,
            username=self.username,
            password=self.password,
        )


class CollectionAddress(BaseModel):
    organisation: str = ""
    property: str = ""
    street: str = ""
    locality: str = ""
    town: str = ""
    county: str = ""
    postcode: str = ""
    country_code: str = "GB"


class BusinessConfig(BaseModel):
    name: str
    collection_address: CollectionAddress
    contact_name: str
    contact_phone: str
    contact_email: str


class ServicePricing(BaseModel):
    base_price: float
    per_kg_price: float
    customer_price: float


DEFAULT_SERVICE_PRICING: dict[str, ServicePricing] = {
    "12": ServicePricing(base_price=6.0, per_kg_price=0.3, customer_price=6.0),
    "07": ServicePricing(
        base_price=7.0, per_kg_price=0.42, customer_price=7.0
    ),
}


class PricingConfig(BaseModel):
    free_delivery_threshold: float = 60.0
    flat_delivery_fee: float = 6.0
    minimum_order_value: float = 25.0
    services: dict[str, ServicePricing] = Field(
        default_factory=lambda: dict(DEFAULT_SERVICE_PRICING)
    )

    @field_validator("services", mode="before")
    @classmethod
    def _merge_default_services(cls, value: Any) -> Any:
        # Overrides for one service keep the defaults of the other.
        if not isinstance(value, dict):
            return value
        return {**DEFAULT_SERVICE_PRICING, **value}


class ServiceConfig(BaseModel):
    enabled: list[ServiceCode] = Field(default_factory=lambda: ["12", "07"])
    default: ServiceCode = "12"


class PrinterConfig(BaseModel):
    model: str = "TSC-DA210"
    dpi: int = 203
    speed: int = 6
    connection: Literal["USB", "Network"] = "USB"


class LabelConfig(BaseModel):
    format: LabelFormat = "clp"
    printer: PrinterConfig = Field(default_factory=PrinterConfig)


class EmailNotificationConfig(BaseModel):
    enabled: bool = True
    provider: Literal["resend", "sendgrid", "ses"] = "resend"
    from_email: str = ""
    admin_email: str = ""


class SmsNotificationConfig(BaseModel):
    enabled: bool = True
    provider: Literal["dpd"] = "dpd"


class NotificationConfig(BaseModel):
    email: EmailNotificationConfig = Field(
        default_factory=EmailNotificationConfig
    )
    sms: SmsNotificationConfig = Field(default_factory=SmsNotificationConfig)


class DPDModuleConfig(BaseModel):
    """Business-level configuration; every section has sensible defaults."""

    credentials: DPDCredentials
    business: BusinessConfig
    services: ServiceConfig = Field(default_factory=ServiceConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    labels: LabelConfig = Field(default_factory=LabelConfig)
    notifications: NotificationConfig = Field(
        default_factory=NotificationConfig
    )
    test_mode: bool = True
