"""
Typed per-channel account configuration.

Channel accounts store credentials and settings as free-form maps. Before an
adapter is built, both maps are validated against the models below, so a
missing credential becomes a configuration failure before any network call
and a misspelled key is reported instead of silently ignored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from core.config import get_settings
from core.logging import get_logger
from services.marketplaces.channels import Channel

logger = get_logger(__name__)


def _default_timeout() -> float:
    return get_settings().sync.default_timeout


class AccountModel(BaseModel):
    """Base for account models; unknown keys are kept so they can be reported."""

    model_config = ConfigDict(extra="allow", frozen=True, str_strip_whitespace=True)

    @property
    def unrecognized_keys(self) -> tuple[str, ...]:
        """Return keys that no field of this model recognizes."""
        return tuple(sorted(self.model_extra or {}))


def _require_secret(value: SecretStr) -> SecretStr:
    if not value.get_secret_value().strip():
        msg = "must not be empty"
        raise ValueError(msg)
    return value


class ShopifyCredentials(AccountModel):
    """Admin API access for one store."""

    store_url: str = Field(min_length=1, description="my-store.myshopify.com")
    access_token: SecretStr = Field(description="Admin API access token")
    api_version: str = Field(default_factory=lambda: get_settings().shopify.api_version)

    require_access_token = field_validator("access_token")(_require_secret)

    @field_validator("store_url")
    @classmethod
    def normalize_store_url(cls, value: str) -> str:
        return value.removeprefix("https://").removeprefix("http://").rstrip("/")


class ShopifyAccountSettings(AccountModel):
    """Options applied to products pushed to Shopify."""

    currency: str = "GBP"
    vendor: str | None = None
    product_status: Literal["ACTIVE", "DRAFT", "ARCHIVED"] = "DRAFT"
    timeout: float = Field(default_factory=_default_timeout, ge=1.0, le=300.0)


class EbayCredentials(AccountModel):
    """OAuth application keys plus a seller refresh token."""

    client_id: str = Field(min_length=1)
    client_secret: SecretStr
    refresh_token: SecretStr
    environment: Literal["SANDBOX", "PRODUCTION"] = Field(
        default_factory=lambda: get_settings().ebay.environment
    )

    require_secrets = field_validator("client_secret", "refresh_token")(_require_secret)

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class EbayAccountSettings(AccountModel):
    """Listing policies and defaults for eBay offers."""

    marketplace_id: str = Field(default_factory=lambda: get_settings().ebay.marketplace_id)
    currency: str = "GBP"
    category_id: str | None = None
    merchant_location_key: str | None = None
    fulfillment_policy_id: str | None = None
    payment_policy_id: str | None = None
    return_policy_id: str | None = None
    listing_format: Literal["FIXED_PRICE", "AUCTION"] = "FIXED_PRICE"
    timeout: float = Field(default_factory=_default_timeout, ge=1.0, le=300.0)


class MiraklCredentials(AccountModel):
    """Shop API key for one Mirakl operator."""

    api_key: SecretStr
    base_url: str = Field(min_length=1)
    shop_id: str | None = None

    require_api_key = field_validator("api_key")(_require_secret)

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("shop_id", mode="before")
    @classmethod
    def coerce_shop_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class MiraklAccountSettings(AccountModel):
    """Offer defaults for Mirakl operators."""

    category_code: str = ""
    currency: str = Field(default_factory=lambda: get_settings().mirakl.currency)
    default_state: int = 11
    logistic_class: str = "STD"
    leadtime_to_ship: int = Field(default=3, ge=0)
    product_id_type: str = "SHOP_SKU"
    timeout: float = Field(default_factory=_default_timeout, ge=1.0, le=300.0)


@dataclass(frozen=True, slots=True)
class MiraklOperator:
    """Fixed defaults of one Mirakl operator."""

    code: str
    name: str
    base_url: str
    currency: str = "GBP"
    locale: str = "en_GB"


MIRAKL_OPERATORS: dict[Channel, MiraklOperator] = {
    Channel.BQ: MiraklOperator(
        code="bq",
        name="B&Q",
        base_url="https://bq-marketplace-api.mirakl.net",
    ),
    Channel.DEBENHAMS: MiraklOperator(
        code="debenhams",
        name="Debenhams",
        base_url="https://debenhams-marketplace-api.mirakl.net",
    ),
    Channel.FREEMANS: MiraklOperator(
        code="freemans",
        name="Freemans",
        base_url="https://freemans-marketplace-api.mirakl.net",
    ),
}


_MODELS: dict[Channel, tuple[type[AccountModel], type[AccountModel]]] = {
    Channel.SHOPIFY: (ShopifyCredentials, ShopifyAccountSettings),
    Channel.EBAY: (EbayCredentials, EbayAccountSettings),
    Channel.MIRAKL: (MiraklCredentials, MiraklAccountSettings),
    Channel.FREEMANS: (MiraklCredentials, MiraklAccountSettings),
    Channel.DEBENHAMS: (MiraklCredentials, MiraklAccountSettings),
    Channel.BQ: (MiraklCredentials, MiraklAccountSettings),
}


@dataclass(frozen=True, slots=True)
class AccountConfig:
    """
    Validated configuration of one account.

    Attributes:
        channel: Resolved channel.
        credentials: Channel credentials model.
        settings: Channel settings model.
    """

    channel: Channel
    credentials: Any
    settings: Any

    @property
    def timeout(self) -> float:
        """Return the transport timeout for this account."""
        return float(self.settings.timeout)

    @property
    def unrecognized_keys(self) -> tuple[str, ...]:
        """Return unknown keys, prefixed with the map they were found in."""
        return tuple(
            [f"credentials.{key}" for key in self.credentials.unrecognized_keys]
            + [f"settings.{key}" for key in self.settings.unrecognized_keys]
        )


def load_account_config(
    channel: Channel,
    credentials: Mapping[str, Any],
    settings: Mapping[str, Any],
) -> AccountConfig:
    """
    Validate an account's maps for the given channel.

    Operator variants get their base URL and currency from the operator
    table unless the account overrides them.

    Args:
        channel: Resolved channel of the account.
        credentials: Raw credentials map.
        settings: Raw settings map.

    Returns:
        Validated AccountConfig.

    Raises:
        ValidationError: If a required key is missing or a value is invalid.
        ValueError: If the channel has no configuration model.
    """
    models = _MODELS.get(channel)
    if models is None:
        msg = f"Channel {channel.value} has no account configuration"
        raise ValueError(msg)
    credentials_model, settings_model = models

    raw_credentials = dict(credentials)
    raw_settings = dict(settings)
    operator = MIRAKL_OPERATORS.get(channel)
    if operator is not None:
        raw_credentials.setdefault("base_url", operator.base_url)
        raw_settings.setdefault("currency", operator.currency)

    config = AccountConfig(
        channel=channel,
        credentials=credentials_model.model_validate(raw_credentials),
        settings=settings_model.model_validate(raw_settings),
    )
    if config.unrecognized_keys:
        logger.warning(
            "Unrecognized account configuration keys",
            channel=channel.value,
            keys=list(config.unrecognized_keys),
        )
    return config


def describe_validation_error(error: ValidationError) -> list[str]:
    """
    Flatten a pydantic ValidationError into readable lines.

    Returns:
        One "Model.field: message" line per problem.
    """
    lines = []
    for problem in error.errors():
        location = ".".join([error.title, *(str(part) for part in problem.get("loc", ()))])
        lines.append(f"{location}: {problem.get('msg', 'invalid value')}")
    return lines
