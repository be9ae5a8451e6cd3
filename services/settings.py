"""Admin-managed settings, including payment method configuration."""

from __future__ import annotations

from dataclasses import dataclass

from models import db
from models.admin_setting import AdminSetting


@dataclass(frozen=True)
class SettingField:
    key: str
    label: str
    is_secret: bool = False


@dataclass(frozen=True)
class PaymentMethodConfig:
    id: str
    name: str
    region: str
    setting_key: str
    fields: tuple[SettingField, ...]


PAYMENT_METHOD_CONFIGS: tuple[PaymentMethodConfig, ...] = (
    PaymentMethodConfig(
        "stripe",
        "Stripe",
        "Global",
        "payment_stripe_enabled",
        (
            SettingField("stripe_publishable_key", "Publishable Key"),
            SettingField("stripe_secret_key", "Secret Key", is_secret=True),
        ),
    ),
    PaymentMethodConfig(
        "paypal",
        "PayPal",
        "Global",
        "payment_paypal_enabled",
        (
            SettingField("paypal_client_id", "Client ID"),
            SettingField("paypal_client_secret", "Client Secret", is_secret=True),
        ),
    ),
    PaymentMethodConfig(
        "zelle",
        "Zelle",
        "USA",
        "payment_zelle_enabled",
        (
            SettingField("zelle_email", "Registered Email"),
            SettingField("zelle_phone", "Registered Phone"),
            SettingField("zelle_business_name", "Business Name"),
        ),
    ),
    PaymentMethodConfig(
        "bank_transfer",
        "Bank Transfer",
        "Global",
        "payment_bank_transfer_enabled",
        (
            SettingField("bank_name", "Bank Name"),
            SettingField("bank_account_number", "Account Number", is_secret=True),
            SettingField("bank_routing_number", "Routing / Sort Code", is_secret=True),
            SettingField("bank_swift_code", "SWIFT/BIC Code"),
            SettingField("bank_iban", "IBAN", is_secret=True),
        ),
    ),
    PaymentMethodConfig(
        "wise",
        "Wise",
        "Global",
        "payment_wise_enabled",
        (
            SettingField("wise_api_key", "API Key", is_secret=True),
            SettingField("wise_profile_id", "Profile ID"),
            SettingField("wise_email", "Account Email"),
        ),
    ),
)
PAYMENT_METHOD_CONFIG_BY_ID = {config.id: config for config in PAYMENT_METHOD_CONFIGS}
SECRET_MASK = "*" * 8


def upsert_setting(
    key: str,
    value: str | None,
    *,
    is_secret: bool = False,
    description: str | None = None,
    setting_type: str = "text",
) -> AdminSetting:
    """Insert or update one setting. The caller commits."""

    setting = AdminSetting.query.filter_by(setting_key=key).first()
    if setting is None:
        setting = AdminSetting(
            setting_key=key,
            setting_type=setting_type,
            is_secret=is_secret,
            description=description or key.replace("_", " "),
        )
        db.session.add(setting)
    setting.setting_value = value
    return setting


def _settings_by_key(keys: list[str]) -> dict[str, AdminSetting]:
    rows = AdminSetting.query.filter(AdminSetting.setting_key.in_(keys)).all()
    return {row.setting_key: row for row in rows}


def payment_method_settings() -> list[dict]:
    """Enabled flag and field values per payment method, secrets masked."""

    keys = []
    for config in PAYMENT_METHOD_CONFIGS:
        keys.append(config.setting_key)
        keys.extend(field.key for field in config.fields)
    stored = _settings_by_key(keys)

    methods = []
    for config in PAYMENT_METHOD_CONFIGS:
        enabled_row = stored.get(config.setting_key)
        fields = []
        for field in config.fields:
            value = stored[field.key].setting_value if field.key in stored else ""
            if field.is_secret and value:
                value = SECRET_MASK
            fields.append(
                {
                    "key": field.key,
                    "label": field.label,
                    "is_secret": field.is_secret,
                    "value": value or "",
                }
            )
        methods.append(
            {
                "id": config.id,
                "name": config.name,
                "region": config.region,
                "enabled": bool(enabled_row and enabled_row.setting_value == "true"),
                "fields": fields,
            }
        )
    return methods


def save_payment_method(method_id: str, enabled: bool | None, values: dict) -> None:
    """Store one method's configuration. Masked secrets are left unchanged."""

    config = PAYMENT_METHOD_CONFIG_BY_ID[method_id]
    if enabled is not None:
        upsert_setting(
            config.setting_key,
            "true" if enabled else "false",
            setting_type="boolean",
            description=f"{config.name} payments enabled",
        )
    for field in config.fields:
        if field.key not in values:
            continue
        value = values[field.key]
        if field.is_secret and value == SECRET_MASK:
            continue
        upsert_setting(
            field.key,
            "" if value is None else str(value),
            is_secret=field.is_secret,
            description=f"{config.name} {field.label}",
        )
