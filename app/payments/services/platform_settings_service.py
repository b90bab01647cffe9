"""
Typed access to admin-editable platform settings.

PlatformSetting rows store raw text. This module owns the registry of known
keys with their types and defaults, parses values on read and validates
them on write. Settings are read at call time and are never part of a
payment transaction.

Usage:
    from payments.services.platform_settings_service import PlatformSettingsService

    schedule = PlatformSettingsService.get("settlement_schedule")  # "weekly"
    PlatformSettingsService.set("payment_auto_disburse", False, actor=admin)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Callable

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from core.services import BaseService
from payments.exceptions import PaymentValidationError
from payments.models import PlatformSetting
from payments.state_machines import SettlementSchedule

if TYPE_CHECKING:
    from authentication.models import User


TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off"}


def _parse_decimal(raw: Any) -> Decimal:
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"{raw!r} is not a decimal")
    if not value.is_finite():
        raise ValueError(f"{raw!r} is not a finite decimal")
    return value


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    lowered = str(raw).strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"{raw!r} is not a boolean")


def _parse_string(raw: Any) -> str:
    return "" if raw is None else str(raw).strip()


@dataclass(frozen=True)
class SettingDefinition:
    """
    A known platform setting.

    Attributes:
        key: Setting key
        parse: Converts raw text (or a Python value) to the typed value
        default: Typed default, or a callable returning it
        description: Shown in the admin UI
        choices: Allowed values, for choice settings
        min_value / max_value: Bounds for decimal settings
        category: Grouping for the admin UI
    """

    key: str
    parse: Callable[[Any], Any]
    default: Any
    description: str
    choices: tuple[str, ...] | None = None
    min_value: Decimal | None = None
    max_value: Decimal | None = None
    category: str = "payments"

    def get_default(self) -> Any:
        return self.default() if callable(self.default) else self.default

    def coerce(self, raw: Any) -> Any:
        """Parse and validate a value, raising ValueError when invalid."""
        value = self.parse(raw)
        if self.choices is not None and value not in self.choices:
            raise ValueError(f"must be one of {', '.join(self.choices)}")
        if self.min_value is not None and value < self.min_value:
            raise ValueError(f"must be at least {self.min_value}")
        if self.max_value is not None and value > self.max_value:
            raise ValueError(f"must be at most {self.max_value}")
        if self.key == "payment_notification_email" and value:
            try:
                validate_email(value)
            except DjangoValidationError:
                raise ValueError(f"{value!r} is not a valid email address")
        return value

    @staticmethod
    def serialize(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


def _default_platform_fee_percentage() -> Decimal:
    return _parse_decimal(getattr(settings, "PLATFORM_FEE_PERCENT", 4))


SETTING_DEFINITIONS: dict[str, SettingDefinition] = {
    definition.key: definition
    for definition in (
        SettingDefinition(
            key="settlement_schedule",
            parse=_parse_string,
            default=SettlementSchedule.WEEKLY.value,
            description="How often scheduled settlement runs",
            choices=tuple(SettlementSchedule.values),
        ),
        SettingDefinition(
            key="payout_reserve_percentage",
            parse=_parse_decimal,
            default=Decimal("10"),
            description="Percentage of funds held back as a payout reserve",
            min_value=Decimal("0"),
            max_value=Decimal("100"),
        ),
        SettingDefinition(
            key="minimum_operating_balance",
            parse=_parse_decimal,
            default=Decimal("0.00"),
            description="Balance the funding account must keep after payouts",
            min_value=Decimal("0"),
        ),
        SettingDefinition(
            key="minimum_payout_threshold",
            parse=_parse_decimal,
            default=Decimal("50.00"),
            description="Earnings a creator must accumulate before payout",
            min_value=Decimal("0"),
        ),
        SettingDefinition(
            key="payment_auto_disburse",
            parse=_parse_bool,
            default=True,
            description="Settle processing payments automatically on schedule",
        ),
        SettingDefinition(
            key="payment_notification_email",
            parse=_parse_string,
            default="",
            description="Escalation contact for payment failures and disputes",
        ),
        SettingDefinition(
            key="platform_fee_percentage",
            parse=_parse_decimal,
            default=_default_platform_fee_percentage,
            description="Default platform fee as a percentage of gross",
            min_value=Decimal("0"),
            max_value=Decimal("50"),
            category="fees",
        ),
    )
}


class PlatformSettingsService(BaseService):
    """
    Service for reading and writing platform settings.

    Methods:
        get: Typed value for one key (default when unset or unreadable)
        get_all: Typed values for every known key
        set: Validate and store a value
    """

    @classmethod
    def _definition(cls, key: str) -> SettingDefinition:
        try:
            return SETTING_DEFINITIONS[key]
        except KeyError:
            raise PaymentValidationError(
                f"Unknown platform setting: {key}",
                error_code="UNKNOWN_SETTING",
                details={"key": key},
            )

    @classmethod
    def get(cls, key: str) -> Any:
        """
        Get the typed value of a setting.

        A stored value that no longer parses is logged and the default is
        returned instead.
        """
        definition = cls._definition(key)
        row = PlatformSetting.objects.filter(key=key).only("value").first()
        if row is None:
            return definition.get_default()
        try:
            return definition.coerce(row.value)
        except ValueError as e:
            cls.get_logger().warning(
                "Stored platform setting is invalid, using default",
                extra={"key": key, "value": row.value, "error": str(e)},
            )
            return definition.get_default()

    @classmethod
    def get_all(cls) -> dict[str, Any]:
        """Get typed values for every known setting."""
        rows = dict(
            PlatformSetting.objects.filter(key__in=SETTING_DEFINITIONS).values_list(
                "key", "value"
            )
        )
        values: dict[str, Any] = {}
        for key, definition in SETTING_DEFINITIONS.items():
            if key not in rows:
                values[key] = definition.get_default()
                continue
            try:
                values[key] = definition.coerce(rows[key])
            except ValueError:
                values[key] = definition.get_default()
        return values

    @classmethod
    def set(cls, key: str, value: Any, actor: User | None = None) -> Any:
        """
        Validate and store a setting.

        Returns:
            The typed value that was stored

        Raises:
            PaymentValidationError: Unknown key or invalid value
        """
        definition = cls._definition(key)
        try:
            typed = definition.coerce(value)
        except ValueError as e:
            raise PaymentValidationError(
                f"Invalid value for {key}: {e}",
                error_code="INVALID_SETTING_VALUE",
                details={"key": key, "value": str(value)},
            )

        PlatformSetting.objects.update_or_create(
            key=key,
            defaults={
                "value": definition.serialize(typed),
                "description": definition.description,
                "category": definition.category,
                "updated_by": actor,
            },
        )

        cls.get_logger().info(
            "Platform setting updated",
            extra={
                "key": key,
                "value": definition.serialize(typed),
                "actor_id": getattr(actor, "pk", None),
            },
        )
        return typed
