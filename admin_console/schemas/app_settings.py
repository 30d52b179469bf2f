"""
Global app settings / phase level schemas

These are the two read-mostly tables mirrored by the settings cache.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Free product value for phase 1 when the row does not configure one.
# Kept from the legacy rewards rule; other phases default to 0.
LEGACY_PHASE_ONE_FREE_PRODUCT_VALUE_CENTS = 6500


def legacy_free_product_value_cents(level: int) -> int:
    return LEGACY_PHASE_ONE_FREE_PRODUCT_VALUE_CENTS if level == 1 else 0


class LevelCapacity(BaseModel):
    """Tree capacity per level (max members)."""

    model_config = ConfigDict(extra="ignore")

    level: int = Field(..., ge=1, le=10)
    maxMembers: int = Field(..., ge=0)


class CurrencyVisibility(BaseModel):
    """Currency shown to a set of countries; empty countryCodes = all remaining countries."""

    model_config = ConfigDict(extra="ignore")

    code: str = Field(..., min_length=3, max_length=3)
    countryCodes: List[str] = Field(default_factory=list)

    @field_validator("code", mode="before")
    @classmethod
    def upper_code(cls, v):
        return str(v or "").strip().upper()

    @field_validator("countryCodes", mode="before")
    @classmethod
    def upper_countries(cls, v):
        if not isinstance(v, list):
            return []
        out: List[str] = []
        for item in v:
            if not isinstance(item, str):
                continue
            code = item.strip().upper()
            if code and code not in out:
                out.append(code)
        return out

    @field_validator("countryCodes")
    @classmethod
    def two_letter_countries(cls, v):
        for code in v:
            if len(code) != 2:
                raise ValueError(f"Invalid country code: {code}")
        return v


class AppSettingsBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    maxMembersPerLevel: List[LevelCapacity]
    payoutFrequency: Literal["weekly", "biweekly", "monthly"] = "monthly"
    currency: str = Field("USD", min_length=3, max_length=3)
    currencies: List[CurrencyVisibility] = Field(default_factory=list)
    autoAdvanceEnabled: bool = True
    ecommerceCommissionRate: float = Field(0.08, ge=0, le=1)
    teamLevelsVisible: int = Field(2, ge=1, le=10)
    rewardCreditLabelEn: str = "Reward Credits"
    rewardCreditLabelEs: str = "Créditos de Recompensa"
    freeProductLabelEn: str = "Free Product Value"
    freeProductLabelEs: str = "Valor de Producto Gratis"

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, v):
        return str(v or "").strip().upper()


class AppSettings(AppSettingsBase):
    id: str = "global"
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class AppSettingsUpdate(AppSettingsBase):
    """Admin write payload. Cross-field currency rules: see currency_mapping_issues()."""


def currency_mapping_issues(payload: AppSettingsBase) -> List[Dict[str, Any]]:
    """
    Currency visibility rules:
    - currency codes are unique
    - a country belongs to at most one currency
    - exactly one currency targets "all remaining countries" (empty list)
    - the default currency is part of the mapping
    """
    issues: List[Dict[str, Any]] = []
    seen_codes: set = set()
    seen_countries: set = set()
    has_global = False
    base_present = False
    base_code = payload.currency.upper()

    for entry_index, entry in enumerate(payload.currencies):
        code = entry.code.upper()
        if code in seen_codes:
            issues.append({"loc": ["currencies", entry_index, "code"], "msg": "Currency codes must be unique."})
        else:
            seen_codes.add(code)

        if code == base_code:
            base_present = True

        if not entry.countryCodes:
            if has_global:
                issues.append({
                    "loc": ["currencies", entry_index, "countryCodes"],
                    "msg": "Only one currency can target all remaining countries.",
                })
            has_global = True

        for country_index, country in enumerate(entry.countryCodes):
            if country in seen_countries:
                issues.append({
                    "loc": ["currencies", entry_index, "countryCodes", country_index],
                    "msg": "Each country can only be assigned to one currency.",
                })
            else:
                seen_countries.add(country)

    if not has_global:
        issues.append({
            "loc": ["currencies"],
            "msg": 'Enable the "All countries" option for at least one currency.',
        })
    if not base_present:
        issues.append({"loc": ["currencies"], "msg": "Include the default currency in the visibility mappings."})
    return issues


DEFAULT_APP_SETTINGS = AppSettings(
    id="global",
    maxMembersPerLevel=[
        LevelCapacity(level=1, maxMembers=5),
        LevelCapacity(level=2, maxMembers=25),
        LevelCapacity(level=3, maxMembers=125),
        LevelCapacity(level=4, maxMembers=625),
        LevelCapacity(level=5, maxMembers=3125),
    ],
    payoutFrequency="monthly",
    currency="USD",
    currencies=[CurrencyVisibility(code="USD", countryCodes=[])],
)


class PhaseLevelBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: int = Field(..., ge=0, le=100)
    name: str = Field(..., min_length=1, max_length=100)
    nameEn: Optional[str] = Field(None, max_length=100)
    nameEs: Optional[str] = Field(None, max_length=100)
    commissionRate: float = Field(0, ge=0, le=1)
    subscriptionDiscountRate: float = Field(0, ge=0, le=1)
    creditCents: int = Field(0, ge=0)
    freeProductValueCents: Optional[int] = Field(None, ge=0)
    isActive: bool = True
    displayOrder: int = 0

    @field_validator("name", "nameEn", "nameEs", mode="before")
    @classmethod
    def strip_names(cls, v):
        if v is None:
            return None
        text = str(v).strip()
        return text or None


class PhaseLevel(PhaseLevelBase):
    """Phase row as served by the cache (free product value already defaulted)."""

    id: Optional[str] = None
    freeProductValueCents: int = 0
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class PhaseLevelUpsert(PhaseLevelBase):
    """Admin write payload for one phase (keyed by level)."""
