"""
Settings cache (app settings + phase levels)

Both tables are read on nearly every commission/reward calculation but change rarely.
- in-process copy with a single shared timestamp (TTL, default 5 minutes)
- optional Redis tier between memory and the loaders (shared by all workers)
- invalidate() after every admin write

Redis failures never fail a read: the loaders are called instead (availability first).
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar
import json
import logging
import time

from pydantic import TypeAdapter
from redis.asyncio import Redis
from redis.exceptions import RedisError

from admin_console.schemas.app_settings import (
    AppSettings,
    CurrencyVisibility,
    LevelCapacity,
    PhaseLevel,
    legacy_free_product_value_cents,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
APP_SETTINGS_KEY = "app_settings"
PHASE_LEVELS_KEY = "phase_levels"

_PHASE_LEVEL_LIST = TypeAdapter(List[PhaseLevel])

T = TypeVar("T")


class SettingsCache:
    """
    Usage:
        cache = SettingsCache(load_app_settings=..., load_phase_levels=...)
        rate = await cache.get_phase_commission_rate(2)
        ...
        await cache.invalidate()  # after saving settings
    """

    def __init__(
        self,
        load_app_settings: Callable[[], Awaitable[AppSettings]],
        load_phase_levels: Callable[[], Awaitable[List[PhaseLevel]]],
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        redis: Optional[Redis] = None,
        redis_prefix: str = "admin-console:settings",
    ):
        self._load_app_settings = load_app_settings
        self._load_phase_levels = load_phase_levels
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._redis = redis
        self._redis_prefix = redis_prefix

        self._app_settings: Optional[AppSettings] = None
        self._phase_levels: Optional[List[PhaseLevel]] = None
        self._timestamp: Optional[float] = None

    # ---- freshness ----

    def _is_fresh(self, now: float) -> bool:
        return self._timestamp is not None and (now - self._timestamp) < self.ttl_seconds

    def _redis_key(self, name: str) -> str:
        return f"{self._redis_prefix}:{name}"

    async def _read_through(
        self,
        name: str,
        loader: Callable[[], Awaitable[T]],
        decode: Callable[[Any], T],
        encode: Callable[[T], Any],
    ) -> T:
        if self._redis is not None:
            try:
                raw = await self._redis.get(self._redis_key(name))
                if raw:
                    return decode(json.loads(raw))
            except (RedisError, OSError, ValueError) as e:
                logger.warning(f"[settings-cache] redis read failed for {name}, using loader: {e}")

        value = await loader()
        logger.info(f"[settings-cache] {name} refreshed")

        if self._redis is not None:
            try:
                await self._redis.setex(
                    self._redis_key(name),
                    max(1, int(self.ttl_seconds)),
                    json.dumps(encode(value)),
                )
            except (RedisError, OSError, TypeError, ValueError) as e:
                logger.warning(f"[settings-cache] redis write failed for {name}: {e}")
        return value

    # ---- raw tables ----

    async def get_app_settings(self) -> AppSettings:
        now = self._clock()
        if self._app_settings is not None and self._is_fresh(now):
            return self._app_settings

        self._app_settings = await self._read_through(
            APP_SETTINGS_KEY,
            self._load_app_settings,
            AppSettings.model_validate,
            lambda value: value.model_dump(mode="json"),
        )
        self._timestamp = now
        return self._app_settings

    async def get_phase_levels(self) -> List[PhaseLevel]:
        now = self._clock()
        if self._phase_levels is not None and self._is_fresh(now):
            return self._phase_levels

        self._phase_levels = await self._read_through(
            PHASE_LEVELS_KEY,
            self._load_phase_levels,
            _PHASE_LEVEL_LIST.validate_python,
            lambda value: _PHASE_LEVEL_LIST.dump_python(value, mode="json"),
        )
        self._timestamp = now
        return self._phase_levels

    async def invalidate(self) -> None:
        """Drop both tables (memory and Redis); the next read reloads."""
        self._app_settings = None
        self._phase_levels = None
        self._timestamp = None
        if self._redis is not None:
            try:
                await self._redis.delete(self._redis_key(APP_SETTINGS_KEY), self._redis_key(PHASE_LEVELS_KEY))
            except (RedisError, OSError) as e:
                logger.warning(f"[settings-cache] redis invalidate failed: {e}")
        logger.info("[settings-cache] invalidated")

    async def warmup(self) -> None:
        await self.get_app_settings()
        await self.get_phase_levels()

    def stats(self) -> Dict[str, Any]:
        age = None
        if self._timestamp is not None:
            age = max(0.0, self._clock() - self._timestamp)
        return {
            "appSettingsCached": self._app_settings is not None,
            "phaseLevelsCached": self._phase_levels is not None,
            "ageSeconds": age,
            "ttlSeconds": self.ttl_seconds,
            "redisEnabled": self._redis is not None,
        }

    # ---- phase accessors ----

    async def _find_phase(self, phase: int) -> Optional[PhaseLevel]:
        levels = await self.get_phase_levels()
        return next((p for p in levels if p.level == phase), None)

    async def get_phase_commission_rate(self, phase: int) -> float:
        """Phase commission rate; falls back to the global e-commerce rate."""
        row = await self._find_phase(phase)
        if row is not None:
            return row.commissionRate
        settings = await self.get_app_settings()
        return settings.ecommerceCommissionRate

    async def get_phase_group_gain_rate(self, phase: int) -> float:
        """Group gain = the phase subscription discount rate (0 when unknown)."""
        row = await self._find_phase(phase)
        return row.subscriptionDiscountRate if row is not None else 0.0

    async def get_phase_credit_cents(self, phase: int) -> int:
        row = await self._find_phase(phase)
        return row.creditCents if row is not None else 0

    async def get_phase_free_product_value_cents(self, phase: int) -> int:
        row = await self._find_phase(phase)
        if row is not None:
            return row.freeProductValueCents
        return legacy_free_product_value_cents(phase)

    async def get_free_product_value_cents(self) -> int:
        """Free product value of phase 1 (the entry reward)."""
        return await self.get_phase_free_product_value_cents(1)

    def has_phase_product(self, phase: int) -> bool:
        """
        Cache-only check (never loads): a cached row decides by its free product value,
        otherwise the legacy rule applies (every phase from 1 up has a product).
        """
        row = next((p for p in self._phase_levels or [] if p.level == phase), None)
        if row is not None:
            return row.freeProductValueCents > 0
        return phase >= 1

    async def get_phase_name(self, phase: int, locale: str = "en") -> str:
        row = await self._find_phase(phase)
        if row is None:
            return f"Phase {phase}"
        localized = row.nameEs if locale == "es" else row.nameEn
        return localized or row.nameEn or row.name or f"Phase {phase}"

    # ---- global accessors ----

    async def get_global_commission_rate(self) -> float:
        settings = await self.get_app_settings()
        return settings.ecommerceCommissionRate

    async def get_all_capacities(self) -> List[LevelCapacity]:
        settings = await self.get_app_settings()
        return sorted(settings.maxMembersPerLevel, key=lambda c: c.level)

    async def get_max_members_per_level(self, level: int) -> int:
        for capacity in await self.get_all_capacities():
            if capacity.level == level:
                return capacity.maxMembers
        return 0

    def _currency_map(self, settings: AppSettings) -> Dict[str, CurrencyVisibility]:
        """code -> entry; a later entry for the same code replaces an earlier one."""
        currencies: Dict[str, CurrencyVisibility] = {}
        for entry in settings.currencies:
            code = entry.code.upper()
            countries = list(dict.fromkeys(c.upper() for c in entry.countryCodes))
            currencies[code] = CurrencyVisibility.model_construct(code=code, countryCodes=countries)
        default_code = settings.currency.upper()
        if default_code not in currencies:
            currencies[default_code] = CurrencyVisibility.model_construct(code=default_code, countryCodes=[])
        return currencies

    async def get_supported_currencies(self) -> List[CurrencyVisibility]:
        """Configured currencies with their country codes; the default currency is always present."""
        settings = await self.get_app_settings()
        return list(self._currency_map(settings).values())

    async def resolve_currency_for_country(self, country_code: Optional[str]) -> str:
        """Country -> currency via the visibility mapping; default currency otherwise."""
        settings = await self.get_app_settings()
        code = (country_code or "").strip().upper()
        if code:
            for entry in self._currency_map(settings).values():
                if code in entry.countryCodes:
                    return entry.code
        return settings.currency.upper()
