"""
Site mode field normalizers

Intent:
- Admin-entered configuration must never hard-fail a save because of one cosmetic field.
- Every function here is total: malformed input degrades to a documented fallback
  value instead of raising.

Multilingual text:
- A field is either a plain string or LocalizedText({en, es}).
- Editing one locale of a plain string promotes it to LocalizedText (one way).
- On save/read the value collapses back: equal locales -> plain string, both empty -> ''/None.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Union
from urllib.parse import urlsplit
import json
import logging
import math
import re

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


SUPPORTED_LOCALES = ("en", "es")

SOCIAL_PLATFORMS = ("facebook", "instagram", "youtube", "x", "whatsapp")

SOCIAL_PLATFORM_LABELS = {
    "facebook": "Facebook",
    "instagram": "Instagram",
    "youtube": "YouTube",
    "x": "X (Twitter)",
    "whatsapp": "WhatsApp",
}

_SOCIAL_PLATFORM_ALIASES = {
    "facebook": ("facebook", "fb", "meta"),
    "instagram": ("instagram", "ig"),
    "youtube": ("youtube", "yt"),
    "x": ("x", "twitter", "xtwitter", "twitterx"),
    "whatsapp": ("whatsapp", "wa", "whatsap"),
}

MAX_TEXT_LENGTH = 300
MAX_URL_LENGTH = 500
MAX_SOCIAL_LINKS = 10
MIN_GRADIENT_COLORS = 2
MAX_GRADIENT_COLORS = 5
DEFAULT_GRADIENT_COLORS = ("#9fc4ff", "#d3b4ff")
DEFAULT_OVERLAY_OPACITY = 90
MAX_COUNTDOWN_VALUE = 999999

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


class LocalizedText(BaseModel):
    """Per-locale text value. A missing locale is None."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    en: Optional[str] = None
    es: Optional[str] = None

    def get(self, locale: str) -> Optional[str]:
        return getattr(self, locale, None) if locale in SUPPORTED_LOCALES else None


SeoText = Union[str, LocalizedText]


# ---------------------------------------------------------------------------
# text / url
# ---------------------------------------------------------------------------

def clean_nullable_text(value: Any, max_length: int = MAX_TEXT_LENGTH) -> Optional[str]:
    """Trimmed non-empty string or None. Over-long input is truncated."""
    if value is None or not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if len(text) > max_length:
        text = text[:max_length].rstrip()
    return text


def is_absolute_url(value: str) -> bool:
    """scheme://host form (what a browser would accept as a link target)."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc) and " " not in value


def clean_url_like(value: Any) -> Optional[str]:
    """Absolute URL or a root-relative path ('/uploads/x.png'); anything else -> None."""
    text = clean_nullable_text(value, max_length=10_000)
    if text is None or len(text) > MAX_URL_LENGTH:
        return None
    if text.startswith("/") or is_absolute_url(text):
        return text
    logger.debug(f"[site-mode] dropped invalid url-like value: {text[:80]}")
    return None


def coerce_bool(value: Any, default: bool = False) -> bool:
    """bool / 0-1 / 'true'-'false' strings; anything else -> default."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0
    if isinstance(value, str):
        key = value.strip().lower()
        if key in ("1", "true", "yes", "on"):
            return True
        if key in ("0", "false", "no", "off", ""):
            return False
    return default


def coerce_choice(value: Any, choices: Iterable[str], default: str) -> str:
    key = str(value or "").strip().lower()
    return key if key in tuple(choices) else default


# ---------------------------------------------------------------------------
# numbers / dates
# ---------------------------------------------------------------------------

def _to_number(value: Any) -> Optional[Union[int, float]]:
    """int/float/numeric string; ±inf passes through, NaN and non-numbers -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        number = value
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def clamp_opacity(value: Any, default: int = DEFAULT_OVERLAY_OPACITY) -> int:
    """Overlay opacity in [0, 100]; out-of-range values are clamped, garbage -> default."""
    number = _to_number(value)
    if number is None:
        return default
    if number <= 0:
        return 0
    if number >= 100:
        return 100
    return int(round(number))


def normalize_countdown_value(value: Any) -> Optional[int]:
    """Floor to int, clamp to [0, 999999]; non-numeric -> None."""
    number = _to_number(value)
    if number is None:
        return None
    if number <= 0:
        return 0
    if number >= MAX_COUNTDOWN_VALUE:
        return MAX_COUNTDOWN_VALUE
    return int(math.floor(number))


def to_iso_utc(value: datetime) -> str:
    """UTC ISO string at millisecond precision (like toISOString); whole seconds carry no fraction."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    if value.microsecond:
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return value.isoformat().replace("+00:00", "Z")


def normalize_iso_datetime(value: Any) -> Optional[str]:
    """Any ISO-8601 string / datetime -> UTC 'Z' string; unparsable -> None."""
    if isinstance(value, datetime):
        return to_iso_utc(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return to_iso_utc(parsed)


# ---------------------------------------------------------------------------
# colours
# ---------------------------------------------------------------------------

def normalize_hex_color(raw: Any) -> str:
    """
    '#ABC' / 'abc' / '#AABBCC' -> '#aabbcc'.

    Returns '' when the input is not a 3- or 6-digit hex colour;
    callers substitute their own fallback.
    """
    if not isinstance(raw, str):
        return ""
    text = raw.strip()
    if text.startswith("#"):
        text = text[1:]
    if len(text) not in (3, 6) or not _HEX_RE.match(text):
        return ""
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    return f"#{text.lower()}"


def normalize_gradient_colors(raw: Any) -> List[str]:
    """
    Gradient stops: 2..5 normalized colours.

    - None / empty / non-list -> defaults
    - unparsable entry -> first default colour
    - more than 5 -> truncated, fewer than 2 -> padded from the defaults
    """
    if not isinstance(raw, (list, tuple)) or len(raw) == 0:
        return list(DEFAULT_GRADIENT_COLORS)
    out: List[str] = []
    for item in raw[:MAX_GRADIENT_COLORS]:
        color = normalize_hex_color(item)
        if not color:
            logger.debug(f"[site-mode] invalid gradient colour replaced: {item!r}")
            color = DEFAULT_GRADIENT_COLORS[0]
        out.append(color)
    return _pad_gradient(out)


def _pad_gradient(colors: List[str]) -> List[str]:
    out = list(colors)
    idx = 0
    while len(out) < MIN_GRADIENT_COLORS:
        out.append(DEFAULT_GRADIENT_COLORS[idx % len(DEFAULT_GRADIENT_COLORS)])
        idx += 1
    return out


def add_gradient_color(colors: List[str]) -> List[str]:
    """Append a stop repeating the last colour; no-op at the maximum."""
    current = normalize_gradient_colors(colors)
    if len(current) >= MAX_GRADIENT_COLORS:
        return current
    current.append(current[-1])
    return current


def remove_gradient_color(colors: List[str], index: int) -> List[str]:
    """Remove one stop, padding from the defaults so the list never drops below 2."""
    current = normalize_gradient_colors(colors)
    if 0 <= index < len(current):
        current.pop(index)
    return _pad_gradient(current)


# ---------------------------------------------------------------------------
# social links
# ---------------------------------------------------------------------------

def _platform_key(value: str) -> str:
    return re.sub(r"[^a-z]", "", value.strip().lower())


def resolve_social_platform(raw: Any) -> Optional[str]:
    """
    Case/punctuation-insensitive alias lookup ('IG', 'Twitter/X', 'You-Tube').
    Unknown platforms -> None (the caller drops the link).
    """
    if not raw or not isinstance(raw, str):
        return None
    candidate = _platform_key(raw)
    if not candidate:
        return None
    for platform in SOCIAL_PLATFORMS:
        if candidate == _platform_key(platform):
            return platform
        if any(candidate == _platform_key(alias) for alias in _SOCIAL_PLATFORM_ALIASES[platform]):
            return platform
    return None


def normalize_social_links(raw: Any) -> List[dict]:
    """
    [{platform, url}] with resolved platform + absolute URL.

    Accepts dicts or objects carrying platform (or a legacy `label`) and url.
    Invalid entries and exact duplicates are dropped; at most 10 links are kept.
    """
    if not isinstance(raw, (list, tuple)):
        return []
    out: List[dict] = []
    seen: set = set()
    for item in raw:
        if isinstance(item, BaseModel):
            item = item.model_dump()
        if not isinstance(item, dict):
            continue
        raw_platform = item.get("platform") if isinstance(item.get("platform"), str) else item.get("label")
        platform = resolve_social_platform(raw_platform)
        url = item.get("url").strip() if isinstance(item.get("url"), str) else ""
        if not platform or not url or len(url) > MAX_URL_LENGTH or not is_absolute_url(url):
            logger.debug(f"[site-mode] dropped social link: platform={raw_platform!r}")
            continue
        key = (platform, url)
        if key in seen:
            continue
        seen.add(key)
        out.append({"platform": platform, "url": url})
        if len(out) >= MAX_SOCIAL_LINKS:
            break
    return out


# ---------------------------------------------------------------------------
# multilingual text
# ---------------------------------------------------------------------------

def _as_localized(value: Any) -> Optional[LocalizedText]:
    if isinstance(value, LocalizedText):
        return value
    if isinstance(value, dict) and any(k in value for k in SUPPORTED_LOCALES):
        en = value.get("en")
        es = value.get("es")
        return LocalizedText(
            en=en if isinstance(en, str) else None,
            es=es if isinstance(es, str) else None,
        )
    return None


def normalize_multilingual_field(current: Any, locale: str, new_value: str) -> Any:
    """
    Apply an editor change for one locale.

    - plain string / None -> promoted to {en, es}; the other locale becomes ''
    - LocalizedText -> only the targeted locale changes ('' is stored as None)
    - unsupported locale -> unchanged
    """
    if locale not in SUPPORTED_LOCALES:
        return current
    localized = _as_localized(current)
    if localized is None:
        return LocalizedText(
            en=new_value if locale == "en" else "",
            es=new_value if locale == "es" else "",
        )
    return localized.model_copy(update={locale: new_value or None})


def expand_localized(value: Any) -> LocalizedText:
    """Display helper: plain 'A' -> {en: 'A', es: 'A'}."""
    localized = _as_localized(value)
    if localized is not None:
        return localized
    text = value if isinstance(value, str) else ""
    return LocalizedText(en=text, es=text)


def parse_stored_seo_text(value: Any) -> Any:
    """Text columns hold either a plain string or a JSON object {"en", "es"}."""
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("{") and text.endswith("}"):
            try:
                parsed = json.loads(text)
            except ValueError:
                return value
            localized = _as_localized(parsed)
            if localized is not None and set(parsed.keys()) <= set(SUPPORTED_LOCALES):
                return localized
    return value


def collapse_seo_text(value: Any) -> SeoText:
    """
    Required SEO text (title/description/keywords).

    None -> '', string -> trimmed, map -> '' if both empty, plain if equal, else {en, es}.
    """
    localized = _as_localized(value)
    if localized is None:
        return value.strip() if isinstance(value, str) else ""
    en = (localized.en or "").strip()
    es = (localized.es or "").strip()
    if not en and not es:
        return ""
    if en == es:
        return en
    return LocalizedText(en=en, es=es)


def collapse_optional_seo_text(value: Any) -> Optional[SeoText]:
    """
    Optional SEO text (Open Graph / Twitter card fields).

    None/'' -> None, map -> None if both empty, plain if equal, else only the non-empty locales.
    """
    localized = _as_localized(value)
    if localized is None:
        return clean_nullable_text(value, max_length=10_000)
    en = (localized.en or "").strip() or None
    es = (localized.es or "").strip() or None
    if not en and not es:
        return None
    if en == es:
        return en
    return LocalizedText(en=en, es=es)


def serialize_seo_text(value: Any) -> Optional[str]:
    """Column value: plain string, JSON object for per-locale values, None when empty."""
    if isinstance(value, LocalizedText):
        return json.dumps(value.model_dump(exclude_none=True), ensure_ascii=False)
    return clean_nullable_text(value, max_length=10_000)
