"""
Advisory query decoding
=======================
decode_query(query_string, now) -> AdvisoryRecord

A kiosk opens the receipt page with every advisory field packed into the
URL. This module turns that query string into one immutable record.

Rules
-----
* Every text field is read raw and then percent-decoded once more (the
  kiosk front end encodes values before building the URL). A malformed
  escape keeps the raw text.
* ``components`` is a percent-encoded JSON array. Anything that does not
  decode to a JSON array becomes an empty tuple.
* Missing fields fall back to the defaults in ``DEFAULTS``.
* The clock is an argument: ``now`` gives both the default receipt id
  (``ADV-<epoch ms>``) and the printed IST timestamp.

Nothing here raises for string input; each step returns a ``Decoded``
outcome and the caller collapses failures into defaults.
"""

import re
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, NamedTuple, Optional
from urllib.parse import parse_qsl, quote, unquote, urlencode
from zoneinfo import ZoneInfo

logger = logging.getLogger("cropsync-receipt")

IST = ZoneInfo("Asia/Kolkata")
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
RECEIPT_ID_PREFIX = "ADV-"

DEFAULTS = {
    "problem_name_te": "",
    "problem_name_en": "Advisory",
    "category": "-",
    "stage": "-",
    "symptoms_te": "",
    "notes_te": "",
}

COMPONENT_FIELDS = (
    "component_type",
    "component_name_te",
    "dose_te",
    "application_method_te",
    "notes_te",
)

# "%" not followed by two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class Decoded(NamedTuple):
    value: Any
    ok: bool


@dataclass(frozen=True)
class TreatmentComponent:
    component_type: Any = None
    component_name_te: Any = None
    dose_te: Any = None
    application_method_te: Any = None
    notes_te: Any = None

    @classmethod
    def from_json(cls, obj: Any) -> "TreatmentComponent":
        """Build from one decoded JSON element; non-objects keep their row but show nothing."""
        if not isinstance(obj, dict):
            return cls()
        return cls(**{name: obj.get(name) for name in COMPONENT_FIELDS})

    def as_dict(self) -> dict:
        return {
            name: getattr(self, name)
            for name in COMPONENT_FIELDS
            if getattr(self, name) is not None
        }


@dataclass(frozen=True)
class AdvisoryRecord:
    receipt_id: str
    rendered_at: str
    problem_name_te: str = DEFAULTS["problem_name_te"]
    problem_name_en: str = DEFAULTS["problem_name_en"]
    category: str = DEFAULTS["category"]
    stage: str = DEFAULTS["stage"]
    symptoms_te: str = DEFAULTS["symptoms_te"]
    notes_te: str = DEFAULTS["notes_te"]
    components: tuple = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        return self.problem_name_te or self.problem_name_en

    def as_dict(self) -> dict:
        return {
            "receipt_id": self.receipt_id,
            "rendered_at": self.rendered_at,
            "problem_name_te": self.problem_name_te,
            "problem_name_en": self.problem_name_en,
            "category": self.category,
            "stage": self.stage,
            "symptoms_te": self.symptoms_te,
            "notes_te": self.notes_te,
            "components": [c.as_dict() for c in self.components],
        }


def read_query(query_string: str) -> dict:
    """Parse like the browser's URLSearchParams: '+' is a space, first value wins."""
    params = {}
    for key, value in parse_qsl((query_string or "").lstrip("?"), keep_blank_values=True):
        params.setdefault(key, value)
    return params


def safe_decode(raw: Optional[str]) -> Decoded:
    if not raw:
        return Decoded(None, True)
    if _BAD_ESCAPE.search(raw):
        logger.debug("Malformed escape in %r; keeping raw value", raw[:40])
        return Decoded(raw, False)
    try:
        return Decoded(unquote(raw, errors="strict"), True)
    except UnicodeDecodeError:
        logger.debug("Escape in %r is not UTF-8; keeping raw value", raw[:40])
        return Decoded(raw, False)


def _reject_constant(name: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"invalid JSON constant {name}")


def parse_components(raw: Optional[str]) -> Decoded:
    if not raw:
        return Decoded((), True)
    text = safe_decode(raw).value
    try:
        items = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        logger.debug("components is not JSON (%d chars); using none", len(text))
        return Decoded((), False)
    if not isinstance(items, list):
        logger.debug("components is %s, not a list; using none", type(items).__name__)
        return Decoded((), False)
    return Decoded(tuple(TreatmentComponent.from_json(item) for item in items), True)


def epoch_ms(moment: datetime) -> int:
    return (moment - EPOCH) // timedelta(milliseconds=1)


def format_ist(moment: datetime, tz=IST) -> str:
    # en-IN long form, e.g. "5/1/2026, 9:03:07 am"
    local = moment.astimezone(tz)
    hour = local.hour % 12 or 12
    suffix = "am" if local.hour < 12 else "pm"
    return (
        f"{local.day}/{local.month}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {suffix}"
    )


def decode_query(query_string: str, now: datetime, tz=IST) -> AdvisoryRecord:
    params = read_query(query_string)

    def text(name: str) -> str:
        return safe_decode(params.get(name)).value or DEFAULTS[name]

    receipt_id = safe_decode(params.get("receipt_id")).value
    return AdvisoryRecord(
        receipt_id=receipt_id or f"{RECEIPT_ID_PREFIX}{epoch_ms(now)}",
        rendered_at=format_ist(now, tz),
        problem_name_te=text("problem_name_te"),
        problem_name_en=text("problem_name_en"),
        category=text("category"),
        stage=text("stage"),
        symptoms_te=text("symptoms_te"),
        notes_te=text("notes_te"),
        components=parse_components(params.get("components")).value,
    )


def encode_query(record: AdvisoryRecord) -> str:
    """
    Build the query string a kiosk would send for ``record``; defaults are left out.

    Values are encoded twice, matching the two decoding passes in
    ``decode_query``, so text such as "1%20 WP" comes back unchanged.
    """
    pairs = []
    for name, default in DEFAULTS.items():
        value = getattr(record, name)
        if value and value != default:
            pairs.append((name, value))
    if record.components:
        payload = [c.as_dict() for c in record.components]
        pairs.append(
            ("components", json.dumps(payload, ensure_ascii=False, separators=(",", ":")))
        )
    if record.receipt_id:
        pairs.append(("receipt_id", record.receipt_id))
    return urlencode(
        [(name, quote(value, safe="")) for name, value in pairs], quote_via=quote
    )
