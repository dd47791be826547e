import json
import logging
import re
from typing import Any, Dict, List

from backend.app.logging_config import GenerationError
from backend.app.schemas import BiometricSnapshot, Tip, TipsByCategory, MAX_TIPS_PER_CATEGORY, TIP_CATEGORIES

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """Create 3 concise wellness tips per category, each title starting with an emoji.
Categories: diet, exercise, sleep, stress.
Personalize using:
- risk_level: {risk_level}
- score: {score}
- heart_rate: {heart_rate} bpm
- blood_pressure: {blood_pressure}
- spo2: {spo2}%
- vascular_risk: {vascular_risk}
Day seed: {day_seed} (tips must change from day to day).

Return ONLY valid JSON in this exact format with no additional text:
{{
  "diet": [{{"title": "..", "short_description": "..", "long_description": ".."}}],
  "exercise": [...3 tips...],
  "sleep": [...3 tips...],
  "stress": [...3 tips...]
}}
Keep each short_description 20-35 words and each long_description 40-60 words.
Friendly, actionable, no duplicated advice across categories.
"""

SHORT_KEYS = ("short_description", "shortDescription", "description")
LONG_KEYS = ("long_description", "longDescription")

_FENCE = re.compile(r"\A\s*```(?:json)?[ \t]*\n?|\n?[ \t]*```\s*\Z", re.IGNORECASE)
_WS = re.compile(r"\s+")

def build_prompt(snapshot: BiometricSnapshot, day_seed: int) -> str:
    def show(value):
        return "unknown" if value is None or value == "" else value

    return PROMPT_TEMPLATE.format(
        risk_level=show(snapshot.risk_level),
        score=show(snapshot.score),
        heart_rate=show(snapshot.heart_rate),
        blood_pressure=show(snapshot.blood_pressure),
        spo2=show(snapshot.spo2),
        vascular_risk=show(snapshot.vascular_risk),
        day_seed=day_seed
    )

def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()

def _clean(value: Any) -> str:
    if value is None:
        return ""
    return _WS.sub(" ", str(value)).strip()

def _first(item: Dict[str, Any], keys) -> str:
    for key in keys:
        value = _clean(item.get(key))
        if value:
            return value
    return ""

def _category_key(raw_category) -> str:
    """Known categories match case-insensitively; anything else keeps its own spelling."""
    key = _clean(raw_category)
    return key.lower() if key.lower() in TIP_CATEGORIES else key

def parse_tips(raw_text: str) -> TipsByCategory:
    """Parse a raw completion into tips grouped by category.

    Raises GenerationError for anything that is not a non-empty JSON object of
    category -> list of complete tip objects. Extra tips beyond the per-category
    cap are dropped; unexpected categories are kept. Keys naming the same
    category (e.g. "Diet" and "diet") are merged in order up to the cap.
    """
    if raw_text is None or not raw_text.strip():
        raise GenerationError("Empty response from generation backend")

    text = strip_code_fences(raw_text)
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        raise GenerationError(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise GenerationError("Response JSON is not an object")
    if not data:
        raise GenerationError("Response JSON contains no categories")

    result: TipsByCategory = {}
    for raw_category, items in data.items():
        category = _category_key(raw_category)
        if not isinstance(items, list):
            raise GenerationError(f"Category '{raw_category}' is not a list")

        tips: List[Tip] = []
        for i, item in enumerate(items[:MAX_TIPS_PER_CATEGORY]):
            if not isinstance(item, dict):
                raise GenerationError(f"Tip {i+1} in '{category}' is not an object")

            title = _clean(item.get("title"))
            short = _first(item, SHORT_KEYS)
            long = _first(item, LONG_KEYS)
            missing = [name for name, value in
                       (("title", title), ("short_description", short), ("long_description", long))
                       if not value]
            if missing:
                raise GenerationError(
                    f"Tip {i+1} in '{category}' missing fields: {', '.join(missing)}"
                )

            tips.append(Tip(title=title, short_description=short, long_description=long,
                            category=category))
        merged = result.setdefault(category, [])
        merged.extend(tips[:MAX_TIPS_PER_CATEGORY - len(merged)])

    return result

class ExternalTipGenerator:
    """Personalized tips from the external text-completion backend."""

    def __init__(self, backend):
        self.backend = backend

    @property
    def configured(self) -> bool:
        return bool(getattr(self.backend, "configured", False))

    def generate(self, snapshot: BiometricSnapshot, day_seed: int) -> TipsByCategory:
        if not self.configured:
            raise GenerationError("Generation backend not configured")

        prompt = build_prompt(snapshot, day_seed)
        try:
            raw = self.backend.complete(prompt, metadata={"user_id": snapshot.user_id})
        except Exception as e:
            raise GenerationError(f"Generation backend call failed: {e}") from e

        tips = parse_tips(raw)
        logger.info(
            f"Generated {sum(len(v) for v in tips.values())} tips in {len(tips)} categories",
            extra={"user_id": snapshot.user_id, "tier": "external"}
        )
        return tips
