"""STAR / CARE narrative generation from the persisted fact cards."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from prism_core.errors import PrismError, ProviderError
from prism_core.providers.base import BaseProvider
from prism_store.base import NARRATIVE_TYPES, BaseStore
from prism_store.models import FactCardEntry

logger = logging.getLogger(__name__)

NarrativeProgress = Callable[[str, int, int], Any]

_SYSTEM_PROMPT = """You turn fact cards about pull requests into career narratives. \
Group related pull requests into one narrative when they serve the same goal. \
Use only facts present in the cards and cite the pull requests each narrative is built from."""

_FORMATS = {
    "star": ("STAR", ["situation", "task", "action", "result"]),
    "care": ("CARE", ["context", "action", "result", "evidence"]),
}


def build_narrative_prompt(narrative_type: str, cards: list[FactCardEntry], lang: str | None = None) -> str:
    name, sections = _FORMATS[narrative_type]
    payload = [{"pr": str(c.identity), **c.card} for c in cards]
    fields = ",\n      ".join(f'"{s}": "<...>"' for s in sections)
    return f"""## Fact Cards
{json.dumps(payload, indent=2, ensure_ascii=False)}

### Output Format:
Write {name} narratives in {lang or "English"}. Respond with **only** a JSON object:

{{
  "narratives": [
    {{
      "title": "<short headline>",
      {fields},
      "prs": ["<owner/repo#number>", ...]
    }},
    ...
  ]
}}"""


def generate_narratives(
    store: BaseStore,
    provider: BaseProvider,
    on_progress: NarrativeProgress | None = None,
    lang: str | None = None,
) -> dict[str, dict]:
    """Generate and persist one document per narrative type; return them keyed by type.

    Narratives aggregate every card, so they are regenerated on each run.
    """
    cards = store.read_all_fact_cards()
    if not cards:
        raise PrismError("No fact cards found. Run generate-facts first.")

    total = len(NARRATIVE_TYPES)
    results: dict[str, dict] = {}
    for step, narrative_type in enumerate(NARRATIVE_TYPES, 1):
        if on_progress is not None:
            on_progress(narrative_type, step - 1, total)
        data = provider.complete_json(_SYSTEM_PROMPT, build_narrative_prompt(narrative_type, cards, lang))
        if not isinstance(data, dict) or not isinstance(data.get("narratives"), list):
            raise ProviderError(f"{narrative_type} response lacks a 'narratives' list")
        store.write_narrative(narrative_type, data)
        logger.info("Wrote %d %s narrative(s) from %d card(s)", len(data["narratives"]), narrative_type, len(cards))
        results[narrative_type] = data
        if on_progress is not None:
            on_progress(narrative_type, step, total)
    return results
