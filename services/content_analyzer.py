"""Content analyzers that score memory transcripts before consensus."""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from typing import Any, Protocol

from openai import OpenAI

from models import ContentAnalysis


logger = logging.getLogger(__name__)

DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"

_WORD_PATTERN = re.compile(r"[a-z']+")

EMOTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "happy": ("happy", "joy", "excited", "great", "wonderful", "amazing", "love", "fantastic"),
    "sad": ("sad", "depressed", "down", "upset", "crying", "tears", "lonely", "hurt"),
    "anxious": ("worried", "nervous", "anxious", "stress", "panic", "fear", "scared"),
    "calm": ("peaceful", "calm", "relaxed", "serene", "quiet", "tranquil", "meditation"),
    "excited": ("excited", "thrilled", "pumped", "energetic", "enthusiastic"),
    "thoughtful": ("thinking", "pondering", "reflecting", "considering", "wondering"),
}

STOP_WORDS = frozenset(
    """
    the a an and or but in on at to for of with by is was are were be been have has had do does
    did will would could should may might must can i you he she it we they me him her us them my
    your his its our their this that there then than what when just about from into
    """.split()
)

_SYSTEM_PROMPT = (
    "You review voice memo transcripts before they are anchored in a verification ledger. "
    "Respond with JSON containing: confidence_score (0-1, how coherent and authentic the content "
    "looks), flags (list of short strings for anything suspicious), summary, emotion, keywords."
)


class ContentAnalyzer(Protocol):
    def analyze(self, content: str) -> ContentAnalysis: ...


class HeuristicContentAnalyzer:
    """Offline keyword analysis used when no model is configured."""

    def __init__(self, *, keyword_limit: int = 5) -> None:
        self.keyword_limit = keyword_limit

    def analyze(self, content: str) -> ContentAnalysis:
        words = _WORD_PATTERN.findall((content or "").lower())
        if not words:
            return ContentAnalysis(
                confidence_score=0.0,
                flags=("empty_content",),
                summary="No transcript content to analyze.",
                emotion="neutral",
            )

        emotion = "neutral"
        best_matches = 0
        for label, keywords in EMOTION_KEYWORDS.items():
            matches = sum(1 for keyword in keywords if any(keyword in word for word in words))
            if matches > best_matches:
                best_matches = matches
                emotion = label

        counts = Counter(word for word in words if len(word) > 3 and word not in STOP_WORDS)
        keywords = tuple(word for word, _ in counts.most_common(self.keyword_limit))

        flags: list[str] = []
        if len(words) < 5:
            flags.append("short_content")

        word_count = len(words)
        if word_count < 20:
            summary = f"A brief {word_count}-word reflection capturing a personal moment and thoughts."
        elif word_count < 50:
            summary = f"A thoughtful {word_count}-word recording sharing personal insights and experiences."
        else:
            summary = (
                f"A detailed {word_count}-word memory capturing important thoughts, feelings, "
                "and experiences worth remembering."
            )

        return ContentAnalysis(
            confidence_score=round(min(0.7 + best_matches * 0.1, 0.95), 3),
            flags=tuple(flags),
            summary=summary,
            emotion=emotion,
            keywords=keywords,
            source="heuristic",
        )


class OpenAIContentAnalyzer:
    """Ask an OpenAI chat model for a confidence score.

    Model or parsing failures fall back to :class:`HeuristicContentAnalyzer`;
    the returned analysis carries an ``analyzer_fallback`` flag in that case.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = DEFAULT_OPENAI_MODEL,
        client: Any = None,
        fallback: ContentAnalyzer | None = None,
    ) -> None:
        if client is None:
            client = OpenAI(api_key=api_key)
        self._client = client
        self.model = model
        self._fallback = fallback or HeuristicContentAnalyzer()

    def analyze(self, content: str) -> ContentAnalysis:
        if not (content or "").strip():
            return self._fallback.analyze(content)
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": content},
                ],
                temperature=0.2,
                max_tokens=400,
            )
            raw = response.choices[0].message.content or ""
            payload = json.loads(_strip_code_fence(raw))
        except Exception as exc:  # noqa: BLE001 - any model failure degrades to the heuristic
            logger.warning("OpenAI analysis failed (%s); using heuristic analyzer", exc)
            degraded = self._fallback.analyze(content)
            return ContentAnalysis(
                confidence_score=degraded.confidence_score,
                flags=(*degraded.flags, "analyzer_fallback"),
                summary=degraded.summary,
                emotion=degraded.emotion,
                keywords=degraded.keywords,
                source=degraded.source,
            )
        if not isinstance(payload, dict):
            payload = {}
        return ContentAnalysis.from_dict(payload, source="openai")


def _strip_code_fence(raw: str) -> str:
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    return text.strip()


__all__ = [
    "ContentAnalyzer",
    "DEFAULT_OPENAI_MODEL",
    "EMOTION_KEYWORDS",
    "HeuristicContentAnalyzer",
    "OpenAIContentAnalyzer",
]
