"""
Language Detection

Fills in asrLanguage when the speech recognizer does not report one.
Longer utterances go through langdetect; short ones are judged by their
Unicode script alone and otherwise fall back to the default language.
"""

import logging
from typing import Dict, Optional

from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException

logger = logging.getLogger("rulebot.common.language")

# Seed langdetect for deterministic results
DetectorFactory.seed = 0

DEFAULT_LANGUAGE = "en"
MIN_DETECT_LENGTH = 10

# (first code point, last code point, ISO 639-1)
_SCRIPT_LANGUAGES = [
    (0xAC00, 0xD7AF, "ko"),    # Hangul Syllables
    (0x1100, 0x11FF, "ko"),    # Hangul Jamo
    (0x3130, 0x318F, "ko"),    # Hangul Compatibility Jamo
    (0x3040, 0x30FF, "ja"),    # Hiragana + Katakana
    (0x4E00, 0x9FFF, "zh"),    # CJK Unified Ideographs
    (0x3400, 0x4DBF, "zh"),    # CJK Extension A
]


def script_language(text: str) -> Optional[str]:
    """Language implied by the dominant non-Latin script, or None"""
    counts: Dict[str, int] = {}
    letters = 0

    for ch in text:
        if not ch.isalpha():
            continue
        letters += 1
        cp = ord(ch)
        for start, end, lang in _SCRIPT_LANGUAGES:
            if start <= cp <= end:
                counts[lang] = counts.get(lang, 0) + 1
                break

    if not counts:
        return None

    # Japanese mixes kana with CJK ideographs
    if "ja" in counts:
        return "ja"

    lang = max(counts, key=counts.get)
    return lang if counts[lang] > letters * 0.15 else None


def detect_language(text: str, default: str = DEFAULT_LANGUAGE) -> str:
    """
    Detect the language of an utterance.

    Args:
        text: Recognised speech
        default: Code returned when nothing better is known

    Returns:
        ISO 639-1 code such as "en", "nl" or "ko"
    """
    if not text or not text.strip():
        return default

    cleaned = text.strip()
    by_script = script_language(cleaned)

    if len(cleaned) < MIN_DETECT_LENGTH:
        return by_script or default

    try:
        results = detect_langs(cleaned)
    except LangDetectException as e:
        logger.debug("langdetect failed for '%s': %s", cleaned, e)
        return by_script or default

    if not results:
        return by_script or default

    # langdetect reports Chinese as zh-cn / zh-tw
    code = results[0].lang.split("-")[0]
    logger.debug("Detected language '%s' (p=%.2f) for '%s'", code, results[0].prob, cleaned)
    return code
