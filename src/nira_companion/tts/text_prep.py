"""Text preparation for speech synthesis."""

import re

_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_URL_TAG_RE = re.compile(r"<URL>.*?</URL>", re.IGNORECASE | re.DOTALL)
_NAKED_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)
_BRACKETS_RE = re.compile(r"[\[\]()]")
_DOMAIN_SUFFIX_RE = re.compile(r"\.(com|in|org|net|app|vercel|ai)\b", re.IGNORECASE)
_SEPARATORS_RE = re.compile(r"[/_-]")
_WHITESPACE_RE = re.compile(r"\s+")

# sentence terminators, including the Devanagari danda
_SENTENCE_RE = re.compile(r"[^.!?।\n]+(?:[.!?।]+|\n|$)")


def clean_text_for_tts(text: str | None) -> str:
    """Make text speakable: no URLs, no markdown, domains read out."""
    if not text:
        return ""
    text = _MARKDOWN_LINK_RE.sub(r"\1", text)
    text = _URL_TAG_RE.sub("Link", text)
    text = _NAKED_URL_RE.sub("", text)
    text = _BRACKETS_RE.sub(" ", text)
    text = _DOMAIN_SUFFIX_RE.sub(lambda m: f" dot {m.group(1).lower()}", text)
    text = _SEPARATORS_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _split_long(sentence: str, max_chars: int) -> list[str]:
    parts: list[str] = []
    current = ""
    for word in sentence.split():
        while len(word) > max_chars:
            if current:
                parts.append(current)
                current = ""
            parts.append(word[:max_chars])
            word = word[max_chars:]
        candidate = f"{current} {word}" if current else word
        if len(candidate) > max_chars:
            parts.append(current)
            current = word
        else:
            current = candidate
    if current:
        parts.append(current)
    return parts


def chunk_text(text: str, max_chars: int = 450) -> list[str]:
    """Split text into ordered chunks of at most ``max_chars`` characters.

    Sentences are packed greedily; a sentence longer than ``max_chars`` is
    split on word boundaries (and a single overlong word is hard cut).
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")
    text = text.strip()
    if not text:
        return []

    sentences = [s.strip() for s in _SENTENCE_RE.findall(text) if s.strip()]
    chunks: list[str] = []
    current = ""
    for sentence in sentences:
        if len(sentence) > max_chars:
            if current:
                chunks.append(current)
                current = ""
            chunks.extend(_split_long(sentence, max_chars))
            continue
        candidate = f"{current} {sentence}" if current else sentence
        if len(candidate) > max_chars:
            chunks.append(current)
            current = sentence
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks
