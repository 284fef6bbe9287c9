import re
import unicodedata
from typing import Iterable, List, Sequence

from bs4 import BeautifulSoup


STOP_WORDS = frozenset(
    {
        "the", "and", "for", "with", "this", "that", "from", "they", "were", "been", "have",
        "their", "would", "could", "should", "which", "where", "there", "what", "when", "will",
        "can", "are", "is", "was", "by", "an", "as", "at", "be", "or", "in", "on", "of", "to",
    }
)

_ATTRIBUTION_RE = re.compile(r"\s+[-–—]\s+[A-Za-z][A-Za-z\s&.,]*\s*$")
_URL_RE = re.compile(r"https?://\S+|www\.\S+\.[a-z]{2,}\S*", re.IGNORECASE)


def slugify(value: str, allow_unicode: bool = False) -> str:
    value = str(value)
    if allow_unicode:
        value = unicodedata.normalize("NFKC", value)
    else:
        value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[\s\-]+", "-", re.sub(r"[^\w\s-]", "", value).strip().lower())
    return value or "trend"


def significant_words(text: str, min_length: int = 3, stop_words: Iterable[str] = STOP_WORDS) -> List[str]:
    """Lowercased words of at least ``min_length`` chars, punctuation stripped, stop words dropped."""
    stop = set(stop_words)
    words = re.sub(r"[^\w\s]", " ", text.lower()).split()
    return [w for w in words if len(w) >= min_length and w not in stop]


def title_words(title: str, min_length: int) -> List[str]:
    return [w for w in re.sub(r"[^\w\s]", " ", title.lower()).split() if len(w) >= min_length]


def split_terms(text: str, pattern: str) -> List[str]:
    return [part for part in re.split(pattern, text.lower()) if part]


def contains_word(text: str, word: str) -> bool:
    """Whole-word, case-insensitive match; ``word`` may span several words."""
    return re.search(rf"\b{re.escape(word.lower())}\b", text.lower()) is not None


def starts_word(text: str, word: str) -> bool:
    """Case-insensitive match anchored at a word start, so inflections like "launches" count."""
    return re.search(rf"\b{re.escape(word.lower())}", text.lower()) is not None


def starts_any_word(text: str, words: Sequence[str]) -> bool:
    return any(starts_word(text, word) for word in words)


def dedupe(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def clean_html(html_text: str) -> str:
    if not html_text:
        return ""
    soup = BeautifulSoup(html_text, "html.parser")
    for tag in soup.find_all("font"):
        tag.decompose()
    text = soup.get_text(separator=" ")
    text = _URL_RE.sub("", text)
    text = " ".join(text.split())
    return _ATTRIBUTION_RE.sub("", text).strip(" -–—")


def clean_news_title(title: str) -> str:
    """Strips markup, entities and the trailing " - Publisher" attribution from a headline."""
    if not title:
        return ""
    text = BeautifulSoup(title, "html.parser").get_text(separator=" ")
    text = " ".join(text.split())
    return _ATTRIBUTION_RE.sub("", text).strip()


def is_meaningful(text: str) -> bool:
    if not text or len(text) < 10:
        return False
    return len([word for word in text.split() if len(word) > 2]) >= 3


def truncate_on_word(text: str, max_chars: int, min_cut: int) -> str:
    if len(text) <= max_chars:
        return text
    cut = text[:max_chars].rstrip()
    last_space = cut.rfind(" ")
    if last_space > min_cut:
        cut = cut[:last_space]
    return f"{cut}..."
