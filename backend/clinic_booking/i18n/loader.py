import re
from pathlib import Path
from typing import Dict, Set

MESSAGES: Dict[str, Dict[str, str]] = {}
AVAILABLE_LANGS: Set[str] = set()

DEFAULT_LANG = "en"
MESSAGES_FILE = Path(__file__).resolve().parent / "messages.txt"

LINE_RE = re.compile(r'^(\w+):([^|]+)\|\s*"(.*)"$')


def load_messages(path: str | Path = MESSAGES_FILE):
    global MESSAGES, AVAILABLE_LANGS

    MESSAGES.clear()
    AVAILABLE_LANGS.clear()

    path = Path(path)
    if not path.exists():
        raise RuntimeError(f"messages file not found: {path}")

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        m = LINE_RE.match(line)
        if not m:
            continue

        lang, key, text = m.groups()
        text = text.replace("\\n", "\n").strip()

        MESSAGES.setdefault(lang, {})[key.strip()] = text
        AVAILABLE_LANGS.add(lang)


def t(key: str, lang: str | None = None, *args) -> str:
    """
    Translate key for lang, falling back to DEFAULT_LANG and then to the key.

    Positional args are applied with %-formatting.
    """
    if not MESSAGES:
        load_messages()

    if not lang:
        lang = DEFAULT_LANG

    text = (
        MESSAGES.get(lang, {}).get(key)
        or MESSAGES.get(DEFAULT_LANG, {}).get(key)
        or key
    )

    if args:
        try:
            return text % args
        except (TypeError, ValueError):
            return text

    return text


def get_available_langs() -> list[str]:
    if not MESSAGES:
        load_messages()
    return sorted(AVAILABLE_LANGS)
