from .loader import DEFAULT_LANG, get_available_langs, load_messages, t

__all__ = ["DEFAULT_LANG", "get_available_langs", "load_messages", "t"]
