"""
Bidirectional lookup between language codes and language names.

Both English and native names are recognised, case-insensitively:

    catalog.get_code_by_name("Portuguese")  # "pt"
    catalog.get_code_by_name("PORTUGUÊS")   # "pt"
    catalog.get_names_by_code("pt")         # {"english": "Portuguese", "native": "Português"}

Every accessor accepts None and answers with an empty result instead of raising.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from comapeo_builder.utils.language_data import ACCENT_FREE_ALIASES, LANGUAGES

logger = logging.getLogger(__name__)


def normalize_language_name(name: Optional[str]) -> str:
    # str.lower() is locale independent, so "I" never turns into a dotless "ı".
    if not name:
        return ""
    return str(name).strip().lower()


class LanguageCatalog:
    def __init__(
        self,
        entries: Iterable[Tuple[str, str, str]],
        aliases: Optional[Mapping[str, str]] = None,
    ):
        self._code_to_names: Dict[str, Dict[str, str]] = {}
        self._name_to_code: Dict[str, str] = {}
        self._code_by_lower: Dict[str, str] = {}

        for code, english, native in entries:
            if code in self._code_to_names:
                logger.warning("Duplicate language code %s in language table, keeping the first entry", code)
                continue
            self._code_to_names[code] = {"english": english, "native": native}
            self._code_by_lower.setdefault(code.lower(), code)

            normalized_english = normalize_language_name(english)
            normalized_native = normalize_language_name(native)
            self._register_name(normalized_english, english, code)
            if normalized_native != normalized_english:
                self._register_name(normalized_native, native, code)

        for alias, code in (aliases or {}).items():
            canonical = self.find_code(code)
            if not canonical:
                logger.warning("Alias %r points to unknown language code %s", alias, code)
                continue
            normalized = normalize_language_name(alias)
            if normalized not in self._name_to_code:
                self._name_to_code[normalized] = canonical

    def _register_name(self, normalized: str, display: str, code: str) -> None:
        if not normalized:
            return
        existing = self._name_to_code.get(normalized)
        if existing and existing != code:
            logger.warning(
                "Language name collision: %r (%s) normalizes to %r, already used by %s. Using first match (%s).",
                display,
                code,
                normalized,
                existing,
                existing,
            )
            return
        self._name_to_code[normalized] = code

    def normalize(self, name: Optional[str]) -> str:
        return normalize_language_name(name)

    def get_code_by_name(self, name: Optional[str]) -> Optional[str]:
        if not name:
            return None
        return self._name_to_code.get(normalize_language_name(name))

    def get_names_by_code(self, code: Optional[str]) -> Optional[Dict[str, str]]:
        if not code:
            return None
        names = self._code_to_names.get(code)
        return dict(names) if names else None

    def get_all_aliases(self, code: Optional[str]) -> List[str]:
        if not code:
            return []
        names = self._code_to_names.get(code)
        if not names:
            return []
        aliases = [names["english"]]
        if names["native"] != names["english"]:
            aliases.append(names["native"])
        return aliases

    def has_code(self, code: Optional[str]) -> bool:
        if not code:
            return False
        return code in self._code_to_names

    def has_name(self, name: Optional[str]) -> bool:
        if not name:
            return False
        return normalize_language_name(name) in self._name_to_code

    def get_all_codes(self) -> List[str]:
        return list(self._code_to_names.keys())

    def find_code(self, code: Optional[str]) -> Optional[str]:
        """Case-insensitive code lookup returning the table's own spelling (zh-cn -> zh-CN)."""
        if not code:
            return None
        return self._code_by_lower.get(str(code).strip().lower())

    def display_name(self, code: Optional[str]) -> str:
        names = self.get_names_by_code(self.find_code(code))
        if not names:
            return code or ""
        return names["english"]


@lru_cache
def get_language_catalog() -> LanguageCatalog:
    catalog = LanguageCatalog(LANGUAGES, ACCENT_FREE_ALIASES)
    logger.debug("Language catalog loaded with %d languages", len(catalog.get_all_codes()))
    return catalog
