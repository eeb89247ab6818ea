"""Translation catalogs loaded from ``<lang>.yaml`` files."""

import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from jpulse_core.config.loader import deep_merge
from jpulse_core.types import RequestInfo

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{(.*?)\}\}")
_I18N_MARKER = re.compile(r"\{\{(@?i18n\.[\w.\-]+(?:\s+\{.*?\})?)\s*\}\}")


def _leaf_paths(tree: dict[str, Any], prefix: str = "") -> list[str]:
    paths: list[str] = []
    for key, value in tree.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            paths.extend(_leaf_paths(value, path))
        else:
            paths.append(path)
    return paths


class I18n:
    """Translation lookup with per-request language selection.

    Every non-default language is completed from the default language at
    load time, so a missing key in ``de.yaml`` shows the English text.
    """

    def __init__(self, languages: dict[str, dict[str, Any]] | None = None, default: str = "en"):
        """Initialize catalog.

        Args:
            languages: Language code -> nested translation mapping
            default: Fallback language code
        """
        self.langs: dict[str, dict[str, Any]] = {}
        self.default = default
        for code, tree in (languages or {}).items():
            self.add_language(code, tree)

    @classmethod
    def from_directory(cls, directory: str | Path, default: str = "en") -> "I18n":
        """Load every ``*.yaml`` file in a directory; the stem is the language code.

        A missing directory yields an empty catalog.
        """
        catalog = cls(default=default)
        root = Path(directory)
        if not root.is_dir():
            logger.warning(f"Translation directory not found: {root}")
            return catalog
        files = sorted(root.glob("*.yaml"))
        # Default language first so others can be completed from it
        files.sort(key=lambda p: p.stem != default)
        for path in files:
            with open(path, encoding="utf-8") as f:
                tree = yaml.safe_load(f) or {}
            if not isinstance(tree, dict):
                logger.warning(f"Ignoring translation file without a mapping: {path}")
                continue
            catalog.add_language(path.stem, tree)
        logger.info(f"Loaded {len(catalog.langs)} language(s) from {root}")
        return catalog

    def add_language(self, code: str, tree: dict[str, Any]) -> None:
        """Add or replace a language, completing it from the default language."""
        base = self.langs.get(self.default)
        if base is not None and code != self.default:
            missing = sorted(set(_leaf_paths(base)) - set(_leaf_paths(tree)))
            if missing:
                logger.warning(f"Missing in {code}: {', '.join(missing)}")
            tree = deep_merge(base, tree)
        self.langs[code] = tree

    def has_lang(self, code: str | None) -> bool:
        return bool(code) and code in self.langs

    def get_codes(self) -> list[str]:
        return list(self.langs)

    def get_list(self) -> list[tuple[str, str]]:
        """(code, display name) pairs; the name comes from a top-level ``lang`` key."""
        return [(code, str(tree.get("lang") or code.capitalize())) for code, tree in self.langs.items()]

    def get_lang(self, code: str | None) -> dict[str, Any]:
        """Translations for a language, the default language if unknown."""
        if code and code in self.langs:
            return self.langs[code]
        return self.langs.get(self.default, {})

    def language_for(self, request: RequestInfo | None) -> str:
        """Pick the request language.

        Order: the user's saved preference, the request language (primary
        subtag of Accept-Language), the default language.
        """
        if request is not None:
            user = request.user or {}
            preferred = (user.get("preferences") or {}).get("language")
            for candidate in (preferred, request.language):
                if not candidate:
                    continue
                if candidate in self.langs:
                    return candidate
                primary = candidate.split("-")[0].lower()
                if primary in self.langs:
                    return primary
        return self.default

    def translate(
        self,
        request: RequestInfo | None,
        key: str,
        params: dict[str, Any] | None = None,
        fallback: str | None = None,
    ) -> str:
        """Translate a dotted key for the request's language.

        Falls back to ``fallback`` (default language), then to the key
        itself. ``{{name}}`` placeholders are replaced from ``params``;
        unknown placeholders are left as-is.
        """
        lang = self.language_for(request)
        text = self._lookup(lang, key)
        fallback = fallback or self.default
        if text is None and fallback != lang:
            text = self._lookup(fallback, key)
        if text is None:
            logger.debug(f"Translation not found: {lang}.{key}")
            return key
        if params:
            text = _PLACEHOLDER.sub(lambda m: str(params.get(m.group(1).strip(), m.group(0))), text)
        return text

    def expand_i18n_handlebars(self, request: RequestInfo | None, content: str) -> str:
        """Replace ``{{i18n.key}}`` markers, leaving other markers untouched.

        ``{{i18n.key {"name": "x"}}}`` passes JSON parameters; ``{{@i18n.key}}``
        is accepted for markers escaped from earlier processing.
        """

        def replace(match: re.Match[str]) -> str:
            expression = match.group(1).lstrip("@")
            parts = expression.split(None, 1)
            key = parts[0][len("i18n.") :]
            params: dict[str, Any] = {}
            if len(parts) > 1:
                try:
                    loaded = json.loads(parts[1])
                except ValueError:
                    loaded = None
                params = loaded if isinstance(loaded, dict) else {}
            return self.translate(request, key, params)

        return _I18N_MARKER.sub(replace, content)

    def _lookup(self, lang: str, key: str) -> str | None:
        node: Any = self.langs.get(lang)
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, str) else None
