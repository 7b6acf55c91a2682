from __future__ import annotations

import logging
import random as _random
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")

_REQUIRED_FIELDS = ("id", "title", "code", "difficulty", "category", "language")


@dataclass(frozen=True)
class Snippet:
    id: str
    title: str
    code: str
    difficulty: str
    category: str
    language: str
    description: Optional[str] = None


def _default_snippets_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "snippets"


class SnippetRepository:
    """Read-only catalog of practice snippets loaded from YAML files.

    Each ``*.yaml`` file under the snippets directory holds a ``snippets:``
    list. Files are read in name order and snippets keep their file order.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else _default_snippets_dir()
        self._snippets = self._load_snippets()

    def all(self) -> List[Snippet]:
        return list(self._snippets.values())

    def get(self, snippet_id: str) -> Snippet:
        return self._snippets[snippet_id]

    def find(self, snippet_id: str) -> Optional[Snippet]:
        return self._snippets.get(snippet_id)

    def languages(self) -> List[str]:
        """Distinct languages in catalog order."""
        seen: Dict[str, None] = {}
        for snippet in self._snippets.values():
            seen.setdefault(snippet.language, None)
        return list(seen)

    def by_language(self, language: str) -> List[Snippet]:
        return [s for s in self._snippets.values() if s.language == language]

    def by_difficulty(self, difficulty: str) -> List[Snippet]:
        return [s for s in self._snippets.values() if s.difficulty == difficulty]

    def random(self, language: Optional[str] = None, rng: Optional[_random.Random] = None) -> Snippet:
        """Pick a random snippet, optionally restricted to one language."""
        pool = self.by_language(language) if language else self.all()
        if not pool:
            raise KeyError(f"No snippets for language: {language}")
        chooser = rng if rng is not None else _random
        return chooser.choice(pool)

    def _load_snippets(self) -> Dict[str, Snippet]:
        if not self._base_dir.exists():
            raise FileNotFoundError(f"Snippets directory not found: {self._base_dir}")

        snippets: Dict[str, Snippet] = {}
        for path in sorted(self._base_dir.glob("*.yaml")):
            try:
                raw = yaml.safe_load(path.read_text(encoding="utf-8"))
            except yaml.YAMLError as e:
                raise ValueError(f"{path.name}: invalid YAML ({e})") from e
            if not raw or not isinstance(raw, dict) or not isinstance(raw.get("snippets"), list):
                raise ValueError(f"{path.name}: expected YAML with a 'snippets' list")

            for index, item in enumerate(raw["snippets"]):
                snippet = _parse_snippet(path.name, index, item)
                if snippet.id in snippets:
                    raise ValueError(f"{path.name}: duplicate snippet id '{snippet.id}'")
                snippets[snippet.id] = snippet
            logger.debug("Loaded %d snippets from %s", len(raw["snippets"]), path.name)

        if not snippets:
            raise ValueError(f"No snippets found in {self._base_dir}")
        return snippets


def _parse_snippet(file_name: str, index: int, item: object) -> Snippet:
    if not isinstance(item, dict):
        raise ValueError(f"{file_name}: snippet #{index} is not a mapping")
    missing = [name for name in _REQUIRED_FIELDS if not item.get(name)]
    if missing:
        raise ValueError(f"{file_name}: snippet #{index} missing {', '.join(missing)}")
    difficulty = str(item["difficulty"]).strip().lower()
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"{file_name}: snippet #{index} has invalid difficulty '{item['difficulty']}'")
    # code is kept verbatim apart from the trailing newline YAML block scalars add
    code = str(item["code"]).rstrip("\n")
    description = item.get("description")
    return Snippet(
        id=str(item["id"]).strip(),
        title=str(item["title"]).strip(),
        code=code,
        difficulty=difficulty,
        category=str(item["category"]).strip(),
        language=str(item["language"]).strip(),
        description=str(description).strip() if description else None,
    )
