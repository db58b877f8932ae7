"""Best-effort loading of the auxiliary documents that ship alongside streaming history."""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from listening_facts.models.listening_data import ExtrasContext
from listening_facts.services.history_parser import load_json_text

logger = logging.getLogger(__name__)


class MatchMode(str, Enum):
    EXACT = "exact"        # one file with exactly this name
    FIRST = "first"        # scan the bag, first file matching the pattern that parses
    MERGE = "merge"        # every matching file, list values under `merge_key` concatenated


@dataclass(frozen=True)
class ExtrasDocument:
    field: str
    pattern: str
    match: MatchMode = MatchMode.EXACT
    prefix: bool = False
    merge_key: Optional[str] = None

    def matches(self, filename: str) -> bool:
        if self.match == MatchMode.MERGE:
            return re.fullmatch(self.pattern, filename) is not None
        if self.prefix:
            return filename.startswith(self.pattern)
        return filename == self.pattern


EXTRAS_DOCUMENTS = (
    ExtrasDocument("identity", "Identity.json"),
    ExtrasDocument("follow", "Follow.json"),
    ExtrasDocument("playlists", r"Playlist\d+\.json", MatchMode.MERGE, merge_key="playlists"),
    ExtrasDocument("marquee", "Marquee.json", MatchMode.FIRST),
    ExtrasDocument("wrapped", "Wrapped", MatchMode.FIRST, prefix=True),
    ExtrasDocument("library", "YourLibrary.json"),
    ExtrasDocument("capsule", "YourSoundCapsule.json"),
)


class ExtrasLoader:
    def __init__(self, files: Dict[str, str], documents: Sequence[ExtrasDocument] = EXTRAS_DOCUMENTS):
        self.files = files
        self.documents = documents

    def _load_exact(self, document: ExtrasDocument) -> Any:
        return load_json_text(document.pattern, self.files.get(document.pattern))

    def _load_first(self, document: ExtrasDocument) -> Any:
        for name, text in self.files.items():
            if not document.matches(name):
                continue
            content = load_json_text(name, text)
            if content is not None:
                return content
        return None

    def _load_merged(self, document: ExtrasDocument) -> Optional[Dict[str, List[Any]]]:
        merged: Optional[Dict[str, List[Any]]] = None
        for name, text in self.files.items():
            if not document.matches(name):
                continue
            content = load_json_text(name, text)
            if not isinstance(content, dict):
                continue
            items = content.get(document.merge_key)
            if merged is None:
                merged = {document.merge_key: []}
            if isinstance(items, list):
                merged[document.merge_key].extend(items)
        return merged

    def load(self) -> ExtrasContext:
        extras = ExtrasContext()
        loaders = {
            MatchMode.EXACT: self._load_exact,
            MatchMode.FIRST: self._load_first,
            MatchMode.MERGE: self._load_merged,
        }
        for document in self.documents:
            value = loaders[document.match](document)
            setattr(extras, document.field, value)
            if value is None:
                logger.info(f"No usable '{document.field}' document found.")
        return extras


def load_extras(files: Dict[str, str]) -> ExtrasContext:
    return ExtrasLoader(files).load()
