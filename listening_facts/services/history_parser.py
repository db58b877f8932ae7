import json
import logging
from typing import Any, Dict, List, Optional

from listening_facts.config import settings
from listening_facts.exceptions import NoHistoryFoundError
from listening_facts.models.listening_data import NormalizedHistory, PlayEvent, parse_end_time

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


def load_json_text(filename: str, text: Optional[str]) -> Any:
    """Parse a document from the file bag, returning None when it is absent or not valid JSON."""
    if text is None:
        return None
    try:
        content = json.loads(text)
        logger.debug(f"Successfully loaded {filename}")
        return content
    except json.JSONDecodeError as e:
        logger.warning(f"Could not decode JSON from {filename}: {e}")
    return None


def _non_negative_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, int(value))


def _name(value: Any) -> str:
    return value if isinstance(value, str) and value else UNKNOWN


def _end_time(value: Any, source: str) -> Optional[str]:
    if value is None:
        return None
    if parse_end_time(value) is None:
        logger.debug(f"Dropping unparseable end time {value!r} from {source}")
        return None
    return value


class StreamingHistoryParser:
    """Turns either history export schema into one list of canonical play events."""

    def __init__(self, files: Dict[str, str]):
        self.files = files
        self.extended_prefix = settings.EXTENDED_HISTORY_PREFIX
        self.standard_prefix = settings.STANDARD_HISTORY_PREFIX

    def _history_chunks(self, prefix: str) -> List[List[Any]]:
        chunks = []
        for name, text in self.files.items():
            if not name.startswith(prefix):
                continue
            records = load_json_text(name, text)
            if records is None:
                continue
            if not isinstance(records, list):
                logger.warning(f"{name} does not contain a list of streams, skipping.")
                continue
            chunks.append(records)
        return chunks

    @staticmethod
    def _from_extended(record: Dict[str, Any], source: str) -> Optional[PlayEvent]:
        track_name = record.get("master_metadata_track_name")
        if track_name is None:
            # Podcast episodes and audiobooks carry no track name
            return None

        ts = record.get("ts")
        end_time = None
        if isinstance(ts, str):
            end_time = _end_time(ts.replace("T", " ")[:16], source)

        return PlayEvent(
            end_time=end_time,
            ms_played=_non_negative_int(record.get("ms_played")),
            track_name=_name(track_name),
            artist_name=_name(record.get("master_metadata_album_artist_name")),
            album_name=record.get("master_metadata_album_album_name") or "",
            skipped=bool(record.get("skipped")),
            platform=record.get("platform") or "",
            shuffle=bool(record.get("shuffle")),
            offline=bool(record.get("offline")),
            incognito=bool(record.get("incognito_mode")),
            reason_start=record.get("reason_start") or "",
            reason_end=record.get("reason_end") or "",
        )

    @staticmethod
    def _from_standard(record: Dict[str, Any], source: str) -> PlayEvent:
        return PlayEvent(
            end_time=_end_time(record.get("endTime"), source),
            ms_played=_non_negative_int(record.get("msPlayed")),
            track_name=_name(record.get("trackName")),
            artist_name=_name(record.get("artistName")),
        )

    def parse(self) -> NormalizedHistory:
        history = NormalizedHistory()

        if any(name.startswith(self.extended_prefix) for name in self.files):
            extended_chunks = self._history_chunks(self.extended_prefix)
            logger.info(f"Extended streaming history detected ({len(extended_chunks)} readable files).")
            history.extended = True
            for records in extended_chunks:
                for record in records:
                    if not isinstance(record, dict):
                        continue
                    event = self._from_extended(record, self.extended_prefix)
                    if event is not None:
                        history.events.append(event)
        else:
            standard_chunks = self._history_chunks(self.standard_prefix)
            logger.info(f"Standard streaming history detected ({len(standard_chunks)} readable files).")
            for records in standard_chunks:
                for record in records:
                    if isinstance(record, dict):
                        history.events.append(self._from_standard(record, self.standard_prefix))

        if not history.events:
            logger.error("No streaming history events found in the supplied files.")
            raise NoHistoryFoundError()

        logger.info(f"Normalized {len(history.events)} play events (extended={history.extended}).")
        return history


def normalize_history(files: Dict[str, str]) -> NormalizedHistory:
    return StreamingHistoryParser(files).parse()
