"""Reads a user's export (zip archives and loose json files) into a filename -> text bag."""
import io
import logging
import zipfile
import zlib
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union

from listening_facts.config import settings
from listening_facts.exceptions import ReadError
from listening_facts.models.listening_data import ExtractionResult

logger = logging.getLogger(__name__)

Source = Union[Path, bytes]


class ArchiveExtractor:
    """Collects every `.json` document from the supplied files, unpacking zip archives."""

    def __init__(
            self,
            max_workers: Optional[int] = None,
            max_total_uncompressed_size: Optional[int] = None,
            max_individual_file_size: Optional[int] = None,
            max_num_files: Optional[int] = None
    ):
        self.max_workers = max_workers or settings.EXTRACT_MAX_WORKERS
        self.max_total_uncompressed_size = max_total_uncompressed_size or settings.MAX_TOTAL_UNCOMPRESSED_SIZE
        self.max_individual_file_size = max_individual_file_size or settings.MAX_INDIVIDUAL_FILE_SIZE
        self.max_num_files = max_num_files or settings.MAX_NUM_FILES

    def extract(self, paths: Iterable[Union[str, Path]]) -> ExtractionResult:
        sources = []
        for path in paths:
            path = Path(path)
            sources.append((path.name, path))
        return self._extract(sources)

    def extract_uploads(self, uploads: Iterable[Tuple[str, bytes]]) -> ExtractionResult:
        """Same as `extract` for files already held in memory as (name, payload) pairs."""
        return self._extract((Path(name).name, payload) for name, payload in uploads)

    def _open_archive(self, name: str, source: Source, result: ExtractionResult) -> Optional[zipfile.ZipFile]:
        try:
            archive = zipfile.ZipFile(io.BytesIO(source) if isinstance(source, bytes) else source, 'r')
        except zipfile.BadZipFile:
            self._record_failure(result, ReadError(name, "invalid or corrupted ZIP file"))
            return None
        except OSError as e:
            self._record_failure(result, ReadError(name, str(e)))
            return None

        members = archive.infolist()
        total_uncompressed_size = sum(member.file_size for member in members)
        if total_uncompressed_size > self.max_total_uncompressed_size:
            archive.close()
            self._record_failure(result, ReadError(name, "total uncompressed size of ZIP archive exceeds limit"))
            return None
        if len(members) > self.max_num_files:
            archive.close()
            self._record_failure(result, ReadError(name, "too many files in ZIP archive"))
            return None
        return archive

    def _json_members(self, archive: zipfile.ZipFile, archive_name: str, result: ExtractionResult) -> List[Tuple[str, zipfile.ZipInfo]]:
        members = []
        for member in archive.infolist():
            if member.is_dir():
                continue
            if member.filename.startswith('/') or '..' in member.filename.split('/'):
                logger.warning(f"Skipping suspicious path in '{archive_name}': {member.filename}")
                continue
            base_name = member.filename.rsplit('/', 1)[-1]
            if not base_name.lower().endswith('.json'):
                continue
            if member.file_size > self.max_individual_file_size:
                self._record_failure(result, ReadError(base_name, "file exceeds individual size limit"))
                continue
            members.append((base_name, member))
        logger.info(f"Found {len(members)} json documents in '{archive_name}'")
        return members

    @staticmethod
    def _read_text(name: str, reader: Callable[[], bytes]) -> str:
        try:
            payload = reader()
        except (OSError, zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError) as e:
            raise ReadError(name, str(e)) from e
        try:
            return payload.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise ReadError(name, "not valid UTF-8 text") from e

    @staticmethod
    def _record_failure(result: ExtractionResult, error: ReadError) -> None:
        logger.warning(str(error))
        result.failures.append(error)

    def _extract(self, sources: Iterable[Tuple[str, Source]]) -> ExtractionResult:
        result = ExtractionResult()
        tasks: List[Tuple[str, Callable[[], bytes]]] = []
        archives: List[zipfile.ZipFile] = []

        try:
            for name, source in sources:
                suffix = Path(name).suffix.lower()
                if suffix == '.zip':
                    archive = self._open_archive(name, source, result)
                    if archive is None:
                        continue
                    archives.append(archive)
                    for base_name, member in self._json_members(archive, name, result):
                        tasks.append((base_name, partial(archive.read, member)))
                elif suffix == '.json':
                    reader = (lambda payload=source: payload) if isinstance(source, bytes) else source.read_bytes
                    tasks.append((name, reader))
                else:
                    logger.debug(f"Ignoring unsupported input file: {name}")

            # Entries are decoded concurrently; the bag is filled in submission order once each read completes
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = [(key, pool.submit(self._read_text, key, reader)) for key, reader in tasks]
                for key, future in futures:
                    try:
                        text = future.result()
                    except ReadError as e:
                        self._record_failure(result, e)
                        continue
                    if key in result.files:
                        logger.debug(f"Duplicate file name '{key}', keeping the later copy")
                    result.files[key] = text
        finally:
            for archive in archives:
                archive.close()

        logger.info(f"Extraction complete: {len(result.files)} documents, {len(result.failures)} failures")
        return result


def extract_file_bag(paths: Iterable[Union[str, Path]], max_workers: Optional[int] = None) -> ExtractionResult:
    return ArchiveExtractor(max_workers=max_workers).extract(paths)
