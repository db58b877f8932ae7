"""Main label generation logic: export files in, nutrition label metrics out."""
import logging
import random
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from listening_facts.aggregator import ListeningAggregator
from listening_facts.exceptions import ReadError
from listening_facts.fun_facts import build_fun_fact_candidates, select_fun_fact
from listening_facts.models.label import NutritionLabel
from listening_facts.models.listening_data import ExtrasContext, NormalizedHistory
from listening_facts.range_filter import RANGE_LABELS, filter_by_range
from listening_facts.services.archive import ArchiveExtractor
from listening_facts.services.extras_loader import load_extras
from listening_facts.services.history_parser import normalize_history

logger = logging.getLogger(__name__)


class NutritionLabelGenerator:
    """Holds one normalized export for the session and builds a label per range selection."""

    def __init__(self, history: NormalizedHistory, extras: ExtrasContext,
                 read_failures: Optional[List[ReadError]] = None, top_n: Optional[int] = None):
        self.history = history
        self.extras = extras
        self.read_failures = read_failures or []
        self.aggregator = ListeningAggregator(top_n=top_n)

    @classmethod
    def from_files(cls, files: Dict[str, str], read_failures: Optional[List[ReadError]] = None,
                   top_n: Optional[int] = None) -> 'NutritionLabelGenerator':
        """Raises NoHistoryFoundError when the bag holds no usable streaming history."""
        history = normalize_history(files)
        extras = load_extras(files)
        return cls(history, extras, read_failures=read_failures, top_n=top_n)

    @classmethod
    def from_paths(cls, paths: Iterable[Union[str, Path]], **kwargs) -> 'NutritionLabelGenerator':
        extraction = ArchiveExtractor().extract(paths)
        return cls.from_files(extraction.files, read_failures=extraction.failures, **kwargs)

    @classmethod
    def from_uploads(cls, uploads: Iterable[Tuple[str, bytes]], **kwargs) -> 'NutritionLabelGenerator':
        extraction = ArchiveExtractor().extract_uploads(uploads)
        return cls.from_files(extraction.files, read_failures=extraction.failures, **kwargs)

    def build(self, range_name: str, now: datetime,
              rng: Optional[random.Random] = None, fact_index: Optional[int] = None) -> NutritionLabel:
        events = filter_by_range(self.history.events, range_name, now)
        metrics = self.aggregator.aggregate(events, self.extras, extended=self.history.extended)
        candidates = build_fun_fact_candidates(metrics)
        label = NutritionLabel(
            range=range_name,
            range_label=RANGE_LABELS.get(range_name, ""),
            metrics=metrics,
            fun_facts=candidates,
            fun_fact=select_fun_fact(candidates, rng=rng, index=fact_index),
        )
        logger.info(f"Label built for range '{range_name}' with {len(candidates)} fun fact candidates.")
        return label
