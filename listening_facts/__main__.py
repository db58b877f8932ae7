"""Local runner: builds a label from the files in INPUT_DIR and prints it as JSON."""
import json
import logging
import random
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path

from listening_facts.config import settings
from listening_facts.exceptions import NoHistoryFoundError
from listening_facts.label import NutritionLabelGenerator

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stderr)
    ]
)
logger = logging.getLogger(__name__)


def run() -> int:
    input_path = Path(settings.INPUT_DIR)
    if not input_path.is_dir() or not any(input_path.iterdir()):
        logger.error(f"No input files found in {settings.INPUT_DIR} or directory does not exist.")
        return 1

    logger.info("Listening Facts - Run Starting")
    logger.info(json.dumps(settings.model_dump(mode='json'), indent=2))

    try:
        generator = NutritionLabelGenerator.from_paths(sorted(input_path.iterdir()), top_n=settings.TOP_N)
        for failure in generator.read_failures:
            logger.warning(f"Skipped unreadable file: {failure}")

        now = settings.REFERENCE_NOW or datetime.now(timezone.utc)
        rng = random.Random(settings.FUN_FACT_SEED) if settings.FUN_FACT_SEED is not None else None
        label = generator.build(settings.DEFAULT_RANGE, now=now, rng=rng)
    except NoHistoryFoundError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.critical(f"CRITICAL: Unhandled error during label generation: {str(e)}")
        logger.critical(traceback.format_exc())
        raise

    print(json.dumps(label.model_dump(), indent=2))
    logger.info("Listening Facts - Run Finished.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
