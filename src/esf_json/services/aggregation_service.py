"""
Army aggregation service.

Merges the single-army JSON documents of one army directory into one JSON
array. Must only run once every conversion in that directory has been
written.
"""

import json
from pathlib import Path
from typing import Any, List, Optional, Union
import logging

from esf_json.config import get_app_config
from esf_json.services.conversion_service import write_json_atomic

logger = logging.getLogger(__name__)


class AggregationService:
    """
    Service concatenating per-army JSON files.

    Usage:
        service = AggregationService()
        count = service.aggregate_armies("output/json/FRANCE/army",
                                         "output/json/FRANCE/army/army_final.json")
    """

    def __init__(self, json_indent: Optional[int] = None):
        self.json_indent = (
            json_indent if json_indent is not None else get_app_config().json_indent
        )

    def collect(self, army_dir: Union[str, Path], exclude: Optional[Path] = None) -> List[Any]:
        """
        Load every *.json document in army_dir, sorted by file name.

        Files that cannot be decoded are logged and skipped.

        Args:
            army_dir: Directory of single-army JSON files
            exclude: File to leave out (typically the aggregate itself)

        Returns:
            List of loaded documents
        """
        army_dir = Path(army_dir)
        exclude_resolved = exclude.resolve() if exclude is not None else None

        documents = []
        for json_path in sorted(army_dir.glob('*.json')):
            if exclude_resolved is not None and json_path.resolve() == exclude_resolved:
                continue
            try:
                with open(json_path, 'r', encoding='utf-8') as f:
                    documents.append(json.load(f))
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Skipping {json_path} during aggregation: {e}")

        return documents

    def aggregate_armies(self, army_dir: Union[str, Path], final_path: Union[str, Path]) -> int:
        """
        Write all army documents of army_dir into final_path as one array.

        Args:
            army_dir: Directory of single-army JSON files
            final_path: Destination of the aggregated array

        Returns:
            Number of aggregated documents

        Raises:
            FileNotFoundError: If army_dir does not exist
        """
        army_dir = Path(army_dir)
        final_path = Path(final_path)
        if not army_dir.is_dir():
            raise FileNotFoundError(f"Army directory {army_dir} not found.")

        documents = self.collect(army_dir, exclude=final_path)
        write_json_atomic(documents, final_path, indent=self.json_indent)

        logger.info(f"Aggregated {len(documents)} armies into {final_path}")
        return len(documents)
