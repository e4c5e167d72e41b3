"""
Batch Pipeline for ESF XML dumps

Walks an esf2xml output tree and converts every XML file to JSON:

    {input_dir}/{faction}/{sub_dir}/*.xml  ->  {output_dir}/{faction}/{sub_dir}/*.json

Key Features:
- Converter chosen per sub-directory (ESF normalizer for army/region,
  generic flattener otherwise)
- Optional multiprocess conversion (ProcessPoolExecutor)
- Per-file failure isolation with CSV export
- Army aggregation into army_final.json once a faction's army folder is done

Design:
- Workers receive plain dict tasks and return plain dict results
- No shared state between workers (all aggregation via return values)
- Each (faction, sub_dir) group completes before its aggregation starts
"""

from concurrent.futures import Executor, ProcessPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging
import pandas as pd

from esf_json.config import AppConfig, get_app_config
from esf_json.models.results import BatchStatistics, ConversionResult
from esf_json.services.aggregation_service import AggregationService
from esf_json.services.conversion_service import ConversionService

logger = logging.getLogger(__name__)


ARMY_SUB_DIR = 'army'
ESF_SUB_DIRS = frozenset({'army', 'region'})


def converter_for(sub_dir: str) -> str:
    """Name of the converter used for files of a per-faction sub-directory."""
    return 'esf' if sub_dir in ESF_SUB_DIRS else 'generic'


def _convert_file_worker(task: Dict[str, Any]) -> Dict[str, Any]:
    """
    Worker function converting a single XML file.

    Runs in a child process when the pipeline is parallel, or inline when
    it is sequential.

    Args:
        task: Dictionary with:
            - xml_path: Source XML file
            - json_path: Destination JSON file
            - converter: 'esf' or 'generic'
            - faction: Faction directory name
            - sub_dir: Per-faction sub-directory
            - json_indent: Indentation of written JSON

    Returns:
        ConversionResult as a plain dict
    """
    result = {
        'xml_path': task['xml_path'],
        'json_path': task['json_path'],
        'converter': task['converter'],
        'faction': task.get('faction'),
        'sub_dir': task.get('sub_dir'),
    }

    try:
        service = ConversionService(json_indent=task.get('json_indent', 2))
        service.convert_file(task['xml_path'], task['json_path'], task['converter'])
        result['success'] = True
    except Exception as e:
        logger.error(
            f"Failed to convert {task['xml_path']}: {type(e).__name__}: {e}"
        )
        result.update({
            'success': False,
            'error': str(e),
            'error_type': type(e).__name__,
        })

    return result


class BatchPipeline:
    """
    Directory-walking batch driver.

    Example:
        pipeline = BatchPipeline()
        stats = pipeline.run("output/xml", "output/json", max_workers=4)
        print(stats.converted, stats.failed)
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        aggregation_service: Optional[AggregationService] = None
    ):
        self._config = config or get_app_config()
        self._aggregation = aggregation_service or AggregationService(
            json_indent=self._config.json_indent
        )

    def run(
        self,
        input_dir: Optional[Union[str, Path]] = None,
        output_dir: Optional[Union[str, Path]] = None,
        max_workers: Optional[int] = None
    ) -> BatchStatistics:
        """
        Convert every faction's configured sub-directories.

        Args:
            input_dir: Root of per-faction XML folders (default: config)
            output_dir: Root for JSON output (default: config)
            max_workers: Worker processes; 1 converts inline (default: config)

        Returns:
            BatchStatistics with conversion, failure and aggregation counts

        Raises:
            FileNotFoundError: If input_dir does not exist
        """
        input_dir = Path(input_dir or self._config.input_dir)
        output_dir = Path(output_dir or self._config.output_dir)
        max_workers = max_workers or self._config.max_workers

        if not input_dir.is_dir():
            raise FileNotFoundError(f"Input directory '{input_dir}' not found.")

        output_dir.mkdir(parents=True, exist_ok=True)
        stats = BatchStatistics()

        factions = sorted(p for p in input_dir.iterdir() if p.is_dir())
        logger.info(
            f"Starting batch conversion: {len(factions)} factions, "
            f"sub-directories {self._config.sub_dirs}, {max_workers} workers"
        )

        executor = ProcessPoolExecutor(max_workers=max_workers) if max_workers > 1 else None
        try:
            for faction_path in factions:
                stats.factions += 1
                logger.info(f"Processing faction: {faction_path.name}")

                for sub_dir in self._config.sub_dirs:
                    self._process_sub_dir(faction_path, sub_dir, output_dir, stats, executor)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        if stats.failures:
            self._save_failures_csv(stats.failures, output_dir)

        logger.info(
            f"Batch conversion complete: {stats.converted} converted, "
            f"{stats.failed} failed, {stats.aggregated} armies aggregated"
        )
        return stats

    def _process_sub_dir(
        self,
        faction_path: Path,
        sub_dir: str,
        output_dir: Path,
        stats: BatchStatistics,
        executor: Optional[Executor]
    ) -> None:
        sub_dir_path = faction_path / sub_dir
        if not sub_dir_path.is_dir():
            return

        target_dir = output_dir / faction_path.name / sub_dir
        target_dir.mkdir(parents=True, exist_ok=True)

        tasks = self._build_tasks(sub_dir_path, target_dir, faction_path.name, sub_dir)
        logger.debug(f"  {faction_path.name}/{sub_dir}: {len(tasks)} XML files")

        for result in self._run_tasks(tasks, executor):
            stats.record(ConversionResult(**result))

        if sub_dir == ARMY_SUB_DIR and self._config.aggregate_armies:
            logger.debug(f"  Aggregating armies for {faction_path.name}...")
            final_path = target_dir / self._config.final_army_filename
            stats.aggregated += self._aggregation.aggregate_armies(target_dir, final_path)

    def _build_tasks(
        self,
        sub_dir_path: Path,
        target_dir: Path,
        faction: str,
        sub_dir: str
    ) -> List[Dict[str, Any]]:
        return [
            {
                'xml_path': str(xml_path),
                'json_path': str(target_dir / f"{xml_path.stem}.json"),
                'converter': converter_for(sub_dir),
                'faction': faction,
                'sub_dir': sub_dir,
                'json_indent': self._config.json_indent,
            }
            for xml_path in sorted(sub_dir_path.glob('*.xml'))
        ]

    def _run_tasks(
        self,
        tasks: List[Dict[str, Any]],
        executor: Optional[Executor]
    ) -> List[Dict[str, Any]]:
        """Run tasks inline or on the executor; results follow task order."""
        if executor is None:
            return [_convert_file_worker(task) for task in tasks]

        futures = [executor.submit(_convert_file_worker, task) for task in tasks]
        return [future.result() for future in futures]

    def _save_failures_csv(self, failures: List[ConversionResult], output_dir: Path) -> Optional[Path]:
        """
        Save failed conversions to {output_dir}/failures/failures.csv.

        Args:
            failures: Failed conversion results
            output_dir: Root output directory
        """
        if not failures:
            return None

        try:
            failures_dir = output_dir / "failures"
            failures_dir.mkdir(parents=True, exist_ok=True)

            df = pd.DataFrame([f.to_failure_row() for f in failures])

            csv_path = failures_dir / "failures.csv"
            df.to_csv(csv_path, index=False, encoding='utf-8')

            logger.info(f"Saved {len(failures)} failure(s) to {csv_path}")
            return csv_path
        except OSError as e:
            logger.error(f"Failed to save failures CSV: {e}", exc_info=True)
            return None
