"""
Unit tests for AggregationService.
"""

import json
import pytest

from esf_json.services.aggregation_service import AggregationService


def _write(path, data):
    path.write_text(json.dumps(data), encoding='utf-8')


@pytest.fixture
def army_dir(tmp_path):
    """Directory with two armies, a stale aggregate and a non-JSON file."""
    directory = tmp_path / 'army'
    directory.mkdir()
    _write(directory / 'army_0002.json', {'army': {'id': 2}})
    _write(directory / 'army_0001.json', {'army': {'id': 1}})
    _write(directory / 'army_final.json', [{'stale': True}])
    (directory / 'notes.txt').write_text('ignore me', encoding='utf-8')
    return directory


class TestAggregationService:
    """Test suite for AggregationService."""

    def test_aggregates_in_file_name_order(self, army_dir):
        """Armies are concatenated sorted by file name."""
        final_path = army_dir / 'army_final.json'

        count = AggregationService(json_indent=2).aggregate_armies(army_dir, final_path)

        assert count == 2
        assert json.loads(final_path.read_text(encoding='utf-8')) == [
            {'army': {'id': 1}},
            {'army': {'id': 2}},
        ]

    def test_rerun_does_not_include_previous_aggregate(self, army_dir):
        """Aggregating twice yields the same result."""
        service = AggregationService(json_indent=2)
        final_path = army_dir / 'army_final.json'

        service.aggregate_armies(army_dir, final_path)
        count = service.aggregate_armies(army_dir, final_path)

        assert count == 2
        assert len(json.loads(final_path.read_text(encoding='utf-8'))) == 2

    def test_final_path_outside_directory(self, army_dir, tmp_path):
        """The aggregate may be written elsewhere; stale files in the dir count."""
        final_path = tmp_path / 'all_armies.json'

        count = AggregationService(json_indent=2).aggregate_armies(army_dir, final_path)

        assert count == 3
        assert final_path.exists()

    def test_undecodable_files_are_skipped(self, army_dir):
        """Broken JSON files are logged and left out."""
        (army_dir / 'army_0003.json').write_text('{not json', encoding='utf-8')
        final_path = army_dir / 'army_final.json'

        count = AggregationService(json_indent=2).aggregate_armies(army_dir, final_path)

        assert count == 2

    def test_empty_directory_writes_empty_array(self, tmp_path):
        """An army directory without JSON files aggregates to []."""
        directory = tmp_path / 'army'
        directory.mkdir()
        final_path = directory / 'army_final.json'

        assert AggregationService(json_indent=2).aggregate_armies(directory, final_path) == 0
        assert json.loads(final_path.read_text(encoding='utf-8')) == []

    def test_missing_directory_raises(self, tmp_path):
        """A missing army directory raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            AggregationService(json_indent=2).aggregate_armies(
                tmp_path / 'missing', tmp_path / 'final.json'
            )
