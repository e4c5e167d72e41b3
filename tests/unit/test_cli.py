"""
Unit tests for the esf-json command line interface.
"""

import json
import pytest
from typer.testing import CliRunner

from esf_json.cli import app


@pytest.fixture
def runner():
    return CliRunner()


class TestConvertCommand:
    """Tests for `esf-json convert`."""

    def test_convert_writes_json(self, runner, tmp_path, army_xml):
        """convert writes the output file and prints its path."""
        xml_path = tmp_path / 'army.xml'
        xml_path.write_bytes(army_xml)
        json_path = tmp_path / 'army.json'

        result = runner.invoke(app, ['convert', '--verbose', str(xml_path), str(json_path)])

        assert result.exit_code == 0, result.output
        assert str(json_path) in result.output
        data = json.loads(json_path.read_text(encoding='utf-8'))
        assert data['army']['meta_data']['escorting_ship_id'] == 0

    def test_convert_generic(self, runner, tmp_path):
        """--generic selects the generic flattener."""
        xml_path = tmp_path / 'region.xml'
        xml_path.write_bytes(b'<region><name>Paris</name></region>')
        json_path = tmp_path / 'region.json'

        result = runner.invoke(app, ['convert', '--generic', str(xml_path), str(json_path)])

        assert result.exit_code == 0, result.output
        assert json.loads(json_path.read_text(encoding='utf-8')) == {'region': {'name': 'Paris'}}

    def test_missing_input_exits_with_error(self, runner, tmp_path):
        """A missing input file exits with code 1."""
        result = runner.invoke(
            app, ['convert', str(tmp_path / 'missing.xml'), str(tmp_path / 'out.json')]
        )

        assert result.exit_code == 1
        assert 'not found' in result.output
        assert not (tmp_path / 'out.json').exists()

    def test_malformed_input_exits_with_error(self, runner, tmp_path):
        """Malformed XML exits with code 1 and writes nothing."""
        xml_path = tmp_path / 'broken.xml'
        xml_path.write_bytes(b'<rec>')

        result = runner.invoke(app, ['convert', str(xml_path), str(tmp_path / 'out.json')])

        assert result.exit_code == 1
        assert 'Malformed XML' in result.output
        assert not (tmp_path / 'out.json').exists()


class TestBatchCommand:
    """Tests for `esf-json batch`."""

    def test_batch_converts_tree(self, runner, tmp_path, army_xml, monkeypatch):
        """batch converts every faction's army folder and aggregates."""
        monkeypatch.chdir(tmp_path)
        army_dir = tmp_path / 'xml' / 'FRANCE' / 'army'
        army_dir.mkdir(parents=True)
        (army_dir / 'army_0001.xml').write_bytes(army_xml)
        out = tmp_path / 'json'

        result = runner.invoke(app, ['batch', str(tmp_path / 'xml'), str(out)])

        assert result.exit_code == 0, result.output
        assert '1 converted' in result.output
        assert (out / 'FRANCE' / 'army' / 'army_0001.json').exists()
        assert (out / 'FRANCE' / 'army' / 'army_final.json').exists()

    def test_batch_reports_failures(self, runner, tmp_path, monkeypatch):
        """batch exits with code 1 when any file failed."""
        monkeypatch.chdir(tmp_path)
        army_dir = tmp_path / 'xml' / 'FRANCE' / 'army'
        army_dir.mkdir(parents=True)
        (army_dir / 'broken.xml').write_bytes(b'<rec>')

        result = runner.invoke(app, ['batch', str(tmp_path / 'xml'), str(tmp_path / 'json')])

        assert result.exit_code == 1
        assert '1 failed' in result.output

    def test_batch_missing_input_dir(self, runner, tmp_path):
        """A missing input directory exits with code 1."""
        result = runner.invoke(app, ['batch', str(tmp_path / 'missing'), str(tmp_path / 'json')])

        assert result.exit_code == 1
        assert 'not found' in result.output


class TestAggregateCommand:
    """Tests for `esf-json aggregate`."""

    def test_aggregate(self, runner, tmp_path):
        """aggregate merges JSON files into one array."""
        army_dir = tmp_path / 'army'
        army_dir.mkdir()
        (army_dir / 'a.json').write_text('{"army": 1}', encoding='utf-8')
        (army_dir / 'b.json').write_text('{"army": 2}', encoding='utf-8')
        final = army_dir / 'army_final.json'

        result = runner.invoke(app, ['aggregate', str(army_dir), str(final)])

        assert result.exit_code == 0, result.output
        assert 'Aggregated 2 armies' in result.output
        assert json.loads(final.read_text(encoding='utf-8')) == [{'army': 1}, {'army': 2}]

    def test_aggregate_missing_dir(self, runner, tmp_path):
        """A missing army directory exits with code 1."""
        result = runner.invoke(app, ['aggregate', str(tmp_path / 'missing'), str(tmp_path / 'f.json')])

        assert result.exit_code == 1
