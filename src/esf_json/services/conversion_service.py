"""
File-level conversion service.

Reads one XML file, converts it in memory, and writes one JSON file:
- Conversion completes before anything is written
- JSON is written to a temporary sibling and atomically moved into place,
  so a failed run never truncates an existing output file
- Parent directories of the output are created on demand
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
import logging

from esf_json.config import get_app_config
from esf_json.exceptions import MalformedInputError
from esf_json.parsers import convert, convert_generic

logger = logging.getLogger(__name__)


CONVERTERS: Dict[str, Callable[[bytes], Any]] = {
    'esf': convert,
    'generic': convert_generic,
}


def write_json_atomic(data: Any, json_path: Union[str, Path], indent: int = 2) -> Path:
    """
    Write data as pretty-printed JSON, replacing json_path atomically.

    Keys keep their construction order.

    Args:
        data: JSON-serializable value
        json_path: Destination file
        indent: Indentation width

    Returns:
        Path of the written file
    """
    json_path = Path(json_path)
    json_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{json_path.name}.", suffix='.tmp', dir=json_path.parent
    )
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=indent)
            f.write('\n')
        os.replace(tmp_name, json_path)
    except BaseException:
        # Leave any previous output untouched
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    return json_path


class ConversionService:
    """
    Service converting XML files to JSON files.

    Usage:
        service = ConversionService()
        service.convert_file("army_0001.xml", "army_0001.json")
        service.convert_file("region_0001.xml", "region_0001.json", converter="generic")
    """

    def __init__(self, json_indent: Optional[int] = None):
        """
        Initialize conversion service.

        Args:
            json_indent: Indentation of written JSON (default: from AppConfig)
        """
        self.json_indent = (
            json_indent if json_indent is not None else get_app_config().json_indent
        )

    def convert_bytes(self, source_xml: bytes, converter: str = 'esf') -> Any:
        """
        Convert raw XML bytes with the named converter.

        Raises:
            ValueError: If converter is unknown
            MalformedInputError: If the input is not well-formed XML
        """
        if converter not in CONVERTERS:
            raise ValueError(
                f"Unknown converter: '{converter}'. "
                f"Available converters: {sorted(CONVERTERS)}"
            )
        return CONVERTERS[converter](source_xml)

    def convert_file(
        self,
        xml_path: Union[str, Path],
        json_path: Union[str, Path],
        converter: str = 'esf'
    ) -> Path:
        """
        Convert one XML file and write the JSON result.

        Args:
            xml_path: Source XML file
            json_path: Destination JSON file
            converter: 'esf' (structural normalizer) or 'generic' (flattener)

        Returns:
            Path of the written JSON file

        Raises:
            FileNotFoundError: If xml_path does not exist
            MalformedInputError: If xml_path is not well-formed XML
        """
        xml_path = Path(xml_path)
        if not xml_path.is_file():
            raise FileNotFoundError(f"Input file {xml_path} not found.")

        logger.debug(f"Converting {xml_path} with '{converter}' converter")

        try:
            data = self.convert_bytes(xml_path.read_bytes(), converter)
        except MalformedInputError as e:
            raise MalformedInputError(str(e), source=xml_path) from e

        written = write_json_atomic(data, json_path, indent=self.json_indent)
        logger.debug(f"Wrote {written}")
        return written
