"""
Pydantic models for conversion outcomes.

Results cross process boundaries in the parallel batch driver, so workers
return plain dicts (model_dump()) and the parent rebuilds the models.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ConversionResult(BaseModel):
    """
    Outcome of converting one XML file.

    Example:
        >>> result = ConversionResult(
        ...     xml_path="output/xml/FRANCE/army/army_0001.xml",
        ...     json_path="output/json/FRANCE/army/army_0001.json",
        ...     converter="esf",
        ...     success=True
        ... )
    """

    xml_path: str = Field(..., description="Source XML file")
    json_path: str = Field(..., description="Target JSON file")
    converter: str = Field(..., description="Converter used: 'esf' or 'generic'")
    success: bool = Field(..., description="Whether the JSON file was written")
    faction: Optional[str] = Field(default=None, description="Faction directory name")
    sub_dir: Optional[str] = Field(default=None, description="Per-faction sub-directory")
    error: Optional[str] = Field(default=None, description="Error message on failure")
    error_type: Optional[str] = Field(default=None, description="Exception class name on failure")

    def to_failure_row(self) -> Dict[str, Any]:
        """Flatten into a row for the failures CSV."""
        return {
            'faction': self.faction or '',
            'sub_dir': self.sub_dir or '',
            'xml_path': self.xml_path,
            'error': self.error or '',
            'error_type': self.error_type or '',
        }


class BatchStatistics(BaseModel):
    """Aggregate counters for one batch run."""

    factions: int = 0
    converted: int = 0
    failed: int = 0
    aggregated: int = 0
    failures: List[ConversionResult] = Field(default_factory=list)

    def record(self, result: ConversionResult) -> None:
        """Count one conversion outcome."""
        if result.success:
            self.converted += 1
        else:
            self.failed += 1
            self.failures.append(result)
