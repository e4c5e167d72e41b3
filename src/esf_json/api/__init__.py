"""
Batch-level API for esf-json.
"""

from esf_json.api.pipeline import BatchPipeline

__all__ = [
    'BatchPipeline',
]
