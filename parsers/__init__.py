"""
Import parsers module.

Pure pipeline stages: format sniffing, header mapping, row materialization,
JSON/TXT reading, free-text segmentation and default merging.
"""

from parsers.format_sniffer import sniff, delimiter_for
from parsers.field_mapper import analyze, resolve_collisions
from parsers.row_materializer import materialize
from parsers.tabular_reader import read_table, TabularData
from parsers.json_reader import read_json_objects, record_from_json
from parsers.text_segmenter import (
    segment,
    segment_with_strategy,
    SegmentationStrategy,
    SegmentationResult,
    DEFAULT_STRATEGIES,
)
from parsers.txt_splitter import split_text
from parsers.default_merger import merge

__all__ = [
    "sniff",
    "delimiter_for",
    "analyze",
    "resolve_collisions",
    "materialize",
    "read_table",
    "TabularData",
    "read_json_objects",
    "record_from_json",
    "segment",
    "segment_with_strategy",
    "SegmentationStrategy",
    "SegmentationResult",
    "DEFAULT_STRATEGIES",
    "split_text",
    "merge",
]
