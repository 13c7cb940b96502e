"""Composition engine, operation descriptors and results."""

from __future__ import annotations

from .composer import CompositionEngine
from .operations import (
    OPERATION_TYPES,
    ComposeOperation,
    CompressOperation,
    ExtractOperation,
    MergeOperation,
    Operation,
    PageReference,
    ProtectOperation,
    RotateOperation,
    SplitOperation,
    SplitRange,
    WatermarkOperation,
)
from .registry import OperationRegistry, register_operation, registry
from .results import NamedBuffer, OperationResult
from .stamp import WatermarkStamp

__all__ = [
    "CompositionEngine",
    "ComposeOperation",
    "CompressOperation",
    "ExtractOperation",
    "MergeOperation",
    "NamedBuffer",
    "OPERATION_TYPES",
    "Operation",
    "OperationRegistry",
    "OperationResult",
    "PageReference",
    "ProtectOperation",
    "RotateOperation",
    "SplitOperation",
    "SplitRange",
    "WatermarkOperation",
    "WatermarkStamp",
    "register_operation",
    "registry",
]
