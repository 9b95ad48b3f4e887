"""
Centralized constants for calldata-builder configuration.

Single-source-of-truth defaults shared by the builder, the CLI and the
tests. Environment variable overrides:
- CALLDATA_BUILDER_LOG_DIR: directory for JSONL session logs
- CALLDATA_BUILDER_LOG_LEVEL: log level name for the CLI
- CALLDATA_BUILDER_TARGET: default contract address for prepared transactions
"""

from __future__ import annotations

import os

# Type given to parameters and tuple fields created without an explicit type
DEFAULT_PARAMETER_TYPE = "address"

# Prefixes for auto-generated (positional) names
PARAMETER_NAME_PREFIX = "param"
FIELD_NAME_PREFIX = "field"

# Suffix marking a dynamic array type (`T[]`)
ARRAY_SUFFIX = "[]"

# Integer and fixed-bytes widths accepted by the type catalogue
INTEGER_BIT_WIDTHS = tuple(range(8, 257, 8))
FIXED_BYTES_WIDTHS = tuple(range(1, 33))

# Length of a hex address including the 0x prefix
ADDRESS_LENGTH = 42

# Native value attached to prepared transactions when none is given
DEFAULT_TRANSACTION_VALUE = 0

# Minimal interface descriptor defaults for the synthesized ABI entry
DEFAULT_STATE_MUTABILITY = "nonpayable"

# =============================================================================
# Environment-driven defaults
# =============================================================================

DEFAULT_LOG_DIR = os.environ.get("CALLDATA_BUILDER_LOG_DIR", "logs")

DEFAULT_LOG_LEVEL = os.environ.get("CALLDATA_BUILDER_LOG_LEVEL", "WARNING")

DEFAULT_TARGET = os.environ.get("CALLDATA_BUILDER_TARGET") or None
