"""tristate: three-way results for data-access code.

Public API:
    - Outcome: none / failure / success, with NoneOutcome, FailureOutcome and
      SuccessOutcome variants
    - AsyncOutcome: deferred counterpart with then/catch and a concurrent join
    - union_resolve(): normalize any raw value into an Outcome
    - success(), failure(), none(), create(), from_result(): constructors
    - matcher(), bind(): curried match and map
    - Success, Failure: the two-state Result used at the interop boundary
"""

from __future__ import annotations

import logging

from tristate.async_outcome import AsyncOutcome
from tristate.config import FrozenConfig, config_scope, current_config, resolve_config
from tristate.errors import ConfigurationError, EmptySequenceError, TristateError
from tristate.outcome import (
    FailureOutcome,
    NoneOutcome,
    Outcome,
    SuccessOutcome,
    bind,
    create,
    failure,
    from_result,
    is_outcome,
    matcher,
    none,
    success,
    union_resolve,
)
from tristate.result import Failure, Result, Success, is_result

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("tristate")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("tristate").addHandler(logging.NullHandler())

__all__ = [
    "AsyncOutcome",
    "ConfigurationError",
    "EmptySequenceError",
    "Failure",
    "FailureOutcome",
    "FrozenConfig",
    "NoneOutcome",
    "Outcome",
    "Result",
    "Success",
    "SuccessOutcome",
    "TristateError",
    "bind",
    "config_scope",
    "create",
    "current_config",
    "failure",
    "from_result",
    "is_outcome",
    "is_result",
    "matcher",
    "none",
    "resolve_config",
    "success",
    "union_resolve",
]
