from __future__ import annotations

from .aspect import DeployRequest, bind_aspect, deploy_aspect, unbind_aspect
from .compiler import CompileRequest, compile_aspect, compile_aspect_async
from .config import resolve_config
from .errors import (
    AspectToolError,
    ChainError,
    CompileError,
    ConfigError,
    RegistryError,
    ValidationError,
)

__version__ = "0.1.0"
