"""Aspect compilation through the external AssemblyScript compiler."""
from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO

from .constants import (
    COMPILE_TARGETS,
    COMPILER_COMMAND,
    DEFAULT_ARTIFACT_EXT,
    DEFAULT_BUILD_DIR,
    DEFAULT_ENTRY_FILE,
    DEFAULT_TARGET,
)
from .errors import CompileError, ValidationError
from .logging_utils import get_logger


@dataclass
class CompileRequest:
    entry_file: str = DEFAULT_ENTRY_FILE
    target: str = DEFAULT_TARGET
    output: Optional[str] = None
    ext: str = DEFAULT_ARTIFACT_EXT

    def __post_init__(self) -> None:
        if self.target not in COMPILE_TARGETS:
            raise ValidationError(
                f"Invalid target: {self.target} (expected one of {', '.join(COMPILE_TARGETS)})"
            )

    @property
    def output_path(self) -> str:
        return self.output or default_output_path(self.entry_file, self.target, self.ext)

    def compiler_args(self) -> List[str]:
        return [self.entry_file, "--target", self.target, "-o", self.output_path]


@dataclass
class CompileResult:
    command: List[str]
    output: str
    exit_code: int
    stdout: List[str] = field(default_factory=list)
    stderr: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def default_output_path(entry_file: str, target: str, ext: str = DEFAULT_ARTIFACT_EXT) -> str:
    """``build/<name>.<ext>`` for release builds, ``build/<name>_debug.<ext>`` otherwise."""
    if not ext.startswith("."):
        ext = f".{ext}"
    name = Path(entry_file).stem
    suffix = "" if target == "release" else "_debug"
    return f"{DEFAULT_BUILD_DIR}/{name}{suffix}{ext}"


def ensure_output_dir(output: str, cwd: Optional[Path] = None) -> Path:
    """Create the output's parent directory. Only the last level is created."""
    build_dir = Path(output).parent
    if cwd is not None and not build_dir.is_absolute():
        build_dir = cwd / build_dir
    try:
        build_dir.mkdir(exist_ok=True)
    except FileNotFoundError as exc:
        raise CompileError(f"Cannot create output directory {build_dir}: parent does not exist") from exc
    return build_dir


async def _pump(
    stream: Optional[asyncio.StreamReader],
    sink: List[str],
    echo: Callable[[str], None],
) -> None:
    if stream is None:
        return
    while True:
        line = await stream.readline()
        if not line:
            break
        text = line.decode("utf-8", errors="replace").rstrip("\r\n")
        sink.append(text)
        echo(text)


def _echo_to(handle: TextIO) -> Callable[[str], None]:
    def _echo(text: str) -> None:
        handle.write(f"{text}\n")
        handle.flush()

    return _echo


async def compile_aspect_async(
    request: CompileRequest,
    *,
    compiler: Sequence[str] = COMPILER_COMMAND,
    cwd: Optional[Path] = None,
    on_stdout: Optional[Callable[[str], None]] = None,
    on_stderr: Optional[Callable[[str], None]] = None,
) -> CompileResult:
    """Run the compiler and resolve once it exits.

    Output lines are echoed as they arrive and collected on the result.
    """
    logger = get_logger()
    output = request.output_path
    ensure_output_dir(output, cwd)

    command = [*compiler, *request.compiler_args()]
    logger.info("Running command: %s", " ".join(command))
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=str(cwd) if cwd is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise CompileError(f"Compiler not found: {command[0]}", exit_code=127) from exc
    except OSError as exc:
        raise CompileError(f"Failed to start compiler: {exc}") from exc

    result = CompileResult(command=command, output=output, exit_code=-1)
    await asyncio.gather(
        _pump(process.stdout, result.stdout, on_stdout or _echo_to(sys.stdout)),
        _pump(process.stderr, result.stderr, on_stderr or _echo_to(sys.stderr)),
    )
    result.exit_code = await process.wait()

    if result.ok:
        logger.info("Aspect compilation completed successfully: %s", output)
    else:
        logger.error("Failed to compile Aspect: process exited with code %s", result.exit_code)
    return result


def compile_aspect(
    entry_file: str = DEFAULT_ENTRY_FILE,
    target: str = DEFAULT_TARGET,
    output: Optional[str] = None,
    ext: str = DEFAULT_ARTIFACT_EXT,
    **kwargs,
) -> CompileResult:
    """Blocking wrapper around :func:`compile_aspect_async`."""
    request = CompileRequest(entry_file=entry_file, target=target, output=output, ext=ext)
    return asyncio.run(compile_aspect_async(request, **kwargs))
