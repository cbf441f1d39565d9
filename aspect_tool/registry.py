from __future__ import annotations

import datetime
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import DEFAULT_BUILD_DIR, DEPLOYMENTS_FILE_NAME
from .errors import RegistryError
from .logging_utils import get_logger


def deployments_path(base_dir: Optional[Path] = None) -> Path:
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    return base / DEFAULT_BUILD_DIR / DEPLOYMENTS_FILE_NAME


def load_deployments(path: Path) -> List[Dict[str, Any]]:
    """Return recorded deployments; a missing file yields none.

    Raises ``RegistryError`` when the file exists but is not a JSON list.
    """
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise RegistryError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, list):
        raise RegistryError(f"Cannot read {path}: expected a JSON list")
    return data


def _set_aside(path: Path) -> Path:
    stamp = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%dT%H%M%S")
    backup = path.with_name(f"{path.name}.{stamp}.bak")
    os.replace(path, backup)
    return backup


def _write_atomic(path: Path, records: List[Dict[str, Any]]) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
        os.replace(tmp_name, path)
    except Exception:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def record_deployment(
    state: Dict[str, Any],
    *,
    network: str,
    binary: str,
    base_dir: Optional[Path] = None,
) -> Path:
    """Append a deployed Aspect to ``build/aspects.json`` and return the file path.

    An unreadable record file is moved aside to ``aspects.json.<stamp>.bak``
    before a fresh one is started.
    """
    logger = get_logger()
    path = deployments_path(base_dir)
    entry = dict(state)
    entry.update(
        {
            "network": network,
            "binary": binary,
            "deployedAt": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
    )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            records = load_deployments(path)
        except RegistryError as exc:
            backup = _set_aside(path)
            logger.warning("%s; moved it to %s", exc, backup)
            records = []
        records.append(entry)
        _write_atomic(path, records)
    except OSError as exc:
        raise RegistryError(f"Cannot record deployment in {path}: {exc}") from exc
    return path
