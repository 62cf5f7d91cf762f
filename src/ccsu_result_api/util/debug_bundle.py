from __future__ import annotations

import time
import zipfile
from pathlib import Path


# File-name prefix of the screenshot / HTML / text saved for a failed lookup.
FAILURE_ARTIFACT_PREFIX = "failed_"


def failure_artifacts(debug_dir: str) -> list[Path]:
    """Saved failed-lookup artifacts in `debug_dir`, oldest first."""
    dbg = Path(debug_dir)
    if not dbg.is_dir():
        return []
    files = [p for p in dbg.glob(f"{FAILURE_ARTIFACT_PREFIX}*") if p.is_file()]
    return sorted(files, key=lambda p: (p.stat().st_mtime, p.name))


def create_debug_bundle(*, debug_dir: str, log_file: str = "", out_dir: str = "data") -> Path:
    """
    Zip the failed-lookup artifacts written by the portal client, plus the log file if one is configured.

    Anything else in the debug directory is left out. The artifacts are pages from the result
    portal and can contain a student's personal details; share the bundle accordingly.
    """
    out_root = Path(out_dir)
    out_root.mkdir(parents=True, exist_ok=True)
    out_path = out_root / f"debug_bundle_{time.strftime('%Y%m%d_%H%M%S')}.zip"

    with zipfile.ZipFile(out_path, "w", compression=zipfile.ZIP_DEFLATED) as z:
        if log_file and Path(log_file).is_file():
            z.write(log_file, arcname=Path(log_file).name)
        for artifact in failure_artifacts(debug_dir):
            z.write(artifact, arcname=f"failed/{artifact.name}")

    return out_path
