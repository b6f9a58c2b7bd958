"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/artifacts.py

Persist and reload a trained recipe.
--------------------------------------------------------------------------------
"""

from __future__ import annotations

import hashlib
import json
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from classdepth.core.context import RunContext
from classdepth.core.errors import ArtifactError, ClassDepthError, NotTrainedError
from classdepth.core.recipe import Recipe
from classdepth.core.registry import STEP_ID_PATTERN, Registry, Step, default_registry

SCHEMA_VERSION = 1
_META_KEYS = ("step_id", "key", "config", "config_digest", "parts")


def digest_cfg(cfg: Any) -> str:
    # stable hash of pydantic model or dict
    payload = cfg.model_dump(mode="json", by_alias=True) if hasattr(cfg, "model_dump") else cfg
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return "sha256:" + hashlib.sha256(raw).hexdigest()


class StateStore:
    """
    Trained recipe state rooted at `root/`.

    Layout:
      root/
        manifest.json
        step01_<id>.<key>/
          meta.json
          part_000.parquet   (one frame of Step.export_state() per file)

    Frame names (class labels) live in meta.json so file names stay filesystem-safe.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.manifest_path = self.root / "manifest.json"

    # -------------- manifest --------------
    def _read_manifest(self) -> Dict[str, Any]:
        if not self.manifest_path.exists():
            raise ArtifactError(f"no saved state under {self.root} (missing manifest.json)")
        try:
            payload = json.loads(self.manifest_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ArtifactError(f"corrupt manifest {self.manifest_path}: {e}") from e
        if not isinstance(payload, dict) or not isinstance(payload.get("steps"), list):
            raise ArtifactError(f"corrupt manifest {self.manifest_path}: expected a mapping with a 'steps' list")
        if payload.get("schema_version") != SCHEMA_VERSION:
            raise ArtifactError(f"unsupported state schema_version {payload.get('schema_version')!r}")
        return payload

    def _write_json(self, path: Path, payload: Dict[str, Any]) -> None:
        path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

    def _clear_previous(self) -> None:
        if not self.manifest_path.exists():
            return
        try:
            old = json.loads(self.manifest_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return
        for entry in old.get("steps", []):
            d = self.root / str(entry.get("dir", ""))
            if d.is_dir() and d.parent == self.root:
                shutil.rmtree(d)

    # -------------- public API --------------
    def save(self, recipe: Recipe) -> Path:
        if not recipe.trained:
            raise NotTrainedError("only a prepped recipe can be saved")
        bad = [s.id for s in recipe.steps if re.fullmatch(STEP_ID_PATTERN, s.id) is None]
        if bad:
            raise ArtifactError(f"step id(s) {bad} cannot name a state directory (allowed: letters, digits, '_', '.', '-')")
        self.root.mkdir(parents=True, exist_ok=True)
        self._clear_previous()

        entries = []
        for ordinal, step in enumerate(recipe.steps, 1):
            step_dir = self.root / f"step{ordinal:02d}_{step.id}.{step.key}"
            step_dir.mkdir(parents=True, exist_ok=True)
            parts = []
            for i, (name, frame) in enumerate(step.export_state().items()):
                filename = f"part_{i:03d}.parquet"
                frame.to_parquet(step_dir / filename, index=False)  # pyarrow
                parts.append({"name": name, "filename": filename})
            meta = {
                "step_id": step.id,
                "key": step.key,
                "columns": list(getattr(step, "columns", None) or []),
                "config": step.cfg.model_dump(mode="json", by_alias=True),
                "config_digest": digest_cfg(step.cfg),
                "parts": parts,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            self._write_json(step_dir / "meta.json", meta)
            entries.append({"step_id": step.id, "key": step.key, "dir": step_dir.name})

        self._write_json(
            self.manifest_path,
            {"schema_version": SCHEMA_VERSION, "roles": dict(recipe.roles), "steps": entries},
        )
        recipe.ctx.logger.info("state • saved %d step(s) to [path]%s[/path]", len(entries), self.root)
        return self.manifest_path

    def _load_step(self, registry: Registry, entry: Dict[str, Any]) -> Step:
        if not isinstance(entry, dict) or not isinstance(entry.get("dir"), str):
            raise ArtifactError(f"corrupt manifest {self.manifest_path}: step entry without 'dir': {entry!r}")
        step_dir = self.root / entry["dir"]
        if step_dir.parent != self.root:
            raise ArtifactError(f"corrupt manifest {self.manifest_path}: step dir {entry['dir']!r} is outside the state root")
        meta_path = step_dir / "meta.json"
        if not meta_path.exists():
            raise ArtifactError(f"missing {meta_path}")
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ArtifactError(f"corrupt {meta_path}: {e}") from e
        missing = [k for k in _META_KEYS if not isinstance(meta, dict) or k not in meta]
        if missing:
            raise ArtifactError(f"corrupt {meta_path}: missing key(s) {missing}")
        cls = registry.resolve(meta["key"])
        try:
            cfg = cls.ConfigModel.model_validate(meta["config"])
        except ClassDepthError:
            raise
        except Exception as e:
            raise ArtifactError(f"step {meta['step_id']}: saved config no longer validates: {e}") from e
        if digest_cfg(cfg) != meta["config_digest"]:
            raise ArtifactError(f"step {meta['step_id']}: config digest mismatch (state edited or stale)")
        state: Dict[str, pd.DataFrame] = {}
        for part in meta["parts"]:
            if not isinstance(part, dict) or "name" not in part or "filename" not in part:
                raise ArtifactError(f"corrupt {meta_path}: bad part entry {part!r}")
            path = step_dir / str(part["filename"])
            if not path.exists():
                raise ArtifactError(f"missing state file {path}")
            state[str(part["name"])] = pd.read_parquet(path)
        return cls.restore(cfg, state)

    def load(self, *, registry: Optional[Registry] = None, ctx: Optional[RunContext] = None) -> Recipe:
        manifest = self._read_manifest()
        registry = registry or default_registry()
        steps = [self._load_step(registry, entry) for entry in manifest.get("steps", [])]
        if not steps:
            raise ArtifactError(f"saved state under {self.root} lists no steps")
        return Recipe(steps, roles=manifest.get("roles") or {}, ctx=ctx)
