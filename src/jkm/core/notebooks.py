"""Keep notebooks' embedded kernelspec in sync with kernels.json.

Each notebook is matched to a kernel by path: a notebook under
``pytorch_study/`` uses the ``pytorch_study`` kernel. Its
``metadata.kernelspec`` is then rewritten to point at that kernel's
registered spec name.
"""

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jkm.core.cancellation import CancellationToken
from jkm.core.config import KernelsConfig
from jkm.core.errors import ConfigError
from jkm.core.user_feedback import UserFeedback

logger = logging.getLogger(__name__)

FALLBACK_KERNEL_NAMES = ("common", "default")

EXCLUDED_DIRS = frozenset({"node_modules", ".venv", ".jupyter", ".ipynb_checkpoints"})


@dataclass(frozen=True)
class NotebookUpdateResult:
    file_path: Path
    old_kernel: str
    new_kernel: str
    updated: bool
    error: OSError | ConfigError | None = None

    @property
    def error_message(self) -> str | None:
        return None if self.error is None else str(self.error)


@dataclass(frozen=True)
class NotebookUpdateSummary:
    updated: int
    skipped: int
    errors: int
    results: list[NotebookUpdateResult]


def resolve_kernel_for_notebook(relative_path: str, candidate_names: Sequence[str]) -> str | None:
    """Pick the kernel whose name appears in the notebook's path.

    Longer names are tried first, so "pytorch_study" beats "study" for
    ``pytorch_study/study_notes.ipynb``. Among equal-length matches the
    later candidate wins. Without a match, falls back to "common", then
    "default", then the first candidate.

    Args:
        relative_path: Notebook path relative to the workspace root
        candidate_names: Kernel names in config order

    Returns:
        Kernel name, or None when there are no candidates
    """
    normalized = relative_path.replace("\\", "/").lower()

    # Reverse first so the stable sort keeps later candidates ahead of
    # earlier ones of the same length
    by_length = sorted(reversed(candidate_names), key=len, reverse=True)
    for name in by_length:
        if name.lower() in normalized:
            return name

    for fallback in FALLBACK_KERNEL_NAMES:
        if fallback in candidate_names:
            return fallback

    return candidate_names[0] if candidate_names else None


def _ensure_object(container: dict[str, Any], key: str) -> dict[str, Any]:
    value = container.get(key)
    if not isinstance(value, dict):
        value = {}
        container[key] = value
    return value


def update_single_notebook(
    notebook_path: Path, spec_name: str, display_name: str, *, dry_run: bool
) -> NotebookUpdateResult:
    """Point one notebook's metadata.kernelspec at spec_name.

    A notebook already using spec_name is left byte-for-byte untouched.
    """
    try:
        content = notebook_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        error = OSError(f"Read error: {e}")
        return NotebookUpdateResult(notebook_path, "", spec_name, False, error)

    try:
        notebook = json.loads(content)
    except json.JSONDecodeError as e:
        return NotebookUpdateResult(
            notebook_path, "", spec_name, False, ConfigError("parse", f"Parse error: {e}")
        )
    if not isinstance(notebook, dict):
        return NotebookUpdateResult(
            notebook_path,
            "",
            spec_name,
            False,
            ConfigError("parse", "Parse error: notebook root is not an object"),
        )

    metadata = _ensure_object(notebook, "metadata")
    kernelspec = _ensure_object(metadata, "kernelspec")

    current = kernelspec.get("name")
    old_kernel = current if isinstance(current, str) else ""

    if old_kernel == spec_name:
        return NotebookUpdateResult(notebook_path, old_kernel, spec_name, False)

    kernelspec["name"] = spec_name
    kernelspec["display_name"] = display_name
    kernelspec["language"] = "python"

    if dry_run:
        return NotebookUpdateResult(notebook_path, old_kernel, spec_name, True)

    try:
        notebook_path.write_text(
            json.dumps(notebook, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )
    except OSError as e:
        return NotebookUpdateResult(
            notebook_path, old_kernel, spec_name, False, OSError(f"Write error: {e}")
        )
    return NotebookUpdateResult(notebook_path, old_kernel, spec_name, True)


def find_notebooks(root: Path) -> list[Path]:
    """All .ipynb files under root, skipping venvs, checkpoints and node_modules."""
    notebooks: list[Path] = []
    for path in root.rglob("*.ipynb"):
        relative_parts = path.relative_to(root).parts[:-1]
        if any(part in EXCLUDED_DIRS for part in relative_parts):
            continue
        if path.is_file():
            notebooks.append(path)
    return sorted(notebooks)


def update_notebook_kernels(
    config: KernelsConfig,
    root: Path,
    spec_namer: Callable[[str], str],
    feedback: UserFeedback,
    *,
    dry_run: bool,
    token: CancellationToken | None = None,
) -> NotebookUpdateSummary:
    """Scan the workspace and sync every notebook's kernelspec.

    Args:
        config: Loaded kernels config
        root: Workspace root to scan
        spec_namer: Maps a kernel name to its kernelspec name
        feedback: Progress sink
        dry_run: Report changes without writing
        token: Cancellation token, checked between files
    """
    feedback.info("")
    feedback.info("=" * 60)
    feedback.info(f"Notebook Kernel Update{' [DRY RUN]' if dry_run else ''}")
    feedback.info("=" * 60)

    kernel_names = config.names
    if not kernel_names:
        feedback.info("No kernels defined in config.")
        return NotebookUpdateSummary(0, 0, 0, [])

    notebooks = find_notebooks(root)
    if not notebooks:
        feedback.info("No .ipynb files found in workspace.")
        return NotebookUpdateSummary(0, 0, 0, [])

    feedback.info(f"Found {len(notebooks)} notebook(s)")
    feedback.info("")

    results: list[NotebookUpdateResult] = []
    for notebook_path in notebooks:
        if token is not None and token.is_cancelled:
            feedback.warning("Cancelled")
            break

        relative = notebook_path.relative_to(root).as_posix()
        kernel_name = resolve_kernel_for_notebook(relative, kernel_names)
        if kernel_name is None:
            continue

        definition = config.kernels[kernel_name]
        result = update_single_notebook(
            notebook_path, spec_namer(kernel_name), definition.display_name, dry_run=dry_run
        )
        results.append(result)

        if result.error is not None:
            feedback.error(f"  ERROR: {relative}: {result.error}")
        elif result.updated:
            prefix = "[DRY RUN] Would update" if dry_run else "Updated"
            feedback.info(
                f"  {prefix}: {relative}  ({result.old_kernel or '(none)'} -> {result.new_kernel})"
            )
        else:
            feedback.info(f"  OK: {relative}  (already {result.new_kernel})")

    updated = sum(1 for r in results if r.updated)
    skipped = sum(1 for r in results if not r.updated and r.error is None)
    errors = sum(1 for r in results if r.error is not None)

    feedback.info("")
    feedback.info("-" * 60)
    feedback.info(f"Updated: {updated}  |  Skipped: {skipped}  |  Errors: {errors}")
    if dry_run:
        feedback.info("This was a dry run. Run without --dry-run to apply changes.")

    logger.debug("Notebook update summary: %d/%d/%d", updated, skipped, errors)
    return NotebookUpdateSummary(updated, skipped, errors, results)
