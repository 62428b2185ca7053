"""
Artifact Store - reuse of previously generated HTML tools.

Artifacts are plain files in the output directory, named after the
keywords of the request that produced them (see keywords.py). Lookup is
a deliberately loose keyword-overlap match: returning a topically similar
artifact is an accepted trade for skipping a slow generation.

Matching rule:
==============
    keywords    = extract_keywords(request)       (empty -> no match)
    match_count = keywords contained in the lower-cased file name
    qualifies   = match_count > 0 and
                  (match_count >= len(keywords) // 2 or match_count == len(keywords))
    winner      = highest match_count, then latest modification time
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union

from toolgen.core.errors import ArtifactWriteError
from toolgen.services.keywords import ARTIFACT_EXTENSION, artifact_filename, extract_keywords

logger = logging.getLogger("toolgen.services.artifact_store")

# Tunable: a name qualifies with at least len(keywords) // MATCH_DIVISOR hits.
MATCH_DIVISOR = 2


def count_matches(name: str, keywords: List[str]) -> int:
    """Number of keywords that are substrings of the case-folded name."""
    folded = name.lower()
    return sum(1 for keyword in keywords if keyword.lower() in folded)


def qualifies(match_count: int, keyword_count: int) -> bool:
    if match_count <= 0:
        return False
    return match_count >= keyword_count // MATCH_DIVISOR or match_count == keyword_count


class ArtifactStore:
    """
    File-system store of generated artifacts.

    Usage:
        store = ArtifactStore("output")
        html = store.find("pomodoro timer")        # None on miss
        path = store.save("pomodoro timer", html)
    """

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)

    # ---------------------------------------------------------------------------
    # LOOKUP
    # ---------------------------------------------------------------------------

    def _artifact_paths(self) -> List[Path]:
        if not self.output_dir.is_dir():
            return []
        return sorted(
            path for path in self.output_dir.iterdir()
            if path.is_file() and path.name.lower().endswith(ARTIFACT_EXTENSION)
        )

    def best_match(self, request: str) -> Optional[Path]:
        """Return the path of the best qualifying artifact, or None."""
        keywords = extract_keywords(request)
        if not keywords:
            return None

        best: Optional[Tuple[int, float, Path]] = None
        for path in self._artifact_paths():
            match_count = count_matches(path.name, keywords)
            if not qualifies(match_count, len(keywords)):
                continue

            mtime = path.stat().st_mtime
            if best is None or match_count > best[0] or (match_count == best[0] and mtime > best[1]):
                best = (match_count, mtime, path)

        return best[2] if best else None

    def find(self, request: str) -> Optional[str]:
        """
        Return the content of the best matching artifact, or None.

        Never raises: an unreadable directory or file is a miss.
        """
        try:
            path = self.best_match(request)
            if path is None:
                return None
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Artifact lookup failed, falling through to generation: {e}")
            return None

        logger.info(f"Reusing artifact {path.name}")
        return content

    def list_names(self) -> List[str]:
        """Names of all persisted artifacts."""
        try:
            return [path.name for path in self._artifact_paths()]
        except OSError as e:
            logger.warning(f"Could not list artifacts in {self.output_dir}: {e}")
            return []

    def resolve(self, name: str) -> Optional[Path]:
        """
        Map a download name to an existing artifact path.

        Appends the extension when missing and refuses anything that is
        not a plain file name inside the output directory.
        """
        if not name.lower().endswith(ARTIFACT_EXTENSION):
            name = name[:-1] if name.endswith(".") else name
            name += ARTIFACT_EXTENSION

        if Path(name).name != name or name.startswith("."):
            return None

        path = self.output_dir / name
        return path if path.is_file() else None

    # ---------------------------------------------------------------------------
    # PERSISTENCE
    # ---------------------------------------------------------------------------

    def save(self, request: str, content: str, now: Optional[datetime] = None) -> Path:
        """
        Persist content under the naming contract and return its path.

        Raises:
            ArtifactWriteError: the directory or file could not be written
        """
        path = self.output_dir / artifact_filename(request, now)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
            size = path.stat().st_size
        except OSError as e:
            raise ArtifactWriteError(f"Failed to save artifact {path}: {e}") from e

        if size == 0:
            raise ArtifactWriteError(f"Saved artifact is empty: {path}")

        logger.info(f"Artifact saved: {path.resolve()} ({size} bytes)")
        return path
