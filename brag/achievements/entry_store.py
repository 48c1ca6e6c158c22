"""
Entry Store.

File-based persistence of the two brag list documents under one data
directory:

- Generated batch (JSON): the regenerable working set pending review.
  Fully replaced on every save; entries are edited/removed by index.
- Ledger (Markdown): the append-mostly record of accepted entries, one
  "## <title>" block per entry, hand-editable outside the tool.

Each write goes to a temporary file in the same directory and is moved into
place with os.replace, so a single document is never left half-written. There
is no locking and no transaction across the two documents: the last writer
wins, and an accept can update the ledger without marking the batch (or the
reverse) if the process dies between the two writes.

Ledger blocks carry a hidden "<!-- brag-entry-id: <hex> -->" marker under the
heading so they can be deleted by identity. Deleting by position is kept for
blocks written before ids existed; it removes whatever block currently sits at
that position, so a concurrent accept/delete between viewing and deleting can
remove the wrong block.
"""

import json
import os
import re
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from brag.common.config import Config
from brag.common.errors import NotFound, persistence_operation
from brag.common.logger import get_logger
from brag.achievements.schemas import EntryUpdate, check_update, merge_entry
from brag.achievements.types import (
    AchievementEntry,
    GenerationBatch,
    LedgerRecord,
    ReadAllResult,
)

LEDGER_HEADER = "# Brag List\n\nAccepted accomplishments for performance reviews.\n"
ENTRY_HEADING = "## "

_ENTRY_SPLIT = re.compile(r"^## ", re.MULTILINE)
_ENTRY_ID_MARKER = re.compile(r"<!--\s*brag-entry-id:\s*([0-9a-f]+)\s*-->")


def new_entry_id() -> str:
    return uuid.uuid4().hex[:16]


def _single_line(text: Optional[str]) -> str:
    return " ".join((text or "").split())


def render_ledger_entry(entry: AchievementEntry, entry_id: str, accepted_on: Optional[str] = None) -> str:
    """
    Render one accepted entry as a ledger block.

    Layout: heading, hidden id marker, tags line, frequency/confidence line,
    block-quoted bullet, optional overall impact, metrics, rule, accepted date.
    """
    accepted_on = accepted_on or datetime.now(timezone.utc).date().isoformat()
    tags_line = " | ".join(entry.tags) if entry.tags else entry.category

    lines = [
        "",
        f"{ENTRY_HEADING}{_single_line(entry.title)}",
        f"<!-- brag-entry-id: {entry_id} -->",
        "",
        f"**Tags:** {tags_line}",
        f"**Frequency:** {entry.frequency} | **Confidence:** {entry.confidence or 'medium'}",
        "",
        f"> {_single_line(entry.bullet)}",
        "",
    ]
    if entry.overall_impact:
        lines.extend([f"**Overall Impact:** {_single_line(entry.overall_impact)}", ""])
    lines.extend([
        f"*Metrics:* {_single_line(entry.metrics)}",
        "",
        "---",
        f"*Accepted on {accepted_on}*",
        "",
    ])
    return "\n".join(lines)


def split_ledger(content: str) -> Tuple[str, List[str]]:
    """Split a ledger document into (header, entry segments without the heading marker)."""
    parts = _ENTRY_SPLIT.split(content)
    return parts[0], parts[1:]


def join_ledger(header: str, segments: List[str]) -> str:
    return header + "".join(ENTRY_HEADING + segment for segment in segments)


def parse_ledger(content: str) -> List[LedgerRecord]:
    """Parse ledger text into records; blocks without an id marker get entry_id None."""
    _, segments = split_ledger(content)
    records = []
    for position, segment in enumerate(segments):
        title = segment.split("\n", 1)[0].strip()
        match = _ENTRY_ID_MARKER.search(segment)
        records.append(LedgerRecord(
            position=position,
            title=title,
            text=ENTRY_HEADING + segment,
            entry_id=match.group(1) if match else None,
        ))
    return records


class EntryStore:
    """
    Durable storage for the generated batch and the ledger.

    Usage:
        store = EntryStore()
        store.save_generation_batch(batch)
        path, entry_id = store.append_ledger_entry(batch.entries[0])
        print(store.read_all().ledger_text)
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding both documents (defaults to BRAG_DATA_DIR)
        """
        self.data_dir = Path(data_dir) if data_dir is not None else Path(Config.BRAG_DATA_DIR)
        self.ledger_path = self.data_dir / Config.LEDGER_FILENAME
        self.generated_path = self.data_dir / Config.GENERATED_FILENAME
        self._logger = get_logger(__name__, component="store")

    # ===== low-level I/O =====

    def _write_atomic(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _load_batch(self) -> GenerationBatch:
        """
        Read the generated batch.

        Raises:
            NotFound: No batch has been saved
            ValueError: The document is not valid JSON
        """
        if not self.generated_path.exists():
            raise NotFound("No generated brag data found", document="generated")
        data = json.loads(self.generated_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("generated brag data is not a JSON object")
        try:
            return GenerationBatch.from_dict(data)
        except (TypeError, KeyError, AttributeError) as e:
            raise ValueError(f"generated brag data has an unexpected shape: {e}") from e

    def _write_batch(self, batch: GenerationBatch) -> None:
        self._write_atomic(self.generated_path, json.dumps(batch.to_dict(), indent=2, ensure_ascii=False))

    def _load_ledger(self) -> str:
        if not self.ledger_path.exists():
            raise NotFound("No brag list found", document="ledger")
        return self.ledger_path.read_text(encoding="utf-8")

    @staticmethod
    def _check_index(index: int, size: int, document: str) -> None:
        if not 0 <= index < size:
            raise NotFound(
                f"Invalid index {index}: {document} has {size} entr{'y' if size == 1 else 'ies'}",
                index=index,
                document=document,
            )

    # ===== generated batch =====

    @persistence_operation("save generated batch")
    def save_generation_batch(self, batch: GenerationBatch) -> Path:
        """Replace the stored batch with this one."""
        self._write_batch(batch)
        self._logger.bind(run_id=batch.run_id).info(
            f"Saved {len(batch.entries)} generated entries (source={batch.source})"
        )
        return self.generated_path

    @persistence_operation("read generated batch")
    def get_generation_batch(self) -> GenerationBatch:
        """
        Current batch, strictly.

        Raises:
            NotFound: No batch has been saved
            PersistenceFailure: The document is unreadable or corrupt
        """
        return self._load_batch()

    def load_generation_batch(self) -> Optional[GenerationBatch]:
        """Current batch, or None when absent or unreadable."""
        return self.read_all().batch

    def update_generated_entry(
        self, index: int, update: Union[EntryUpdate, Dict[str, Any]]
    ) -> AchievementEntry:
        """
        Merge a partial update over the entry at index and rewrite the batch.

        Absent fields are preserved; other entries are left untouched.

        Raises:
            ValueError: The update is invalid (bad values, cleared required field)
            NotFound: No batch, or index out of range
            PersistenceFailure: Read/write failed
        """
        if not isinstance(update, EntryUpdate):
            update = EntryUpdate.model_validate(update)
        check_update(update)
        return self._apply_update(index, update)

    @persistence_operation("update generated entry")
    def _apply_update(self, index: int, update: EntryUpdate) -> AchievementEntry:
        batch = self._load_batch()
        self._check_index(index, len(batch.entries), "generated")
        batch.entries[index] = merge_entry(batch.entries[index], update)
        self._write_batch(batch)
        self._logger.info(f"Updated generated entry {index}: {sorted(update.model_fields_set)}")
        return batch.entries[index]

    @persistence_operation("delete generated entry")
    def delete_generated_entry(self, index: int) -> AchievementEntry:
        """
        Remove the entry at index; later entries shift down by one.

        Raises:
            NotFound: No batch, or index out of range
        """
        batch = self._load_batch()
        self._check_index(index, len(batch.entries), "generated")
        removed = batch.entries.pop(index)
        self._write_batch(batch)
        self._logger.info(f"Deleted generated entry {index} ({removed.title!r})")
        return removed

    # ===== ledger =====

    def append_ledger_entry(
        self,
        entry: AchievementEntry,
        accepted_on: Optional[str] = None,
        entry_id: Optional[str] = None,
    ) -> Tuple[Path, str]:
        """
        Append an accepted entry to the ledger, creating it with a header if needed.

        Returns:
            (ledger path, id of the appended block)

        Raises:
            ValueError: The entry has no title or bullet
            PersistenceFailure: Read/write failed
        """
        if not entry.title.strip() or not entry.bullet.strip():
            raise ValueError("Entry needs a title and a bullet to be accepted")
        return self._append(entry, accepted_on, entry_id or new_entry_id())

    @persistence_operation("append to brag list")
    def _append(self, entry: AchievementEntry, accepted_on: Optional[str], entry_id: str) -> Tuple[Path, str]:
        existing = self.ledger_path.read_text(encoding="utf-8") if self.ledger_path.exists() else LEDGER_HEADER
        self._write_atomic(self.ledger_path, existing + render_ledger_entry(entry, entry_id, accepted_on))
        self._logger.info(f"Appended ledger entry {entry_id} ({entry.title!r})")
        return self.ledger_path, entry_id

    @persistence_operation("delete brag list entry")
    def delete_ledger_entry_at(self, index: int) -> LedgerRecord:
        """
        Remove the ledger block at a 0-based position.

        Raises:
            NotFound: No ledger, or index out of range
        """
        content = self._load_ledger()
        header, segments = split_ledger(content)
        self._check_index(index, len(segments), "ledger")
        removed = parse_ledger(content)[index]
        del segments[index]
        self._write_atomic(self.ledger_path, join_ledger(header, segments))
        self._logger.info(f"Deleted ledger entry at position {index} ({removed.title!r})")
        return removed

    @persistence_operation("delete brag list entry")
    def delete_ledger_entry(self, entry_id: str) -> LedgerRecord:
        """
        Remove the ledger block carrying this id.

        Raises:
            NotFound: No ledger, or no block with this id
        """
        content = self._load_ledger()
        header, segments = split_ledger(content)
        for record in parse_ledger(content):
            if record.entry_id == entry_id:
                del segments[record.position]
                self._write_atomic(self.ledger_path, join_ledger(header, segments))
                self._logger.info(f"Deleted ledger entry {entry_id} ({record.title!r})")
                return record
        raise NotFound(f"No brag list entry with id {entry_id}", document="ledger")

    def list_ledger_entries(self) -> List[LedgerRecord]:
        return self.read_all().ledger_entries

    # ===== read =====

    def read_all(self) -> ReadAllResult:
        """
        Ledger text and current batch, always renderable.

        Missing documents are empty/None. Unreadable or corrupt documents are
        logged and reported as absent rather than raised.
        """
        result = ReadAllResult()

        if self.ledger_path.exists():
            try:
                result.ledger_text = self.ledger_path.read_text(encoding="utf-8")
                result.ledger_entries = parse_ledger(result.ledger_text)
            except (OSError, UnicodeError) as e:
                self._logger.error(f"Could not read brag list {self.ledger_path}: {e}")

        try:
            result.batch = self._load_batch()
        except NotFound:
            pass
        except (OSError, UnicodeError, ValueError) as e:
            self._logger.error(f"Could not read generated brag data {self.generated_path}: {e}")

        return result
