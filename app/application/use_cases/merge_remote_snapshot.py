"""Merge a remote appointment snapshot into the local collection."""

from dataclasses import dataclass
from enum import Enum

from app.domain.entities.appointment import Appointment


class MergeOutcome(str, Enum):
    """How a snapshot was applied."""

    INITIAL_DOWNLOAD = "initial_download"
    SKIPPED_EMPTY_REMOTE = "skipped_empty_remote"
    MERGED = "merged"


@dataclass(frozen=True)
class MergeResult:
    """Result of merging a snapshot."""

    outcome: MergeOutcome
    appointments: list[Appointment]
    updated_count: int = 0
    added_count: int = 0

    @property
    def changed(self) -> bool:
        return self.outcome is not MergeOutcome.SKIPPED_EMPTY_REMOTE


def merge_remote_snapshot(
    local: list[Appointment],
    remote: list[Appointment],
) -> MergeResult:
    """
    Merge remote appointments into local ones, keyed by id.

    - Empty local and non-empty remote: the remote set is taken verbatim.
    - Empty remote: local is left untouched (a momentary empty snapshot
      must not wipe local data).
    - Otherwise remote copies overwrite local copies with the same id and
      unknown remote items are appended. Local items missing from the
      snapshot are kept; deletions only travel through explicit deletes.

    The input lists are not modified.

    Args:
        local: Current local collection
        remote: Full remote snapshot

    Returns:
        Merge result holding the new local collection
    """
    if not remote:
        return MergeResult(MergeOutcome.SKIPPED_EMPTY_REMOTE, list(local))

    if not local:
        return MergeResult(
            MergeOutcome.INITIAL_DOWNLOAD,
            list(remote),
            added_count=len(remote),
        )

    merged = list(local)
    index_by_id = {appointment.id: position for position, appointment in enumerate(merged)}
    updated = 0
    added = 0

    for remote_appointment in remote:
        position = index_by_id.get(remote_appointment.id)
        if position is not None:
            merged[position] = remote_appointment
            updated += 1
        else:
            index_by_id[remote_appointment.id] = len(merged)
            merged.append(remote_appointment)
            added += 1

    return MergeResult(MergeOutcome.MERGED, merged, updated_count=updated, added_count=added)
