"""
Per-commit replay outcomes.

The replay engine returns exactly one outcome for every commit of a change
set, so a caller can always tell whether a source commit landed cleanly,
landed as a conflict commit, or was skipped because it carried no change.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional, Union

CONFLICT_TAG = "Conflict on"


def conflict_message(lineage: str, commit_id: str, message: str) -> str:
    """Build the tagged message of a conflict commit.

    The original message is kept verbatim after the tag.
    """
    return f"[{CONFLICT_TAG} {lineage} {commit_id}] {message}"


@dataclass(frozen=True)
class Applied:
    """The commit applied cleanly onto the destination."""
    commit_id: str
    new_commit: Optional[str] = None

    kind = "applied"

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'commit': self.commit_id, 'new_commit': self.new_commit}


@dataclass(frozen=True)
class Conflicted:
    """The commit could not be applied; a tagged conflict commit records it."""
    commit_id: str
    message: str
    new_commit: Optional[str] = None

    kind = "conflicted"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'commit': self.commit_id,
            'message': self.message,
            'new_commit': self.new_commit,
        }


@dataclass(frozen=True)
class SkippedEmpty:
    """Replaying the commit produced no change, so the step was skipped."""
    commit_id: str

    kind = "skipped_empty"

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'commit': self.commit_id}


ReplayOutcome = Union[Applied, Conflicted, SkippedEmpty]
