"""Step journal for multi-step lifecycle operations.

Deploy and remove are sequences of external commands with no transaction
around them. The journal records, per CTID, which steps of the running
operation have completed so an interrupted run can be diagnosed (and
cleaned up) from stored state instead of from scrollback.
"""
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from infrastack.core.logger import get_logger

logger = get_logger(__name__)

DEPLOY_STEPS = [
    "validated",
    "dataset_created",
    "container_created",
    "dataset_mounted",
    "container_started",
    "platform_installed",
    "credentials_written",
    "inventory_recorded",
]

REMOVE_STEPS = [
    "confirmed",
    "container_destroyed",
    "inventory_removed",
    "dataset_destroyed",
]


class StateStore:
    """Persist the last completed lifecycle step per CTID."""

    def __init__(self, state_file: Path):
        """Initialize state store.

        Args:
            state_file: Path to the JSON journal
        """
        self.state_file = Path(state_file)
        self.enabled = not os.environ.get('INFRASTACK_STATELESS')
        self.state = self._load()

    def _load(self) -> dict:
        if not self.state_file.exists():
            return self._empty_state()

        try:
            with open(self.state_file, 'r') as f:
                state = json.load(f)
                logger.debug(f"Loaded state from {self.state_file}")
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to load state file: {e}, using empty state")
            return self._empty_state()

        state.setdefault("operations", {})
        return state

    def _empty_state(self) -> dict:
        return {
            "version": "1.0",
            "updated_at": datetime.now().isoformat(),
            "operations": {},
        }

    def save(self) -> bool:
        """Save state to file.

        Returns:
            True if saved successfully
        """
        if not self.enabled:
            logger.debug("State tracking disabled (INFRASTACK_STATELESS)")
            return False

        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.state["updated_at"] = datetime.now().isoformat()

            temp_file = self.state_file.with_suffix('.tmp')
            with open(temp_file, 'w') as f:
                json.dump(self.state, f, indent=2)

            temp_file.rename(self.state_file)
            logger.debug(f"Saved state to {self.state_file}")
            return True

        except (IOError, OSError) as e:
            logger.error(f"Failed to save state: {e}")
            return False

    def begin(self, ctid: int, operation: str) -> None:
        """Start journaling an operation, replacing any finished record."""
        self.state["operations"][str(ctid)] = {
            "operation": operation,
            "started_at": datetime.now().isoformat(),
            "completed_steps": [],
            "last_step": None,
            "failed_step": None,
        }
        self.save()

    def mark_step(self, ctid: int, step: str) -> None:
        """Record that step completed for ctid's current operation."""
        entry = self.state["operations"].get(str(ctid))
        if entry is None:
            logger.debug(f"No journaled operation for {ctid}, ignoring step {step}")
            return

        entry["completed_steps"].append(step)
        entry["last_step"] = step
        entry["updated_at"] = datetime.now().isoformat()
        self.save()

    def mark_failed(self, ctid: int, step: str, reason: str = "") -> None:
        """Record the step at which ctid's operation stopped."""
        entry = self.state["operations"].get(str(ctid))
        if entry is None:
            return

        entry["failed_step"] = step
        entry["failure_reason"] = reason
        entry["updated_at"] = datetime.now().isoformat()
        self.save()

    def finish(self, ctid: int) -> None:
        """Drop the journal entry once the operation completed."""
        if self.state["operations"].pop(str(ctid), None) is not None:
            self.save()

    def get(self, ctid: int) -> Optional[Dict]:
        return self.state["operations"].get(str(ctid))

    def last_step(self, ctid: int) -> Optional[str]:
        entry = self.get(ctid)
        return entry["last_step"] if entry else None

    def completed_steps(self, ctid: int) -> List[str]:
        entry = self.get(ctid)
        return list(entry["completed_steps"]) if entry else []

    def incomplete_operations(self) -> Dict[int, Dict]:
        """Operations that were started but never finished."""
        return {int(ctid): entry for ctid, entry in self.state["operations"].items()}
