"""Load and save the run-state document locally or in S3."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from src.state.exceptions import StateStoreError
from src.state.models import ReminderState

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

    from src.config.settings import ReminderSettings

logger = logging.getLogger(__name__)

STATE_FILE_NAME = "rules_state.json"

# Error codes S3 returns when the state object has never been written
_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


def state_object_key(state_dir: str | None) -> str:
    """Build the S3 key for the state document.

    :param state_dir: Optional directory prefix.
    :returns: The object key.
    """
    if not state_dir:
        return STATE_FILE_NAME
    return f"{state_dir.strip('/')}/{STATE_FILE_NAME}"


def _parse_state(data: str | bytes, location: str) -> ReminderState:
    try:
        state = ReminderState.from_json(data)
    except ValidationError as e:
        raise StateStoreError(f"Failed to decode state from {location}: {e}") from e
    logger.info(f"State loaded: rule_count={len(state.rules)}")
    return state


class StateStore(ABC):
    """Abstract persistence backend for the run-state document.

    A missing document is not an error: ``load`` returns an empty state so
    the first ever run bootstraps every rule.
    """

    @abstractmethod
    def load(self) -> ReminderState:
        """Load the state document.

        :returns: The persisted state, or an empty state if none exists.
        :raises StateStoreError: If the document exists but cannot be read.
        """
        ...

    @abstractmethod
    def save(self, state: ReminderState) -> None:
        """Persist the state document.

        :param state: The state to write.
        :raises StateStoreError: If the document cannot be written.
        """
        ...


class LocalStateStore(StateStore):
    """State stored as a JSON file on local disk."""

    def __init__(self, path: Path | str) -> None:
        """Initialise the store.

        :param path: Path to the state file.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Path to the state file."""
        return self._path

    def load(self) -> ReminderState:
        """Load state from the local file."""
        logger.info(f"Loading state: path={self._path}")
        try:
            data = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("State file does not exist, starting with empty state")
            return ReminderState()
        except OSError as e:
            raise StateStoreError(f"Failed to read state file {self._path}: {e}") from e

        return _parse_state(data, str(self._path))

    def save(self, state: ReminderState) -> None:
        """Write state to the local file."""
        logger.info(f"Saving state: path={self._path}, rule_count={len(state.rules)}")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(state.to_json(), encoding="utf-8")
        except OSError as e:
            raise StateStoreError(f"Failed to write state file {self._path}: {e}") from e
        logger.info("State saved successfully")


class S3StateStore(StateStore):
    """State stored as a JSON object in S3."""

    def __init__(self, s3_client: S3Client, bucket: str, key: str = STATE_FILE_NAME) -> None:
        """Initialise the store.

        :param s3_client: boto3 S3 client.
        :param bucket: Bucket holding the state object.
        :param key: Object key of the state document.
        """
        self._client = s3_client
        self._bucket = bucket
        self._key = key

    @property
    def location(self) -> str:
        """S3 URI of the state object."""
        return f"s3://{self._bucket}/{self._key}"

    def load(self) -> ReminderState:
        """Load state from S3."""
        logger.info(f"Loading state: bucket={self._bucket}, key={self._key}")
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=self._key)
            data = response["Body"].read()
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code in _MISSING_OBJECT_CODES:
                logger.info("State object does not exist, starting with empty state")
                return ReminderState()
            raise StateStoreError(f"Failed to get state from {self.location}: {e}") from e
        except BotoCoreError as e:
            raise StateStoreError(f"Failed to get state from {self.location}: {e}") from e

        return _parse_state(data, self.location)

    def save(self, state: ReminderState) -> None:
        """Write state to S3."""
        logger.info(
            f"Saving state: bucket={self._bucket}, key={self._key}, rule_count={len(state.rules)}"
        )
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=self._key,
                Body=state.to_json().encode("utf-8"),
                ContentType="application/json",
            )
        except (ClientError, BotoCoreError) as e:
            raise StateStoreError(f"Failed to put state to {self.location}: {e}") from e
        logger.info("State saved successfully")


def build_state_store(
    settings: ReminderSettings,
    s3_client: S3Client | None,
    state_path: Path | str | None = None,
) -> StateStore:
    """Choose the state backend.

    :param settings: Reminder settings with the S3 state location.
    :param s3_client: boto3 S3 client, required when no local path is given.
    :param state_path: Local state file. Takes precedence over S3.
    :returns: The configured state store.
    :raises StateStoreError: If neither a path nor an S3 bucket is configured.
    """
    if state_path:
        return LocalStateStore(state_path)

    if not settings.s3_state_bucket:
        raise StateStoreError("S3_STATE_BUCKET environment variable not set")
    if s3_client is None:
        raise StateStoreError("An S3 client is required for S3 state storage")

    return S3StateStore(
        s3_client,
        bucket=settings.s3_state_bucket,
        key=state_object_key(settings.s3_state_dir),
    )
