"""One JSON document per player on local disk."""

from pathlib import Path
from typing import Any, Iterator, List, Optional, Union
import json
import logging

from propedge.models.records import PlayerDataset

logger = logging.getLogger(__name__)

_FILE_PREFIX = "player_"


class PlayerStore:
    def __init__(self, data_dir: Union[str, Path]) -> None:
        self._dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._dir

    def path_for(self, player_id: Any) -> Path:
        return self._dir / f"{_FILE_PREFIX}{player_id}.json"

    def save(self, dataset: PlayerDataset) -> str:
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(dataset.player_id)
        path.write_text(json.dumps(dataset.to_dict(), indent=2), encoding="utf-8")
        logger.info("Saved player data to %s", path)
        return str(path)

    def load(self, player_id: Any) -> Optional[PlayerDataset]:
        path = self.path_for(player_id)
        if not path.exists():
            return None
        return self._read(path)

    def find_by_name(self, name: str) -> Optional[PlayerDataset]:
        """First stored player whose name contains ``name`` (case-insensitive)."""
        for dataset in self.iter_players():
            if dataset.matches_name(name):
                logger.debug("Found player %s in %s", dataset.name, self.path_for(dataset.player_id))
                return dataset
        return None

    def resolve(self, name_or_id: Any) -> Optional[PlayerDataset]:
        """Load by numeric id, falling back to a name search."""
        text = str(name_or_id).strip()
        if text.isdigit():
            dataset = self.load(text)
            if dataset is not None:
                return dataset
        return self.find_by_name(text)

    def list_players(self) -> List[PlayerDataset]:
        return list(self.iter_players())

    def iter_players(self) -> Iterator[PlayerDataset]:
        for path in self._player_files():
            dataset = self._read(path)
            if dataset is not None:
                yield dataset

    def delete(self, player_id: Any) -> bool:
        path = self.path_for(player_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Deleted %s", path)
        return True

    def _player_files(self) -> List[Path]:
        if not self._dir.exists():
            return []
        return sorted(self._dir.glob(f"{_FILE_PREFIX}*.json"))

    def _read(self, path: Path) -> Optional[PlayerDataset]:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Error reading %s: %s", path, exc)
            return None
        if not isinstance(payload, dict) or not payload.get("player"):
            logger.warning("Skipping %s: no player record", path)
            return None
        return PlayerDataset.from_dict(payload)
