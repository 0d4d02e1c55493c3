"""
Registry Manifest - versioned snapshots of the event vocabulary

A manifest records which identifiers a given release exposes. Comparing the
manifest of an older release with a newer one verifies the registry only ever
grows: listeners bound by name to an old identifier must keep working.
"""

import json
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger
from pydantic import BaseModel, ValidationError, field_validator

from . import constants
from . import exceptions
from .api.events import Events

logger = logger.bind(name=__name__)


class RegistryManifest(BaseModel):
    version: str
    events: List[str]

    @field_validator("events")
    @classmethod
    def unique_events(cls, value: List[str]) -> List[str]:
        seen = set()
        duplicates = set()
        for name in value:
            if name in seen:
                duplicates.add(name)
            seen.add(name)
        if duplicates:
            raise ValueError(f"duplicate event identifiers: {', '.join(sorted(duplicates))}")
        return value


def current_manifest() -> RegistryManifest:
    """Manifest of the registry shipped with this installation."""
    return RegistryManifest(
        version=constants.REGISTRY_VERSION,
        events=[member.value for member in Events],
    )


def dump_manifest(path: Union[str, Path], manifest: Optional[RegistryManifest] = None) -> Path:
    """Write a manifest as JSON. A directory path gets the default file name."""
    path = Path(path)
    if path.is_dir():
        path = path / constants.MANIFEST_FILE
    manifest = manifest or current_manifest()

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(manifest.model_dump(), f, indent=2)
        f.write("\n")

    logger.debug(f"Wrote registry manifest {manifest.version} to {path}")
    return path


def load_manifest(path: Union[str, Path]) -> RegistryManifest:
    """
    Read a manifest previously written by dump_manifest().

    Raises:
        ManifestLoadError: if the file is missing, not UTF-8 JSON, or malformed.
    """
    path = Path(path)
    if path.is_dir():
        path = path / constants.MANIFEST_FILE

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise exceptions.ManifestLoadError(str(path), "file not found")
    except json.JSONDecodeError as e:
        raise exceptions.ManifestLoadError(str(path), f"invalid JSON: {e}")
    except UnicodeDecodeError as e:
        raise exceptions.ManifestLoadError(str(path), f"invalid encoding: {e}")

    try:
        return RegistryManifest.model_validate(data)
    except ValidationError as e:
        raise exceptions.ManifestLoadError(str(path), f"invalid manifest: {e.errors()[0]['msg']}")


def removed_events(old: RegistryManifest, new: RegistryManifest) -> List[str]:
    """Identifiers present in ``old`` but missing from ``new``, in old order."""
    current = set(new.events)
    return [name for name in old.events if name not in current]


def is_append_only(old: RegistryManifest, new: RegistryManifest) -> bool:
    return not removed_events(old, new)


def check_append_only(old: RegistryManifest, new: RegistryManifest) -> None:
    """
    Raises:
        RegistryCompatibilityError: naming every identifier ``new`` dropped.
    """
    removed = removed_events(old, new)
    if removed:
        raise exceptions.RegistryCompatibilityError(removed, old.version, new.version)

    added = len(set(new.events) - set(old.events))
    logger.info(f"Registry {new.version} is compatible with {old.version} ({added} added)")
