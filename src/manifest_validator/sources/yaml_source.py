"""Load candidate objects from per-environment YAML manifest directories."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, Final

import yaml

from manifest_validator.domain.models import CandidateObject

_MANIFEST_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})
_LIST_KIND: Final[str] = "List"


class ObjectSourceError(ValueError):
    """Raised when manifests for an environment cannot be loaded."""


class YamlObjectSource:
    """Object source reading ``<manifests_dir>/<environment>/**/*.yaml``.

    Files are visited in sorted path order; multi-document streams are split,
    empty documents skipped and ``kind: List`` documents expanded into their
    items. The file stem becomes the object's component.
    """

    def __init__(self, manifests_dir: Path | str) -> None:
        self._manifests_dir = Path(manifests_dir)

    @property
    def manifests_dir(self) -> Path:
        return self._manifests_dir

    def objects(self, environment: str) -> list[CandidateObject]:
        env_dir = self._manifests_dir / environment
        if not env_dir.is_dir():
            raise ObjectSourceError(
                f"no manifests directory for environment {environment!r}: {env_dir}"
            )

        objects: list[CandidateObject] = []
        for path in _manifest_files(env_dir):
            component = path.stem
            for index, document in enumerate(_load_documents(path)):
                for manifest in _expand(document, path, index):
                    try:
                        candidate = CandidateObject.from_manifest(manifest, component=component)
                    except ValueError as exc:
                        raise ObjectSourceError(f"{path} (document {index}): {exc}") from exc
                    objects.append(candidate)
        return objects


def _manifest_files(root: Path) -> list[Path]:
    return sorted(
        path for path in root.rglob("*") if path.is_file() and path.suffix in _MANIFEST_SUFFIXES
    )


def _load_documents(path: Path) -> list[object]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return [document for document in yaml.safe_load_all(handle) if document is not None]
    except yaml.YAMLError as exc:
        raise ObjectSourceError(f"invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ObjectSourceError(f"unable to read manifest file {path}: {exc}") from exc


def _expand(document: object, path: Path, index: int) -> Iterator[Mapping[str, Any]]:
    if not isinstance(document, Mapping):
        raise ObjectSourceError(
            f"{path} (document {index}): expected object, got {type(document).__name__}"
        )
    if document.get("kind") != _LIST_KIND:
        yield document
        return

    items = document.get("items") or []
    if not isinstance(items, list):
        raise ObjectSourceError(f"{path} (document {index}): List items must be an array")
    for item in items:
        if not isinstance(item, Mapping):
            raise ObjectSourceError(
                f"{path} (document {index}): List item must be an object, "
                f"got {type(item).__name__}"
            )
        yield item


__all__ = ["ObjectSourceError", "YamlObjectSource"]
