"""
manifest-validator — unit tests for the YAML object source

File: tests/unit/sources/test_yaml_source.py

Purpose
- Validate manifest discovery, document splitting, List expansion, and load errors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from manifest_validator.sources import ObjectSource, ObjectSourceError, YamlObjectSource

if TYPE_CHECKING:
    from pathlib import Path


def _write(root: Path, relative: str, text: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


_CONFIGMAP = """\
apiVersion: v1
kind: ConfigMap
metadata:
  name: {name}
data:
  key: value
"""


@pytest.mark.unit
def test_source_satisfies_protocol(tmp_path: Path) -> None:
    assert isinstance(YamlObjectSource(tmp_path), ObjectSource)


@pytest.mark.unit
def test_objects_are_loaded_in_sorted_file_order_with_component(tmp_path: Path) -> None:
    _write(tmp_path, "dev/b-cache.yaml", _CONFIGMAP.format(name="cache"))
    _write(tmp_path, "dev/a-web.yml", _CONFIGMAP.format(name="web"))
    _write(tmp_path, "dev/notes.txt", "not a manifest")
    _write(tmp_path, "prod/other.yaml", _CONFIGMAP.format(name="prod-only"))

    objects = YamlObjectSource(tmp_path).objects("dev")

    assert [(item.name, item.component) for item in objects] == [
        ("web", "a-web"),
        ("cache", "b-cache"),
    ]
    assert objects[0].content["data"] == {"key": "value"}


@pytest.mark.unit
def test_nested_directories_are_included(tmp_path: Path) -> None:
    _write(tmp_path, "dev/nested/deep/app.yaml", _CONFIGMAP.format(name="deep"))

    assert [item.name for item in YamlObjectSource(tmp_path).objects("dev")] == ["deep"]


@pytest.mark.unit
def test_multi_document_streams_skip_empty_documents(tmp_path: Path) -> None:
    text = "---\n" + _CONFIGMAP.format(name="a") + "---\n---\n" + _CONFIGMAP.format(name="b")
    _write(tmp_path, "dev/app.yaml", text)

    assert [item.name for item in YamlObjectSource(tmp_path).objects("dev")] == ["a", "b"]


@pytest.mark.unit
def test_list_documents_are_expanded(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "dev/bundle.yaml",
        """\
apiVersion: v1
kind: List
items:
  - apiVersion: v1
    kind: ConfigMap
    metadata: {name: one, namespace: ns}
  - apiVersion: apps/v1
    kind: Deployment
    metadata: {name: two}
""",
    )

    objects = YamlObjectSource(tmp_path).objects("dev")

    assert [(item.kind, item.name, item.namespace) for item in objects] == [
        ("ConfigMap", "one", "ns"),
        ("Deployment", "two", None),
    ]
    assert all(item.component == "bundle" for item in objects)


@pytest.mark.unit
def test_missing_environment_directory_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ObjectSourceError, match="no manifests directory"):
        YamlObjectSource(tmp_path).objects("staging")


@pytest.mark.unit
def test_empty_environment_yields_no_objects(tmp_path: Path) -> None:
    (tmp_path / "dev").mkdir()

    assert YamlObjectSource(tmp_path).objects("dev") == []


@pytest.mark.unit
@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("key: [unclosed\n", "invalid YAML"),
        ("- just\n- a list\n", "expected object"),
        ("apiVersion: v1\nkind: ConfigMap\n", "manifest.metadata"),
        ("apiVersion: v1\nkind: List\nitems: {a: 1}\n", "List items must be an array"),
        ("apiVersion: v1\nkind: List\nitems: [1]\n", "List item must be an object"),
    ],
)
def test_malformed_manifests_raise_object_source_error(
    tmp_path: Path, text: str, message: str
) -> None:
    _write(tmp_path, "dev/broken.yaml", text)

    with pytest.raises(ObjectSourceError, match=message):
        YamlObjectSource(tmp_path).objects("dev")


@pytest.mark.unit
def test_unparseable_api_version_is_a_source_error(tmp_path: Path) -> None:
    _write(tmp_path, "dev/web.yaml", _CONFIGMAP.format(name="web"))
    _write(
        tmp_path,
        "dev/worker.yaml",
        "apiVersion: apps/\nkind: Deployment\nmetadata:\n  name: worker\n",
    )

    with pytest.raises(ObjectSourceError, match=r"worker\.yaml \(document 0\).*apps/"):
        YamlObjectSource(tmp_path).objects("dev")
