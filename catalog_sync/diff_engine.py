"""Change detection between the live source, the previous source and a target catalog."""
from dataclasses import dataclass, field
from typing import Dict, List

from catalog_sync.catalog_tree import Catalog, CatalogPath, walk_leaves


@dataclass
class CatalogDiff:
    """Work needed to bring one target catalog up to date."""
    deleted: List[CatalogPath] = field(default_factory=list)
    to_translate_paths: List[CatalogPath] = field(default_factory=list)
    to_translate_values: List[str] = field(default_factory=list)


@dataclass
class SourceChanges:
    """How the source catalog moved since the last synchronized run."""
    added: List[CatalogPath] = field(default_factory=list)
    removed: List[CatalogPath] = field(default_factory=list)
    modified: List[CatalogPath] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)


def _leaf_index(catalog: Catalog) -> Dict[CatalogPath, str]:
    # dicts keep insertion order, so iteration follows walk order
    return {leaf.path: leaf.value for leaf in walk_leaves(catalog)}


def diff_keys(live_source: Catalog, previous_source: Catalog, target: Catalog) -> CatalogDiff:
    """
    Classify every leaf of the snapshot triple.

    - Deleted: in ``previous_source``, gone from ``live_source``, still in
      ``target``.
    - New: in ``live_source`` but not in ``target``.
    - Modified: in both sources with a different value. This forces a
      retranslation even when ``target`` already holds a value.
    - Unchanged: everything else, including a live leaf that was never
      recorded in ``previous_source`` but already exists in ``target``.

    Args:
        live_source: The freshly fetched source catalog.
        previous_source: The source catalog as of the last synchronized run.
        target: The target-language catalog as currently stored.

    Returns:
        CatalogDiff: Deleted paths in ``previous_source`` walk order, and the
        paths and source strings to translate in ``live_source`` walk order.
    """
    live = _leaf_index(live_source)
    previous = _leaf_index(previous_source)
    target_leaves = _leaf_index(target)

    diff = CatalogDiff()
    for path in previous:
        if path not in live and path in target_leaves:
            diff.deleted.append(path)

    for path, value in live.items():
        is_new = path not in target_leaves
        is_modified = path in previous and previous[path] != value
        if is_new or is_modified:
            diff.to_translate_paths.append(path)
            diff.to_translate_values.append(value)

    return diff


def diff_source_changes(live_source: Catalog, previous_source: Catalog) -> SourceChanges:
    """
    Summarize how the source catalog changed since the previous run.

    Args:
        live_source: The freshly fetched source catalog.
        previous_source: The source catalog as of the last synchronized run.

    Returns:
        SourceChanges: Added, removed and modified leaf paths.
    """
    live = _leaf_index(live_source)
    previous = _leaf_index(previous_source)

    changes = SourceChanges()
    for path, value in live.items():
        if path not in previous:
            changes.added.append(path)
        elif previous[path] != value:
            changes.modified.append(path)
    changes.removed = [path for path in previous if path not in live]
    return changes
