from typing import Any, Dict, Iterator, NamedTuple, Optional, Tuple

Catalog = Dict[str, Any]
CatalogPath = Tuple[str, ...]


class Leaf(NamedTuple):
    path: CatalogPath
    value: str


def walk_leaves(catalog: Optional[Catalog], prefix: CatalogPath = ()) -> Iterator[Leaf]:
    """
    Yield every string leaf of a catalog in a deterministic order.

    Keys are visited in code-point order at every level, depth first.
    Values that are neither strings nor objects (numbers, lists, None) are
    skipped.

    Args:
        catalog: The nested catalog to walk. None is treated as empty.
        prefix: Path of ``catalog`` inside the document being walked.

    Yields:
        Leaf: The path and string value of each leaf.
    """
    for key in sorted(catalog or {}):
        value = catalog[key]
        path = prefix + (key,)
        if isinstance(value, dict):
            yield from walk_leaves(value, path)
        elif isinstance(value, str):
            yield Leaf(path, value)


def get_at_path(catalog: Catalog, path: CatalogPath) -> Any:
    """Return the value stored at ``path``, or None if it does not resolve."""
    current: Any = catalog
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def set_at_path(catalog: Catalog, path: CatalogPath, value: str) -> None:
    """
    Assign ``value`` at ``path``, creating intermediate objects as needed.

    An intermediate value that is not an object is replaced by an empty one.

    Args:
        catalog: The catalog to modify in place.
        path: Non-empty path of the leaf to set.
        value: The string to store.
    """
    if not path:
        raise ValueError("Cannot set a value at an empty path.")
    current = catalog
    for key in path[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[path[-1]] = value


def delete_at_path(catalog: Catalog, path: CatalogPath) -> None:
    """
    Remove the leaf at ``path`` and prune ancestors left empty by the removal.

    Nothing happens if an intermediate segment does not resolve to an
    object. Pruning stops at the first non-empty ancestor; the root itself
    is never removed.

    Args:
        catalog: The catalog to modify in place.
        path: Path of the leaf to remove.
    """
    if not path:
        return
    containers = [catalog]
    for key in path[:-1]:
        child = containers[-1].get(key)
        if not isinstance(child, dict):
            return
        containers.append(child)

    containers[-1].pop(path[-1], None)

    # containers[i] is the object stored at path[:i]
    for depth in range(len(containers) - 1, 0, -1):
        if containers[depth]:
            break
        del containers[depth - 1][path[depth - 1]]
