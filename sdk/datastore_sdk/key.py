"""
Keys for the datastore SDK.

A key names one entity by a path of (kind, name-or-id) elements, root
first, optionally scoped to a namespace. Keys are immutable and hashable
so they can be compared against keys returned by the store.

Example:
    >>> parent = Key("TaskList", name="default")
    >>> task = Key("Task", id=42, parent=parent)
    >>> task.is_complete()
    True
    >>> Key("Task", parent=parent).is_complete()
    False

Invariants:
    - A key is complete iff its last element has a non-empty name or a non-zero id
    - Incomplete keys are only accepted by inserts and id allocation
    - key_to_proto / proto_to_key round-trip every well-formed key
    - Every element of a path shares one namespace, normalized on construction
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from . import _generated as pb
from .errors import DecodeError


@dataclass(frozen=True)
class Key:
    """Identifier of a stored entity.

    Attributes:
        kind: Entity kind of the last path element
        name: String identifier (empty when id is used)
        id: Numeric identifier (zero when name is used)
        parent: Key of the parent entity, if any
        namespace: Namespace the key belongs to
    """

    kind: str
    name: str = ""
    id: int = 0
    parent: Key | None = None
    namespace: str = ""

    def __post_init__(self) -> None:
        # A child without a namespace lives in its parent's; otherwise the
        # child's namespace is pushed up the whole parent chain.
        if self.parent is None or self.parent.namespace == self.namespace:
            return
        if not self.namespace:
            object.__setattr__(self, "namespace", self.parent.namespace)
        else:
            object.__setattr__(self, "parent", replace(self.parent, namespace=self.namespace))

    def is_complete(self) -> bool:
        """True if the store can address this key without assigning an id."""
        return bool(self.name) or self.id != 0

    def path(self) -> list[Key]:
        """Return the chain of keys from the root down to this key."""
        chain: list[Key] = []
        key: Key | None = self
        while key is not None:
            chain.append(key)
            key = key.parent
        chain.reverse()
        return chain

    def __str__(self) -> str:
        parts = []
        for element in self.path():
            ident = element.name or (str(element.id) if element.id else "<incomplete>")
            parts.append(f"{element.kind},{ident}")
        prefix = f"{self.namespace}:" if self.namespace else ""
        return prefix + "/" + "/".join(parts)


def key_to_proto(key: Key) -> pb.Key:
    """Encode a key as its wire message, root element first."""
    proto = pb.Key()
    if key.namespace:
        proto.partition_id.namespace = key.namespace
    for element in key.path():
        path_element = proto.path_element.add(kind=element.kind)
        if element.name:
            path_element.name = element.name
        elif element.id:
            path_element.id = element.id
    return proto


def proto_to_key(proto: pb.Key) -> Key:
    """Decode a wire key.

    Raises:
        DecodeError: If the wire key has no path elements
    """
    if len(proto.path_element) == 0:
        raise DecodeError("key has no path elements")

    namespace = proto.partition_id.namespace
    root, *rest = proto.path_element
    key = Key(kind=root.kind, name=root.name, id=root.id, namespace=namespace)
    for element in rest:
        key = Key(
            kind=element.kind,
            name=element.name,
            id=element.id,
            parent=key,
            namespace=namespace,
        )
    return key
