"""Role permission hierarchy.

The tree is stored as an arena: nodes are looked up by id and refer to their
children by id. A selection is a frozenset of leaf ids; a group's check state
is always derived from its leaves, never stored.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum


class CheckState(str, Enum):
    CHECKED = 'checked'
    INDETERMINATE = 'indeterminate'
    UNCHECKED = 'unchecked'


@dataclass(frozen=True)
class PermissionNode:
    id: str
    label: str
    parent_id: str | None = None
    children: tuple[str, ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class TreeRow:
    node: PermissionNode
    depth: int
    state: CheckState
    expanded: bool


# (id, label, children) where children is a tuple of the same shape
PermissionSpec = tuple


def _crud(prefix: str) -> tuple[PermissionSpec, ...]:
    return (
        (f'{prefix}_Read', 'Read', ()),
        (f'{prefix}_Create', 'Create', ()),
        (f'{prefix}_Update', 'Update', ()),
        (f'{prefix}_Disable', 'Disable', ()),
    )


def _workflow(prefix: str) -> tuple[PermissionSpec, ...]:
    return (
        (f'{prefix}_Read', 'Read', ()),
        (f'{prefix}_Create', 'Create', ()),
        (f'{prefix}_Update', 'Update', ()),
        (f'{prefix}_RequestUpdates', 'Request updates', ()),
        (f'{prefix}_ApproveUpdates', 'Approve updates', ()),
    )


DEFAULT_PERMISSIONS: tuple[PermissionSpec, ...] = (
    (
        'Basedata',
        'Base data',
        (
            ('Vendors', 'Vendors', _crud('Vendors')),
            ('Items', 'Items', _crud('Items')),
            ('Warehouses', 'Warehouses', _crud('Warehouses')),
            ('Locations', 'Locations', _crud('Locations')),
        ),
    ),
    ('Procurement', 'Procurement', _workflow('Procurement')),
    ('Receiving', 'Receiving', _workflow('Receiving')),
    ('QA', 'QA', (('QA_Read', 'Read', ()), ('QA_Create', 'Create', ()))),
    ('Users', 'Users', _crud('Users')),
    ('Roles', 'Roles', _crud('Roles')),
)


class PermissionTree:
    def __init__(self, spec: Iterable[PermissionSpec] = DEFAULT_PERMISSIONS) -> None:
        self.nodes: dict[str, PermissionNode] = {}
        self.roots: tuple[str, ...] = tuple(self._add(item, None) for item in spec)
        # every node starts expanded
        self.expanded: frozenset[str] = frozenset(self.nodes)

    def _add(self, item: PermissionSpec, parent_id: str | None) -> str:
        node_id, label, children = item
        if node_id in self.nodes:
            raise ValueError(f'Duplicate permission id: {node_id}')
        child_ids = tuple(child[0] for child in children)
        self.nodes[node_id] = PermissionNode(id=node_id, label=label, parent_id=parent_id, children=child_ids)
        for child in children:
            self._add(child, node_id)
        return node_id

    def node(self, node_id: str) -> PermissionNode:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise KeyError(f'Unknown permission: {node_id}') from None

    def leaf_ids(self, node_id: str) -> frozenset[str]:
        node = self.node(node_id)
        if node.is_leaf:
            return frozenset({node.id})
        leaves: set[str] = set()
        for child_id in node.children:
            leaves |= self.leaf_ids(child_id)
        return frozenset(leaves)

    def all_leaf_ids(self) -> frozenset[str]:
        return frozenset(node_id for node_id, node in self.nodes.items() if node.is_leaf)

    def normalize(self, permissions: Iterable[str]) -> frozenset[str]:
        """Reduce a stored permission list to known leaf ids."""
        leaves = self.all_leaf_ids()
        return frozenset(permission for permission in permissions if permission in leaves)

    def check_state(self, node_id: str, selection: frozenset[str]) -> CheckState:
        leaves = self.leaf_ids(node_id)
        if leaves <= selection:
            return CheckState.CHECKED
        if leaves & selection:
            return CheckState.INDETERMINATE
        return CheckState.UNCHECKED

    def toggle(self, node_id: str, selection: frozenset[str]) -> frozenset[str]:
        leaves = self.leaf_ids(node_id)
        if leaves <= selection:
            return frozenset(selection - leaves)
        return frozenset(selection | leaves)

    def toggle_expanded(self, node_id: str) -> None:
        self.node(node_id)
        if node_id in self.expanded:
            self.expanded = self.expanded - {node_id}
        else:
            self.expanded = self.expanded | {node_id}

    def with_groups(self, selection: frozenset[str]) -> list[str]:
        """Selection plus every fully-checked group id, in tree order."""
        return [
            node_id
            for node_id in self._walk_ids(self.roots)
            if self.check_state(node_id, selection) == CheckState.CHECKED
        ]

    def _walk_ids(self, node_ids: Iterable[str]) -> Iterator[str]:
        for node_id in node_ids:
            yield node_id
            yield from self._walk_ids(self.node(node_id).children)

    def prune(self, selection: Iterable[str]) -> PermissionTree:
        """Read-only view keeping only branches that hold a selected leaf."""
        selected = frozenset(selection)

        def keep(node_id: str) -> PermissionSpec | None:
            node = self.node(node_id)
            if node.is_leaf:
                return (node.id, node.label, ()) if node.id in selected else None
            children = tuple(spec for spec in (keep(child_id) for child_id in node.children) if spec)
            if not children:
                return None
            return (node.id, node.label, children)

        return PermissionTree(spec for spec in (keep(root_id) for root_id in self.roots) if spec)

    def rows(self, selection: frozenset[str], expanded: frozenset[str] | None = None) -> list[TreeRow]:
        expanded = self.expanded if expanded is None else expanded
        flattened: list[TreeRow] = []

        def visit(node_id: str, depth: int) -> None:
            node = self.node(node_id)
            is_expanded = node_id in expanded
            flattened.append(TreeRow(node=node, depth=depth, state=self.check_state(node_id, selection), expanded=is_expanded))
            if is_expanded:
                for child_id in node.children:
                    visit(child_id, depth + 1)

        for root_id in self.roots:
            visit(root_id, 0)
        return flattened
