"""Spec tree built by the declaration API."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from specrunner.errors import SpecBuildError

# (done, timeout) -> None | awaitable; definers may accept fewer arguments.
Definer = Callable[..., Union[None, Awaitable[Any]]]

HOOK_KINDS = ("before", "after", "before_each", "after_each")


@dataclass(eq=False)
class TestCase:
    """A named test registered under a spec."""

    __test__ = False

    name: str
    parent: "SpecNode" = field(repr=False)
    definer: Definer
    only: bool = False

    @property
    def context(self) -> str:
        return join_context(self.parent.path, self.name)


@dataclass(eq=False)
class SpecNode:
    """A named group of tests, nested specs and hooks."""

    name: str
    parent: Optional["SpecNode"] = field(default=None, repr=False)
    children: list[Union["SpecNode", TestCase]] = field(default_factory=list)
    hooks: dict[str, Definer] = field(default_factory=dict)
    spec_timeout: Optional[float] = None

    @property
    def path(self) -> str:
        if self.parent is None:
            return self.name
        return join_context(self.parent.path, self.name)

    @property
    def ancestry(self) -> list["SpecNode"]:
        """This node and its ancestors, root first."""
        chain: list[SpecNode] = []
        node: Optional[SpecNode] = self
        while node is not None:
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    def add_spec(self, name: str) -> "SpecNode":
        child = SpecNode(name=name, parent=self)
        self.children.append(child)
        return child

    def add_test(self, name: str, definer: Definer, only: bool = False) -> TestCase:
        _require_definer(definer, f"test '{name}'")
        test = TestCase(name=name, parent=self, definer=definer, only=only)
        self.children.append(test)
        return test

    def set_hook(self, kind: str, definer: Definer) -> None:
        if kind not in HOOK_KINDS:
            raise SpecBuildError(f"Unknown hook kind: {kind}")
        _require_definer(definer, f"{kind} hook")
        if kind in self.hooks:
            where = self.path or "the top level"
            raise SpecBuildError(f"A {kind} hook is already registered for {where}")
        self.hooks[kind] = definer

    def hook(self, kind: str) -> Optional[Definer]:
        return self.hooks.get(kind)

    def effective_timeout(self, default: float) -> float:
        """Nearest ``spec_timeout`` on this node or an ancestor, else ``default``."""
        node: Optional[SpecNode] = self
        while node is not None:
            if node.spec_timeout is not None:
                return node.spec_timeout
            node = node.parent
        return default

    def has_only(self) -> bool:
        """Whether any descendant test is marked ``only``."""
        for child in self.children:
            if isinstance(child, TestCase):
                if child.only:
                    return True
            elif child.has_only():
                return True
        return False

    def selected_children(self, exclusive: bool) -> list[Union["SpecNode", TestCase]]:
        """Children that will run, in declaration order."""
        selected: list[Union[SpecNode, TestCase]] = []
        for child in self.children:
            if isinstance(child, TestCase):
                if child.only or not exclusive:
                    selected.append(child)
            elif child.has_runnable(exclusive):
                selected.append(child)
        return selected

    def has_runnable(self, exclusive: bool) -> bool:
        return bool(self.selected_children(exclusive))

    def count_tests(self) -> int:
        return sum(
            1 if isinstance(child, TestCase) else child.count_tests() for child in self.children
        )


def join_context(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def _require_definer(definer: Any, what: str) -> None:
    if not callable(definer):
        raise SpecBuildError(f"The body of {what} must be callable, got {type(definer).__name__}")
