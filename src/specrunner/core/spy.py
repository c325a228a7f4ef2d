"""Call-recording function wrappers."""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional


@dataclass
class Call:
    """A single recorded invocation."""

    this: Any
    args: tuple
    kwargs: dict = field(default_factory=dict)


class Spy:
    """Records every call made to it and optionally delegates to ``fn``.

    Calls are recorded before ``fn`` runs, so the history is complete even
    when ``fn`` raises. Stored as a class attribute, a spy binds like a method
    and records the instance as ``this``.
    """

    def __init__(self, fn: Optional[Callable[..., Any]] = None):
        self.fn = fn
        self.calls: list[Call] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def args(self) -> tuple:
        """Positional arguments of the most recent call."""
        return self.calls[-1].args if self.calls else ()

    @property
    def kwargs(self) -> dict:
        return self.calls[-1].kwargs if self.calls else {}

    @property
    def this(self) -> Any:
        return self.calls[-1].this if self.calls else None

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._invoke(None, args, kwargs)

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return _BoundSpy(self, instance)

    def _invoke(self, this: Any, args: tuple, kwargs: dict) -> Any:
        self.calls.append(Call(this=this, args=args, kwargs=dict(kwargs)))
        if self.fn is None:
            return None
        if this is None:
            return self.fn(*args, **kwargs)
        return self.fn(this, *args, **kwargs)

    def __repr__(self) -> str:
        name = getattr(self.fn, "__name__", None) or "anonymous"
        return f"<Spy {name} calls={self.call_count}>"


class _BoundSpy:
    """A spy accessed through an instance."""

    def __init__(self, spy: Spy, instance: Any):
        self._spy = spy
        self._instance = instance

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._spy._invoke(self._instance, args, kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._spy, name)
