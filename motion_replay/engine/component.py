from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from motion_replay.engine.stage import Stage
from motion_replay.errors import ComponentNotFoundError


C = TypeVar('C', bound='Component')

_RESERVED_CHARS = ('/', '|')


class OutputType(Enum):
    """Value tags for outputs; type checks compare tags."""

    DOUBLE = 'double'
    VEC3 = 'Vec3'
    ROTATION = 'Rotation'

    @property
    def value_shape(self) -> tuple[int, ...]:
        return _VALUE_SHAPES[self]

    @classmethod
    def parse(cls, s: str) -> OutputType:
        key = str(s).strip().lower()
        for t in cls:
            if t.value.lower() == key or t.name.lower() == key:
                return t
        raise ValueError(f"Unknown output type '{s}'. Use one of: {[t.value for t in cls]}")


_VALUE_SHAPES = {
    OutputType.DOUBLE: (),
    OutputType.VEC3: (3,),
    OutputType.ROTATION: (3, 3),
}


@dataclass(eq=False)
class Output:
    owner: Component
    name: str
    value_type: OutputType
    depends_on: Stage
    getter: str

    @property
    def path(self) -> str:
        return f'{self.owner.absolute_path}|{self.name}'

    @property
    def type_name(self) -> str:
        return self.value_type.value

    def get_value(self, state) -> Any:
        state.require(self.depends_on, f'Output {self.path}')
        return getattr(self.owner, self.getter)(state)


@dataclass(eq=False)
class StateVariable:
    owner: Component
    name: str
    kind: str  # 'q', 'u' or 'z'
    default: float = 0.0
    slot: int = -1

    @property
    def path(self) -> str:
        return f'{self.owner.absolute_path}/{self.name}'


@dataclass(eq=False)
class DiscreteVariable:
    owner: Component
    name: str
    default: float = math.nan
    invalidates: Stage = Stage.DYNAMICS

    @property
    def key(self) -> str:
        return f'{self.owner.absolute_path}/{self.name}'


def _check_name(name: str) -> str:
    name = str(name).strip()
    if not name:
        raise ValueError('Component names must be non-empty.')
    for ch in _RESERVED_CHARS:
        if ch in name:
            raise ValueError(f"Component name {name!r} must not contain '{ch}'.")
    return name


class Component:
    """Node of the model tree: owns subcomponents, outputs, state and discrete variables."""

    def __init__(self, name: str) -> None:
        self.name = _check_name(name)
        self.owner: Component | None = None
        self._subcomponents: list[Component] = []
        self._outputs: dict[str, Output] = {}
        self._state_variables: list[StateVariable] = []
        self._discrete_variables: dict[str, DiscreteVariable] = {}

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.absolute_path!r})'

    # --- tree ---

    def add_subcomponent(self, comp: C) -> C:
        if comp.owner is not None:
            raise ValueError(f'{comp.name!r} already belongs to {comp.owner.absolute_path}.')
        if any(c.name == comp.name for c in self._subcomponents):
            raise ValueError(f'{self.absolute_path} already has a subcomponent named {comp.name!r}.')
        comp.owner = self
        self._subcomponents.append(comp)
        return comp

    def remove_subcomponent(self, comp: Component) -> None:
        self._subcomponents.remove(comp)
        comp.owner = None

    @property
    def subcomponents(self) -> list[Component]:
        return list(self._subcomponents)

    def root(self) -> Component:
        node = self
        while node.owner is not None:
            node = node.owner
        return node

    @property
    def absolute_path(self) -> str:
        if self.owner is None:
            return '/'
        parts = []
        node: Component | None = self
        while node is not None and node.owner is not None:
            parts.append(node.name)
            node = node.owner
        return '/' + '/'.join(reversed(parts))

    def component_list(self, cls: type[C] | None = None) -> Iterator[C]:
        """Depth-first, pre-order walk of all descendants (self excluded)."""
        for sub in self._subcomponents:
            if cls is None or isinstance(sub, cls):
                yield sub
            yield from sub.component_list(cls)

    def find_component(self, path: str) -> Component:
        """Resolve an absolute ('/a/b') or relative ('a/b') path."""
        p = str(path).strip()
        node: Component = self.root() if p.startswith('/') else self
        for part in [s for s in p.split('/') if s]:
            if part == '..':
                if node.owner is None:
                    raise ComponentNotFoundError(f'Path {path!r} walks above the model root.')
                node = node.owner
                continue
            match = next((c for c in node._subcomponents if c.name == part), None)
            if match is None:
                raise ComponentNotFoundError(f'No component at path {path!r} (missing {part!r}).')
            node = match
        return node

    # --- outputs ---

    def _declare_output(self, name: str, value_type: OutputType, depends_on: Stage, getter: str) -> None:
        self._outputs[name] = Output(self, name, value_type, depends_on, getter)

    def output_names(self) -> list[str]:
        return list(self._outputs)

    def get_output(self, name: str) -> Output:
        if name not in self._outputs:
            raise KeyError(f'{self.absolute_path} has no output named {name!r}.')
        return self._outputs[name]

    # --- state variables ---

    def _declare_state_variable(self, name: str, kind: str, default: float = 0.0) -> StateVariable:
        if kind not in ('q', 'u', 'z'):
            raise ValueError(f"State variable kind must be 'q', 'u' or 'z', got {kind!r}.")
        sv = StateVariable(self, _check_name(name), kind, float(default))
        self._state_variables.append(sv)
        return sv

    @property
    def state_variables(self) -> list[StateVariable]:
        return list(self._state_variables)

    # --- discrete variables ---

    def _declare_discrete_variable(
        self, name: str, default: float = math.nan, invalidates: Stage = Stage.DYNAMICS
    ) -> None:
        self._discrete_variables[name] = DiscreteVariable(self, _check_name(name), float(default), invalidates)

    def discrete_variable_names(self) -> list[str]:
        return list(self._discrete_variables)

    def _discrete_variable(self, name: str) -> DiscreteVariable:
        if name not in self._discrete_variables:
            raise KeyError(f'{self.absolute_path} has no discrete variable named {name!r}.')
        return self._discrete_variables[name]

    def get_discrete_variable_value(self, state, name: str) -> float:
        return state.discrete_value(self._discrete_variable(name).key)

    def set_discrete_variable_value(self, state, name: str, value: float) -> None:
        dv = self._discrete_variable(name)
        state.set_discrete_value(dv.key, value, dv.invalidates)

    # --- hooks ---

    def _finalize(self, model) -> None:
        """Called by Model.init_system() before slots are assigned."""

    def _realize_report(self, state) -> None:
        """Called once per Report realization, in tree order."""


class ComponentSet(Component):
    """Named container (bodyset, jointset, forceset, ...)."""

    def add(self, comp: C) -> C:
        return self.add_subcomponent(comp)

    def __iter__(self) -> Iterator[Component]:
        return iter(self._subcomponents)

    def __len__(self) -> int:
        return len(self._subcomponents)
