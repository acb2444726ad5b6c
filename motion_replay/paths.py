from __future__ import annotations

from dataclasses import dataclass

from motion_replay.errors import DiscreteVariableLabelError

SEPARATOR = '/'


@dataclass(frozen=True)
class ComponentPath:
    """
    Split a label of the form

      <path_to_component>/<name>

    into the owning component path and the trailing name, e.g.
    "/forceset/soleus/override_actuation" -> ("/forceset/soleus", "override_actuation").
    """

    parent: str
    name: str

    @classmethod
    def parse(cls, label: str) -> ComponentPath:
        s = str(label).strip()
        if s.endswith(SEPARATOR):
            raise DiscreteVariableLabelError(f'Label {label!r} ends with {SEPARATOR!r}; no variable name.')
        head, sep, name = s.rpartition(SEPARATOR)
        if not sep or not name:
            raise DiscreteVariableLabelError(
                f'Label {label!r} must look like <path_to_component>{SEPARATOR}<name>.'
            )
        if not head.strip(SEPARATOR):
            raise DiscreteVariableLabelError(f'Label {label!r} has no component path before {name!r}.')
        return cls(parent=head, name=name)

    def __str__(self) -> str:
        return f'{self.parent}{SEPARATOR}{self.name}'
