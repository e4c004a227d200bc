"""Resource entity - node of the class/instance tree."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Resource:
    """Class (has subclasses and instances) or instance (leaf)."""

    uri: str
    is_class: bool = False
    label: str | None = None
    parent_uri: str | None = None
