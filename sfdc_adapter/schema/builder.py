"""
sfdc_adapter.schema.builder - Request object construction
=========================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sfdc_adapter.schema.fields import FieldResolver


@dataclass(frozen=True)
class RemoteObjectSpec:
    """
    A schema object ready to be sent in a create/update call.

    Attributes
    ----------
    type_name : str
        Schema type, e.g. "Account"
    fields : mapping
        Field identifier -> value, in assignment order
    fields_to_null : tuple of str
        Field identifiers the service should clear
    id : str, optional
        Record id for updates, sent as-is without field resolution
    """
    type_name: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    fields_to_null: Tuple[str, ...] = ()
    id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "fields_to_null", tuple(self.fields_to_null))


def _is_null(value: Any) -> bool:
    return value is None or value == ""


class ObjectBuilder:
    """
    Build RemoteObjectSpecs from logical column -> value mappings.

    Null and empty-string values are sent as explicit nulls rather than
    omitted, so updates clear the field on the service side.

    Examples
    --------
    >>> builder = ObjectBuilder(resolver)
    >>> spec = builder.build("Account", {"name": "Acme", "fax": ""})
    >>> dict(spec.fields), spec.fields_to_null
    ({'Name': 'Acme'}, ('Fax',))
    """

    def __init__(self, resolver: FieldResolver) -> None:
        self.resolver = resolver

    def build(
        self,
        type_name: str,
        values: Mapping[str, Any],
        id: Optional[str] = None,
    ) -> RemoteObjectSpec:
        assigned: Dict[str, Any] = {}
        nulled: List[str] = []
        for column, value in values.items():
            name = self.resolver.resolve(type_name, column)
            if _is_null(value):
                if name not in nulled:
                    nulled.append(name)
            else:
                assigned[name] = value
        return RemoteObjectSpec(type_name, assigned, tuple(nulled), id)
