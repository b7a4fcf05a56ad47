"""
sfdc_adapter.schema.fields - Logical column to schema field resolution
======================================================================

Maps application column names ("first_name", "custom_field") onto the
field identifiers declared by a Salesforce schema type ("FirstName",
"Custom_Field__c").
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple
import threading

from sfdc_adapter.core.errors import FieldNotFound


def camelize(column: str) -> str:
    """
    Upper camel case a snake_case name.

    Examples
    --------
    >>> camelize("first_name")
    'FirstName'
    """
    return "".join(part[:1].upper() + part[1:] for part in column.split("_"))


def candidate_names(column: str) -> List[str]:
    """Naming-convention forms tried for a logical column, in order."""
    return [column, camelize(column), f"{column}__c".lower()]


class FieldResolver:
    """
    Resolve logical column names against a schema type's declared fields.

    Each type's field list is fetched once from `fields_source` and turned
    into a case-insensitive lookup table. When several candidate forms
    exist on the type, the field declared first wins.

    Parameters
    ----------
    fields_source : callable
        Returns the declared field names of a type, in declaration order
        (inherited fields excluded)

    Examples
    --------
    >>> resolver = FieldResolver(lambda t: ["FirstName", "Custom_Field__c"])
    >>> resolver.resolve("Contact", "first_name")
    'FirstName'
    >>> resolver.resolve("Contact", "custom_field")
    'Custom_Field__c'
    """

    def __init__(self, fields_source: Callable[[str], List[str]]) -> None:
        self.fields_source = fields_source
        self._tables: Dict[str, Dict[str, Tuple[int, str]]] = {}
        self._lock = threading.Lock()

    def _table(self, type_name: str) -> Dict[str, Tuple[int, str]]:
        table = self._tables.get(type_name)
        if table is not None:
            return table

        with self._lock:
            if type_name not in self._tables:
                table = {}
                for index, name in enumerate(self.fields_source(type_name)):
                    table.setdefault(name.lower(), (index, name))
                self._tables[type_name] = table
            return self._tables[type_name]

    def invalidate(self, type_name: Optional[str] = None) -> None:
        """Drop the cached table for one type, or for all types."""
        with self._lock:
            if type_name is None:
                self._tables.clear()
            else:
                self._tables.pop(type_name, None)

    def fields(self, type_name: str) -> List[str]:
        """Declared field names of a type, in declaration order."""
        return [name for _, name in sorted(self._table(type_name).values())]

    def resolve(self, type_name: str, column: str) -> str:
        """
        Field identifier for `column` on `type_name`.

        Raises
        ------
        FieldNotFound
            If none of the candidate forms is declared on the type
        """
        table = self._table(type_name)
        candidates = candidate_names(str(column))
        matches = [table[c.lower()] for c in candidates if c.lower() in table]
        if matches:
            return min(matches)[1]

        raise FieldNotFound(
            f"You specified {column} as a field, but neither "
            f"{' or '.join(candidates)} exist on {type_name}. "
            "Either specify the field name explicitly, or check that the "
            "field name is correct.",
            column=str(column),
            candidates=candidates,
        )
