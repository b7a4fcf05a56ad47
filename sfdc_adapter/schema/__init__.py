"""
sfdc_adapter.schema - Field resolution and request objects
==========================================================

- FieldResolver: logical column name -> schema field identifier
- ObjectBuilder: builds RemoteObjectSpecs, tracking fields to null

"""

from sfdc_adapter.schema.fields import FieldResolver, camelize, candidate_names
from sfdc_adapter.schema.builder import ObjectBuilder, RemoteObjectSpec

__all__ = [
    "FieldResolver",
    "ObjectBuilder",
    "RemoteObjectSpec",
    "camelize",
    "candidate_names",
]
