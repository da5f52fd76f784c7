"""Versioned external representation of Hugrs and extensions.

This module contains:
- SerialHugr and the other pydantic models of the encoded form
- to_serial / from_serial: conversion between Hugr and SerialHugr
- to_json / from_json / to_dict / from_dict: text and plain-data codecs
- extension_to_serial / extension_from_serial: extension declarations
- hugr_json_schema: JSON schema of the encoded form
"""

from ._codec import (
    extension_from_serial,
    extension_to_serial,
    from_dict,
    from_json,
    from_serial,
    hugr_json_schema,
    to_dict,
    to_json,
    to_serial,
)
from ._models import SERIAL_VERSION, SerialEdge, SerialExtension, SerialHugr, SerialNode

__all__ = [
    "SERIAL_VERSION",
    "SerialEdge",
    "SerialExtension",
    "SerialHugr",
    "SerialNode",
    "extension_from_serial",
    "extension_to_serial",
    "from_dict",
    "from_json",
    "from_serial",
    "hugr_json_schema",
    "to_dict",
    "to_json",
    "to_serial",
]
