#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Type hints used internally by this package. Intended to be star-imported.
"""

from __future__ import annotations

from typing import (
    Any,
    AsyncContextManager,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
    TypeVar,
    Union,
  )

from types import TracebackType

from typing_extensions import Self, TypeAlias

HostAndPort: TypeAlias = Tuple[str, int]
"""An (ipv4_address, port) tuple as used by the socket module."""

Jsonable: TypeAlias = Union[
    str, int, float, bool, None,
    List['Jsonable'],
    Dict[str, 'Jsonable'],
  ]
"""A value that can be serialized with json.dumps()."""

JsonableDict: TypeAlias = Dict[str, Jsonable]
"""A JSON object."""
