"""Capability interfaces consumed by the verification components.

Each protocol covers one concern (read, write, watch) for one data shape,
so the core never depends on a concrete cluster client.

Submodules
----------
kubernetes -- kubernetes-asyncio adapters for Service, Endpoints and Event.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Protocol, TypeVar

T_co = TypeVar("T_co", covariant=True)
T = TypeVar("T")


class ResourceReader(Protocol[T_co]):
    """Reads one object by name."""

    async def get(self, name: str, namespace: str) -> T_co: ...


class ResourceWriter(Protocol[T]):
    """Creates, replaces and deletes objects."""

    async def create(self, obj: T) -> T: ...

    async def update(self, obj: T) -> T: ...

    async def delete(self, name: str, namespace: str) -> None: ...


class EventStream(Protocol[T_co]):
    """Watches and clears events about objects of one kind."""

    def watch(self, namespace: str, involved_kind: str) -> AsyncGenerator[T_co, None]: ...

    async def delete_collection(self, namespace: str, involved_kind: str) -> None: ...


__all__ = ["EventStream", "ResourceReader", "ResourceWriter"]
