"""State store calls: save, get, query, delete and transactions."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Iterable, Mapping

from .utils import DaprClientError

__all__ = [
    "UNDEFINED_TYPE",
    "StateConsistency",
    "StateConcurrency",
    "OperationType",
    "ETag",
    "StateOptions",
    "StateItem",
    "BulkStateItem",
    "SetStateItem",
    "DeleteStateItem",
    "QueryItem",
    "QueryResponse",
    "StateOperation",
    "ProtoDuration",
    "ProtoStateOptions",
    "ProtoStateItem",
    "TransactionalStateOperation",
    "ExecuteStateTransactionRequest",
    "SaveStateRequest",
    "GetBulkStateRequest",
    "GetStateRequest",
    "QueryStateRequest",
    "DeleteStateRequest",
    "DeleteBulkStateRequest",
    "StateMixin",
    "with_concurrency",
    "with_consistency",
    "to_proto_state_options",
    "to_proto_save_state_item",
    "to_proto_duration",
]

UNDEFINED_TYPE = "undefined"

_NANOS_PER_SECOND = 1_000_000_000


class StateConsistency(IntEnum):
    """Consistency level of a state operation."""

    UNDEFINED = 0
    EVENTUAL = 1
    STRONG = 2

    @classmethod
    def _missing_(cls, value: object) -> "StateConsistency":
        return cls.UNDEFINED

    def __str__(self) -> str:
        return {
            StateConsistency.EVENTUAL: "eventual",
            StateConsistency.STRONG: "strong",
        }.get(self, UNDEFINED_TYPE)


class StateConcurrency(IntEnum):
    """Concurrency mode of a state operation."""

    UNDEFINED = 0
    FIRST_WRITE = 1
    LAST_WRITE = 2

    @classmethod
    def _missing_(cls, value: object) -> "StateConcurrency":
        return cls.UNDEFINED

    def __str__(self) -> str:
        return {
            StateConcurrency.FIRST_WRITE: "first-write",
            StateConcurrency.LAST_WRITE: "last-write",
        }.get(self, UNDEFINED_TYPE)


class OperationType(IntEnum):
    """Kind of operation inside a state transaction."""

    UNDEFINED = 0
    UPSERT = 1
    DELETE = 2

    @classmethod
    def _missing_(cls, value: object) -> "OperationType":
        return cls.UNDEFINED

    def __str__(self) -> str:
        return {
            OperationType.UPSERT: "upsert",
            OperationType.DELETE: "delete",
        }.get(self, UNDEFINED_TYPE)


@dataclass
class ETag:
    """Version of a stored record."""

    value: str


@dataclass
class StateOptions:
    """Persistence policy for a state operation."""

    concurrency: StateConcurrency = StateConcurrency.UNDEFINED
    consistency: StateConsistency = StateConsistency.UNDEFINED


StateOption = Callable[[StateOptions], None]


@dataclass
class StateItem:
    """A single stored value."""

    key: str
    value: bytes | None = None
    etag: str = ""
    metadata: Mapping[str, str] | None = None


@dataclass
class BulkStateItem:
    """A value returned by a bulk read, with any per-key error."""

    key: str
    value: bytes | None = None
    etag: str = ""
    metadata: Mapping[str, str] | None = None
    error: str = ""


@dataclass
class SetStateItem:
    """A value to persist."""

    key: str
    value: bytes | None = None
    etag: ETag | None = None
    metadata: Mapping[str, str] | None = None
    options: StateOptions | None = None


@dataclass
class DeleteStateItem(SetStateItem):
    """A value to delete; only key, etag, metadata and options are used."""


@dataclass
class QueryItem:
    """One result of a state query."""

    key: str
    value: bytes | None = None
    etag: str = ""
    error: str = ""


@dataclass
class QueryResponse:
    """Results of a state query with its paging token."""

    results: list[QueryItem] = field(default_factory=list)
    token: str = ""
    metadata: Mapping[str, str] | None = None


@dataclass
class StateOperation:
    """One operation inside a state transaction."""

    type: OperationType
    item: SetStateItem


@dataclass
class ProtoDuration:
    """A duration split into whole seconds and remaining nanoseconds."""

    seconds: int = 0
    nanos: int = 0


@dataclass
class ProtoStateOptions:
    """State options as sent to the runtime."""

    concurrency: StateConcurrency = StateConcurrency.UNDEFINED
    consistency: StateConsistency = StateConsistency.UNDEFINED


@dataclass
class ProtoStateItem:
    """A state item as sent to the runtime."""

    key: str
    value: bytes | None = None
    etag: ETag | None = None
    metadata: Mapping[str, str] | None = None
    options: ProtoStateOptions | None = None


@dataclass
class TransactionalStateOperation:
    """A transaction operation as sent to the runtime."""

    operation_type: str
    request: ProtoStateItem


@dataclass
class ExecuteStateTransactionRequest:
    """Request to run several state operations atomically."""

    store_name: str
    operations: list[TransactionalStateOperation]
    metadata: Mapping[str, str] | None = None


@dataclass
class SaveStateRequest:
    """Request to persist state items."""

    store_name: str
    states: list[ProtoStateItem] = field(default_factory=list)


@dataclass
class GetBulkStateRequest:
    """Request for several keys at once."""

    store_name: str
    keys: list[str]
    metadata: Mapping[str, str] | None = None
    parallelism: int = 0


@dataclass
class GetStateRequest:
    """Request for one key."""

    store_name: str
    key: str
    consistency: StateConsistency = StateConsistency.UNDEFINED
    metadata: Mapping[str, str] | None = None


@dataclass
class QueryStateRequest:
    """Request to run a query against a state store."""

    store_name: str
    query: str
    metadata: Mapping[str, str] | None = None


@dataclass
class DeleteStateRequest:
    """Request to delete one key."""

    store_name: str
    key: str
    etag: ETag | None = None
    options: ProtoStateOptions | None = None
    metadata: Mapping[str, str] | None = None


@dataclass
class DeleteBulkStateRequest:
    """Request to delete several items."""

    store_name: str
    states: list[ProtoStateItem] = field(default_factory=list)


_DEFAULT_CONCURRENCY = StateConcurrency.LAST_WRITE
_DEFAULT_CONSISTENCY = StateConsistency.STRONG


def with_concurrency(concurrency: StateConcurrency) -> StateOption:
    """Option that sets the concurrency mode."""

    def apply(options: StateOptions) -> None:
        options.concurrency = concurrency

    return apply


def with_consistency(consistency: StateConsistency) -> StateOption:
    """Option that sets the consistency level."""

    def apply(options: StateOptions) -> None:
        options.consistency = consistency

    return apply


def _default_options() -> StateOptions:
    return StateOptions(concurrency=_DEFAULT_CONCURRENCY, consistency=_DEFAULT_CONSISTENCY)


def to_proto_state_options(options: StateOptions | None) -> ProtoStateOptions:
    """Convert options; None yields last-write concurrency and strong consistency."""
    if options is None:
        return ProtoStateOptions(
            concurrency=_DEFAULT_CONCURRENCY, consistency=_DEFAULT_CONSISTENCY
        )
    return ProtoStateOptions(
        concurrency=StateConcurrency(options.concurrency),
        consistency=StateConsistency(options.consistency),
    )


def to_proto_save_state_item(item: SetStateItem) -> ProtoStateItem:
    """Convert an item to its outgoing form."""
    return ProtoStateItem(
        key=item.key,
        value=item.value,
        etag=ETag(item.etag.value) if item.etag is not None else None,
        metadata=item.metadata,
        options=to_proto_state_options(item.options),
    )


def to_proto_duration(duration: datetime.timedelta) -> ProtoDuration:
    """Split a duration into seconds and nanoseconds, truncating toward zero."""
    total_micros = (duration.days * 86_400 + duration.seconds) * 1_000_000 + duration.microseconds
    nanos = total_micros * 1000
    sign = -1 if nanos < 0 else 1
    seconds = sign * (abs(nanos) // _NANOS_PER_SECOND)
    return ProtoDuration(seconds=seconds, nanos=nanos - seconds * _NANOS_PER_SECOND)


def _check_state_args(store_name: str, key: str) -> None:
    if not store_name:
        raise DaprClientError("missing required arguments: store")
    if not key:
        raise DaprClientError("missing required arguments: key")


class StateMixin:
    """State calls; expects a ``runtime`` attribute."""

    runtime: Any

    def execute_state_transaction(
        self,
        store_name: str,
        metadata: Mapping[str, str] | None,
        operations: Iterable[StateOperation] | None,
    ) -> None:
        """Run several upserts and deletes on a store in one transaction."""
        if not store_name:
            raise DaprClientError("nil storeName")
        outgoing = [
            TransactionalStateOperation(
                operation_type=str(OperationType(op.type)),
                request=to_proto_save_state_item(op.item),
            )
            for op in operations or ()
        ]
        if not outgoing:
            return
        request = ExecuteStateTransactionRequest(
            store_name=store_name, operations=outgoing, metadata=metadata
        )
        try:
            self.runtime.execute_state_transaction(request)
        except Exception as exc:
            raise DaprClientError(f"error executing state transaction: {exc}") from exc

    def save_state(
        self,
        store_name: str,
        key: str,
        data: bytes | None,
        metadata: Mapping[str, str] | None = None,
        *options: StateOption,
    ) -> None:
        """Save raw data; without options, strong consistency and last-write."""
        self.save_state_with_etag(store_name, key, data, "", metadata, *options)

    def save_state_with_etag(
        self,
        store_name: str,
        key: str,
        data: bytes | None,
        etag: str,
        metadata: Mapping[str, str] | None = None,
        *options: StateOption,
    ) -> None:
        """Save raw data with an etag and the given options."""
        if options:
            state_options = StateOptions()
            for option in options:
                option(state_options)
        else:
            state_options = _default_options()
        item = SetStateItem(
            key=key,
            value=data,
            metadata=metadata,
            options=state_options,
            etag=ETag(etag) if etag else None,
        )
        self.save_bulk_state(store_name, item)

    def save_bulk_state(self, store_name: str, *items: SetStateItem) -> None:
        """Save several items to a store."""
        if not store_name:
            raise DaprClientError("nil store")
        if not items:
            raise DaprClientError("nil item")
        request = SaveStateRequest(
            store_name=store_name, states=[to_proto_save_state_item(item) for item in items]
        )
        try:
            self.runtime.save_state(request)
        except Exception as exc:
            raise DaprClientError(f"error saving state: {exc}") from exc

    def get_bulk_state(
        self,
        store_name: str,
        keys: Iterable[str],
        metadata: Mapping[str, str] | None = None,
        parallelism: int = 0,
    ) -> list[BulkStateItem]:
        """Read several keys from a store."""
        if not store_name:
            raise DaprClientError("nil store")
        key_list = list(keys or ())
        if not key_list:
            raise DaprClientError("keys required")
        request = GetBulkStateRequest(
            store_name=store_name, keys=key_list, metadata=metadata, parallelism=parallelism
        )
        try:
            results = self.runtime.get_bulk_state(request)
        except Exception as exc:
            raise DaprClientError(f"error getting state: {exc}") from exc
        return [
            BulkStateItem(
                key=result.key,
                value=result.data,
                etag=result.etag,
                metadata=result.metadata,
                error=result.error,
            )
            for result in results or ()
        ]

    def get_state(
        self, store_name: str, key: str, metadata: Mapping[str, str] | None = None
    ) -> StateItem:
        """Read one key with strong consistency."""
        return self.get_state_with_consistency(
            store_name, key, metadata, StateConsistency.STRONG
        )

    def get_state_with_consistency(
        self,
        store_name: str,
        key: str,
        metadata: Mapping[str, str] | None,
        consistency: StateConsistency,
    ) -> StateItem:
        """Read one key with the given consistency."""
        _check_state_args(store_name, key)
        request = GetStateRequest(
            store_name=store_name,
            key=key,
            consistency=StateConsistency(consistency),
            metadata=metadata,
        )
        try:
            result = self.runtime.get_state(request)
        except Exception as exc:
            raise DaprClientError(f"error getting state: {exc}") from exc
        return StateItem(key=key, value=result.data, etag=result.etag, metadata=result.metadata)

    def query_state_alpha1(
        self, store_name: str, query: str, metadata: Mapping[str, str] | None = None
    ) -> QueryResponse:
        """Run a query against a state store."""
        if not store_name:
            raise DaprClientError("store name is not set")
        if not query:
            raise DaprClientError("query is not set")
        request = QueryStateRequest(store_name=store_name, query=query, metadata=metadata)
        try:
            response = self.runtime.query_state_alpha1(request)
        except Exception as exc:
            raise DaprClientError(f"error querying state: {exc}") from exc
        return QueryResponse(
            results=[
                QueryItem(key=item.key, value=item.data, etag=item.etag, error=item.error)
                for item in response.results or ()
            ],
            token=response.token,
            metadata=response.metadata,
        )

    def delete_state(
        self, store_name: str, key: str, metadata: Mapping[str, str] | None = None
    ) -> None:
        """Delete one key with default options."""
        self.delete_state_with_etag(store_name, key, None, metadata, None)

    def delete_state_with_etag(
        self,
        store_name: str,
        key: str,
        etag: ETag | None,
        metadata: Mapping[str, str] | None,
        options: StateOptions | None,
    ) -> None:
        """Delete one key with an etag and options."""
        _check_state_args(store_name, key)
        request = DeleteStateRequest(
            store_name=store_name,
            key=key,
            etag=ETag(etag.value) if etag is not None else None,
            options=to_proto_state_options(options),
            metadata=metadata,
        )
        try:
            self.runtime.delete_state(request)
        except Exception as exc:
            raise DaprClientError(f"error deleting state: {exc}") from exc

    def delete_bulk_state(
        self, store_name: str, keys: Iterable[str], metadata: Mapping[str, str] | None = None
    ) -> None:
        """Delete several keys from a store."""
        items = [DeleteStateItem(key=key, metadata=metadata) for key in keys or ()]
        if items:
            self.delete_bulk_state_items(store_name, items)

    def delete_bulk_state_items(
        self, store_name: str, items: Iterable[DeleteStateItem]
    ) -> None:
        """Delete several items, each with its own etag and options."""
        states = []
        for item in items or ():
            _check_state_args(store_name, item.key)
            states.append(
                ProtoStateItem(
                    key=item.key,
                    etag=ETag(item.etag.value) if item.etag is not None else None,
                    metadata=item.metadata,
                    options=to_proto_state_options(item.options),
                )
            )
        if not states:
            return
        self.runtime.delete_bulk_state(DeleteBulkStateRequest(store_name=store_name, states=states))