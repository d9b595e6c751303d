from __future__ import annotations

import datetime as dt
import functools
import random
import string
from typing import Any, Callable

from ..client import DocumentStoreClient
from .config import OperationKind

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits

# Bytes kept back from the padding for the id and timestamp fields.
DOCUMENT_OVERHEAD_BYTES = 100

RANDOM_ID_BITS = 63
RANDOM_ID_WIDTH = 16

Operation = Callable[[], Any]


def generate_random_id() -> str:
    return f"{random.getrandbits(RANDOM_ID_BITS):0{RANDOM_ID_WIDTH}x}"


def generate_random_string(length: int) -> str:
    if length <= 0:
        return ""
    return "".join(random.choices(ALPHABET, k=length))


def generate_document(size: int) -> dict[str, Any]:
    return {
        "_id": generate_random_id(),
        "created_at": _utcnow(),
        "data": generate_random_string(size - DOCUMENT_OVERHEAD_BYTES),
    }


def do_insert(client: DocumentStoreClient, doc_size: int) -> None:
    client.insert_one(generate_document(doc_size))


def do_query(client: DocumentStoreClient, doc_size: int) -> None:
    # Ids are random, so the lookup almost always misses; a miss still counts.
    client.find_one(generate_random_id())


def do_update(client: DocumentStoreClient, doc_size: int) -> None:
    client.update_one(generate_random_id(), {"updated_at": _utcnow()})


def do_delete(client: DocumentStoreClient, doc_size: int) -> None:
    client.delete_one(generate_random_id())


OPERATIONS: dict[OperationKind, Callable[[DocumentStoreClient, int], None]] = {
    OperationKind.INSERT: do_insert,
    OperationKind.QUERY: do_query,
    OperationKind.UPDATE: do_update,
    OperationKind.DELETE: do_delete,
}


def build_operation(
    kind: OperationKind, client: DocumentStoreClient, doc_size: int
) -> Operation:
    """Bind one workload variant to a client; each call issues exactly one request."""
    try:
        handler = OPERATIONS[kind]
    except KeyError:
        raise ValueError(f"no handler registered for operation {kind!r}") from None
    return functools.partial(handler, client, doc_size)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)
