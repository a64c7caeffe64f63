"""Best-effort publication of local quotes to the remote source."""

import logging
from typing import List

from quotebook.protocols import RemoteSource, RemoteSourceError
from quotebook.types import Item, Origin, PublishResult

logger = logging.getLogger(__name__)


def is_pending(item: Item) -> bool:
    """Locally created or edited and not yet accepted by the remote."""
    return item.origin == Origin.LOCAL and not item.acknowledged


def publish_pending(items: List[Item], remote: RemoteSource) -> PublishResult:
    """Publish every pending item; failures stay pending for the next cycle.

    Args:
        items: Collection snapshot. Not modified.
        remote: Source to publish to.

    Returns:
        PublishResult with the updated items, the acknowledgements by item id,
        and the ids that failed.
    """
    result = PublishResult()

    for item in items:
        if not is_pending(item):
            result.items.append(item)
            continue
        try:
            ack = remote.publish(item)
        except RemoteSourceError as e:
            logger.warning(f"Failed to publish {item.id}: {e}")
            result.failed.append(item.id)
            result.items.append(item)
            continue
        result.acks[item.id] = ack.remote_id
        result.items.append(item.evolve(acknowledged=True, remote_id=ack.remote_id))

    if result.acks or result.failed:
        logger.info(f"Publish complete: published={result.published}, failed={len(result.failed)}")
    return result
