"""Parallel loading of independent collections.

The admin dashboard needs four unrelated reads (profiles, identities,
tickets, feedback). They are issued together on a thread pool and
joined once all have finished. Each worker runs inside its own app
context, so it gets its own SQLAlchemy session, the same pattern the
email service uses for its background sender.

A loader that raises contributes an empty list and an entry in
FetchResult.errors; the others are kept (degrade, don't discard).
There is no cancellation and no timeout.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from flask import current_app, has_app_context

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    data: dict = field(default_factory=dict)
    errors: dict = field(default_factory=dict)

    @property
    def ok(self):
        return not self.errors

    def get(self, name):
        return self.data.get(name, [])


def _in_app_context(app, loader):
    """Wrap a loader so it runs inside a fresh app context on the worker."""

    def run():
        with app.app_context():
            return loader()

    return run


def _collect(name, call, result):
    try:
        result.data[name] = list(call())
    except Exception as e:  # any loader failure degrades to an empty collection
        logger.warning(f"Loading '{name}' failed: {e}")
        result.data[name] = []
        result.errors[name] = str(e)


def fetch_concurrently(loaders, max_workers=4):
    """Run named zero-argument loaders and gather their results.

    Args:
        loaders: dict of name -> callable returning an iterable.
        max_workers: thread pool size; <= 1 runs every loader inline in
            the caller's context, in dict order.

    Returns:
        FetchResult with one entry per loader name in `data`.
    """
    result = FetchResult()
    if not loaders:
        return result

    if max_workers <= 1:
        for name, loader in loaders.items():
            _collect(name, loader, result)
        return result

    app = current_app._get_current_object() if has_app_context() else None

    with ThreadPoolExecutor(max_workers=min(max_workers, len(loaders))) as pool:
        futures = {
            name: pool.submit(_in_app_context(app, loader) if app else loader)
            for name, loader in loaders.items()
        }
        for name, future in futures.items():
            _collect(name, future.result, result)

    return result
