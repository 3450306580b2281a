"""Route operation failures through the ``error`` event.

Every failure raised after a verb passes its support check reaches the
caller through :class:`ErrorInterceptor`, which gives plugins a single
place to observe (or translate) operational errors.
"""

from __future__ import annotations

import logging
from typing import Any

from storehooks.hooks import HookEvent, HookRegistry

logger = logging.getLogger(__name__)


class ErrorInterceptor:
    """Build error contexts and trigger the ``error`` event for one collection.

    The context passed to ``error`` listeners is a fresh dict holding the
    operation fields (``obj``, ``condition``, ``modifier``, ``options``,
    ``method``, ...), the collection ``namespace`` and the ``error`` itself.

    What the caller receives:

    * the exception raised by an ``error`` listener, if one raises;
    * otherwise ``context["error"]``, i.e. the original failure unless a
      listener replaced that entry with another exception. Replacements
      that are not exceptions are ignored.

    Error listeners only observe and translate; they never turn a failed
    operation into a successful one.

    Args:
        hooks: The collection's registry.
        namespace: ``"<database>.<collection>"`` identifier of the collection.
    """

    def __init__(self, hooks: HookRegistry, namespace: str) -> None:
        self._hooks = hooks
        self._namespace = namespace

    def build_context(self, error: BaseException, fields: dict[str, Any]) -> dict[str, Any]:
        context = dict(fields)
        context["namespace"] = self._namespace
        context["error"] = error
        return context

    def intercept(self, error: BaseException, fields: dict[str, Any]) -> BaseException:
        """Trigger ``error`` and return the exception the caller should see."""
        context = self.build_context(error, fields)
        logger.debug(
            "Intercepted %s in %s on %s", type(error).__name__, fields.get("method"), self._namespace
        )
        try:
            self._hooks.trigger(HookEvent.ERROR, context)
        except Exception as translated:
            return translated
        return self._delivered(context, error)

    async def aintercept(self, error: BaseException, fields: dict[str, Any]) -> BaseException:
        """Asynchronous :meth:`intercept`."""
        context = self.build_context(error, fields)
        logger.debug(
            "Intercepted %s in %s on %s", type(error).__name__, fields.get("method"), self._namespace
        )
        try:
            await self._hooks.atrigger(HookEvent.ERROR, context)
        except Exception as translated:
            return translated
        return self._delivered(context, error)

    @staticmethod
    def _delivered(context: dict[str, Any], error: BaseException) -> BaseException:
        replacement = context.get("error")
        if isinstance(replacement, BaseException):
            return replacement
        logger.debug("Ignoring non-exception error replacement %r", replacement)
        return error
