"""Call sync or async callables uniformly.

Endpoints, hooks, and error handlers may be ``def`` or ``async def``.
The sync/async check lives here and nowhere else::

    result = await invoke(func, *args, **kwargs)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
