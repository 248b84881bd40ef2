from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Request, Response

NextFn = Callable[["Request"], "Response"]
Middleware = Callable[["Request", NextFn], "Response"]
