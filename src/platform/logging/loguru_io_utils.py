from inspect import FullArgSpec, getfile, getfullargspec, getsourcelines
from os.path import basename
import re
from time import time
from typing import Any, Callable

from src.platform.logging.loguru_io_config import (
    SENSITIVE_KEYWORDS,
    call_depth_var,
    chain_start_time_var,
)


_MAX_CONTENT_LENGTH = 500
_SENSITIVE_PATTERN = re.compile(
    rf"({'|'.join(SENSITIVE_KEYWORDS)})(\s*[=:]\s*)'[^']*'", flags=re.IGNORECASE
)


def get_chain_start_time() -> float:
    if not (start_time := chain_start_time_var.get()):
        start_time = time()
        chain_start_time_var.set(start_time)
    return start_time


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    try:
        lineno = getsourcelines(func)[1]
    except (OSError, TypeError):
        lineno = 0
    return f'{basename(getfile(getattr(func, "__func__", func)))}::{func.__qualname__}:{lineno}'


def reset_call_depth() -> None:
    layer = max(call_depth_var.get() - 1, 0)
    call_depth_var.set(layer)
    if not layer:
        chain_start_time_var.set(0)


def normalize_args_kwargs(
    func: Callable[..., Any], *args: Any, **kwargs: Any
) -> tuple[tuple[Any, ...], dict[Any, Any]]:
    """Drop kwargs the wrapped function cannot accept (e.g. injected by FastAPI)."""
    target = getattr(func, '__wrapped__', func)
    full_arg_spec: FullArgSpec = getfullargspec(target)
    if not full_arg_spec.varkw:
        accepted = set(full_arg_spec.args) | set(full_arg_spec.kwonlyargs)
        kwargs = {k: v for k, v in kwargs.items() if k in accepted}
    return args, kwargs


def mask_sensitive(data: Any) -> Any:
    text = str(data)
    masked = _SENSITIVE_PATTERN.sub(r"\1\2'********'", text)
    return data if text == masked else masked


def should_mask_keyword(keyword: Any, value: Any) -> Any:
    return '********' if str(keyword).lower() in SENSITIVE_KEYWORDS else value


def truncate_content(data: Any) -> Any:
    text = str(data)
    if len(text) <= _MAX_CONTENT_LENGTH:
        return data
    return f'{text[:_MAX_CONTENT_LENGTH]}...(+{len(text) - _MAX_CONTENT_LENGTH} chars)'
