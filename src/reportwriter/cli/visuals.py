import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, TypeVar

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

T = TypeVar("T")

VALID_VISUALS = ("auto", "tqdm", "rich", "off")


def iter_with_progress(
    iterable: Iterable[T],
    *,
    progress_style: Optional[str],
    label: str,
) -> Iterator[T]:
    style = (progress_style or "auto").lower()
    if style == "off":
        yield from iterable
        return
    bar_kwargs = {
        "desc": label,
        "unit": "row",
        "dynamic_ncols": True,
        "mininterval": 0.2,
        "leave": False,
    }
    if style == "spinner":
        bar_kwargs["bar_format"] = "{desc} {n_fmt}{unit}"
    bar = tqdm(iterable, **bar_kwargs)
    try:
        for item in bar:
            yield item
    finally:
        bar.close()


def progress_for(progress_style: Optional[str]):
    """Adapt :func:`iter_with_progress` to the export job's progress hook."""

    def _wrap(iterable: Iterable[T], label: str) -> Iterator[T]:
        return iter_with_progress(iterable, progress_style=progress_style, label=label)

    return _wrap


@contextmanager
def visuals_context(visuals: Optional[str]):
    """Route log output so it does not tear progress bars.

    ``rich`` swaps the root handlers for a RichHandler; other providers
    redirect logging through tqdm.
    """
    provider = (visuals or "auto").lower()
    if provider == "off":
        yield
        return
    if provider == "rich":
        from rich.logging import RichHandler

        root_logger = logging.getLogger()
        old_handlers = list(root_logger.handlers)
        root_logger.handlers = [
            RichHandler(show_time=False, show_path=False, markup=False, rich_tracebacks=False)
        ]
        try:
            yield
        finally:
            root_logger.handlers = old_handlers
        return
    with logging_redirect_tqdm():
        yield
