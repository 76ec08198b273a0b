from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Download progress display with tqdm (TTY only).

- 非 TTY (CI / パイプ) では tqdm を生成しない (ANSI 制御文字のスパム防止)
- 単一 tqdm インスタンス
"""

__all__ = [
    "DownloadProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Return True when stdout is a TTY and a progress bar should be shown."""
    return sys.stdout.isatty()


class DownloadProgress:
    """Byte progress bar for the source document download.

    Used as a context manager around the streaming loop; ``update`` is a
    no-op when the bar is disabled.
    """

    def __init__(self, total_bytes: int | None, *, description: str = "Fetching") -> None:
        self.total_bytes = total_bytes
        self.description = description
        self.received = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_bytes,
                desc=description,
                unit="B",
                unit_scale=True,
                leave=False,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def update(self, n_bytes: int) -> None:
        self.received += n_bytes
        if self.pbar is not None:
            self.pbar.update(n_bytes)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> DownloadProgress:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
