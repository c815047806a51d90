"""Terminal formatting module."""

import os
import sys
from typing import Dict, Optional, Sequence

from tqdm import tqdm

from .core.types import RenditionSpec


class TerminalFormatter:
    """Terminal formatting class."""

    def __init__(self):
        """Initialize terminal formatter."""
        self.has_color = self._check_color_support()

        self.bold = "\033[1m" if self.has_color else ""
        self.reset = "\033[0m" if self.has_color else ""
        self.green = "\033[32m" if self.has_color else ""
        self.blue = "\033[34m" if self.has_color else ""
        self.red = "\033[31m" if self.has_color else ""

        self.bold_green = f"{self.bold}{self.green}" if self.has_color else ""
        self.bold_blue = f"{self.bold}{self.blue}" if self.has_color else ""
        self.bold_red = f"{self.bold}{self.red}" if self.has_color else ""

    def _check_color_support(self) -> bool:
        """Check if terminal supports colors.

        Returns:
            True if terminal supports colors
        """
        if not sys.stderr.isatty():
            return False

        if os.environ.get("NO_COLOR"):
            return False

        term = os.environ.get("TERM", "").lower()
        if term in ["dumb", "unknown"]:
            return False

        return True

    def print_check(self, message: str) -> None:
        """Print a checkmark message in green.

        Args:
            message: Message to print
        """
        print(f"{self.bold_green}✓{self.reset} {self.bold}{message}{self.reset}", file=sys.stderr)

    def print_error(self, message: str) -> None:
        """Print an error message in red.

        Args:
            message: Message to print
        """
        print(f"{self.bold_red}✗{self.reset} {self.bold}{message}{self.reset}", file=sys.stderr)

    def print_success(self, message: str) -> None:
        """Print a success message in green.

        Args:
            message: Message to print
        """
        print(f"{self.green}✓{self.reset} {self.green}{message}{self.reset}", file=sys.stderr)

    def print_renditions(self, renditions: Sequence[RenditionSpec]) -> None:
        """Print the rendition ladder about to be produced."""
        self.print_check(f"Producing {len(renditions)} renditions:")
        for spec in renditions:
            print(f"  {self.bold_blue}{spec.label:>6}{self.reset}  {spec.dimensions:>9}  {spec.bitrate}",
                  file=sys.stderr)


class ProgressBars:
    """One tqdm bar per rendition, fed by the pipeline's progress callback."""

    def __init__(self, disable: Optional[bool] = None):
        self._bars: Dict[str, tqdm] = {}
        self._disable = disable

    def __call__(self, label: str, percent: float) -> None:
        bar = self._bars.get(label)
        if bar is None:
            bar = tqdm(
                total=100,
                desc=label,
                unit="%",
                bar_format="{desc:>6} |{bar}| {n:.1f}%",
                disable=self._disable,
                leave=True,
            )
            self._bars[label] = bar
        bar.update(max(0.0, percent - bar.n))
        if percent >= 100:
            bar.close()

    def close(self) -> None:
        for bar in self._bars.values():
            bar.close()
        self._bars = {}
