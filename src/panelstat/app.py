"""panelstat - Textual panel showing the rolling indicators."""

import argparse
import logging

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.css.query import NoMatches
from textual.logging import TextualHandler
from textual.widgets import Footer, Static

from panelstat.config import Settings
from panelstat.indicators import Indicators, MetricKind
from panelstat.sampler import PLACEHOLDER
from panelstat.scheduler import ThreadScheduler

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = 0.25  # seconds between panel redraws

TITLES = {
    "memory": "MEM",
    "cpu": "CPU",
    "network": "NET",
    "gpu": "GPU",
}


class IndicatorLabel(Static):
    """One indicator: a title line above its multi-line display text."""

    DEFAULT_CSS = """
    IndicatorLabel {
        width: auto;
        min-width: 12;
        height: auto;
        padding: 0 2;
        text-align: right;
    }
    """

    def __init__(self, kind: str, *args, **kwargs) -> None:
        """Initialize IndicatorLabel."""
        super().__init__(*args, **kwargs)
        self.kind = kind
        self.indicator_text = PLACEHOLDER

    def on_mount(self) -> None:
        self.update(self._label_markup())

    def set_text(self, text: str) -> None:
        """Show new display text, skipping redraws when nothing changed."""
        if text == self.indicator_text:
            return
        self.indicator_text = text
        self.update(self._label_markup())

    def _label_markup(self) -> str:
        title = TITLES.get(self.kind, self.kind.upper())
        return f"[b]{title}[/b]\n{self.indicator_text}"


class PanelstatApp(App):
    """
    Terminal panel hosting one indicator per metric kind.

    Samplers tick on their own daemon threads so slow sources never block
    the event loop; a Textual interval only copies their text into labels.
    """

    TITLE = "panelstat"
    SUB_TITLE = "Rolling host telemetry"

    CSS = """
    Screen {
        layout: vertical;
    }

    #indicators {
        height: auto;
        padding: 1;
        background: $surface;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        settings: Settings | None = None,
        kinds: list[MetricKind] | None = None,
    ) -> None:
        """Initialize the PanelstatApp."""
        super().__init__()
        self._settings = settings or Settings()
        self._scheduler = ThreadScheduler()
        self._indicators = Indicators(self._scheduler, self._settings, kinds)

    @property
    def indicators(self) -> Indicators:
        return self._indicators

    @property
    def scheduler(self) -> ThreadScheduler:
        return self._scheduler

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Horizontal(
            *(
                IndicatorLabel(name, id=f"indicator-{name}")
                for name in self._indicators.names
            ),
            id="indicators",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Enable the indicators and start redrawing them."""
        self._indicators.enable()
        self.set_interval(REFRESH_INTERVAL, self._refresh_indicators)

    def on_unmount(self) -> None:
        self._shutdown()

    def _shutdown(self) -> None:
        """Stop every sampler, then any timer thread left behind."""
        self._indicators.disable()
        self._scheduler.shutdown()

    def _refresh_indicators(self) -> None:
        """Copy every sampler's current text into its label."""
        for name, text in self._indicators.texts().items():
            try:
                label = self.query_one(f"#indicator-{name}", IndicatorLabel)
            except NoMatches:
                logger.debug("No label for indicator %s", name)
                continue
            label.set_text(text)

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._shutdown()
        self.exit()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Rolling host telemetry panel")

    parser.add_argument(
        "-r", "--sample-rate",
        type=int,
        default=None,
        help="Sampling period in milliseconds (default: 60)",
    )
    parser.add_argument(
        "-w", "--window-size",
        type=int,
        default=None,
        help="Samples kept per indicator (default: one second's worth)",
    )
    parser.add_argument(
        "--gpu-sample-rate",
        type=int,
        default=None,
        help="GPU sampling period in milliseconds (default: 1000)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for the Textual devtools console (default: WARNING)",
    )

    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    """Route log records to the Textual devtools console."""
    logging.basicConfig(level=level, handlers=[TextualHandler()], force=True)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the panelstat application."""
    args = parse_args(argv)
    configure_logging(args.log_level)

    settings = Settings.from_env().override(
        sample_rate_ms=args.sample_rate,
        window_size=args.window_size,
        gpu_sample_rate_ms=args.gpu_sample_rate,
    )
    logger.info("Starting panelstat with %s", settings)

    app = PanelstatApp(settings)
    app.run()


if __name__ == "__main__":
    main()
