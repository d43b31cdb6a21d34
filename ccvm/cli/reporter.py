"""Render classified errors and status events for the terminal."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Optional, Union

from rich.console import Console
from rich.text import Text

from ccvm.core.classifier import ClassifiedError
from ccvm.core.messages import DEFAULT_LOCALE, get_label, get_template, normalize_locale
from ccvm.utils.log import get_logger


logger = get_logger()

EventKind = Literal["success", "warning", "info"]

_EVENT_STYLES: dict[str, tuple[str, str]] = {
    "success": ("✅", "green"),
    "warning": ("⚠", "yellow"),
    "info": ("ℹ", "blue"),
}


def _encodable(text: Text, encoding: str) -> Text:
    """Return ``text`` unchanged if the stream can encode it, else a plain copy with replacements."""
    try:
        text.plain.encode(encoding)
    except UnicodeEncodeError:
        return Text(text.plain.encode(encoding, errors="replace").decode(encoding))
    except LookupError:
        return Text(text.plain.encode("ascii", errors="replace").decode("ascii"))
    return text


@dataclass(frozen=True)
class ReportEvent:
    """A non-error message: a headline plus optional supporting lines."""

    kind: EventKind
    headline: str
    details: tuple[str, ...] = ()


class Reporter:
    """Presentation-only renderer; it never raises and never alters control flow."""

    def __init__(
        self,
        console: Optional[Console] = None,
        error_console: Optional[Console] = None,
        locale: Optional[str] = DEFAULT_LOCALE,
        verbose: bool = False,
    ) -> None:
        self.console = console or Console(highlight=False)
        self.error_console = error_console or Console(stderr=True, highlight=False)
        self.locale = normalize_locale(locale)
        self.verbose = verbose

    def render_error(self, error: ClassifiedError) -> Text:
        template = get_template(error.category, error.code, self.locale)
        text = Text()
        text.append(f"{template.icon} {template.title}\n", style="bold red")
        text.append(f"{template.description}\n", style="dim")
        if error.context is not None:
            text.append(f"\n{get_label('context', self.locale)}: ", style="yellow")
            text.append(f"{error.context}\n", style="yellow")
        if template.suggestions:
            text.append(f"\n{get_label('suggestions', self.locale)}:\n", style="bold blue")
            for index, suggestion in enumerate(template.suggestions, start=1):
                text.append(f"   {index}. {suggestion}\n", style="blue")
        if self.verbose:
            text.append(f"\n{get_label('details', self.locale)}:\n", style="dim")
            text.append(f"   {get_label('code', self.locale)}: {error.code}\n", style="dim")
            if error.message:
                text.append(
                    f"   {get_label('message', self.locale)}: {error.message}\n", style="dim"
                )
        text.rstrip()
        return text

    def render_event(self, event: ReportEvent) -> Text:
        icon, color = _EVENT_STYLES.get(event.kind, _EVENT_STYLES["info"])
        text = Text()
        text.append(f"{icon} {event.headline}", style=f"bold {color}")
        for detail in event.details:
            text.append(f"\n   • {detail}", style=color)
        return text

    def _emit(self, console: Console, text: Text) -> str:
        try:
            console.print(_encodable(text, console.encoding))
        except (OSError, ValueError) as exc:
            logger.debug(
                "[reporter] Failed to write report: %s: %s",
                type(exc).__name__,
                exc,
            )
        return text.plain

    def report(self, item: Union[ClassifiedError, ReportEvent]) -> str:
        """Print ``item`` and return the rendered plain text."""
        if isinstance(item, ClassifiedError):
            logger.debug(
                "[reporter] Reporting error",
                extra={"category": item.category.value, "code": item.code},
            )
            return self._emit(self.error_console, self.render_error(item))
        return self._emit(self.console, self.render_event(item))

    def success(self, headline: str, details: Iterable[str] = ()) -> str:
        return self.report(ReportEvent("success", headline, tuple(details)))

    def warning(self, headline: str, details: Iterable[str] = ()) -> str:
        return self.report(ReportEvent("warning", headline, tuple(details)))

    def info(self, headline: str, details: Iterable[str] = ()) -> str:
        return self.report(ReportEvent("info", headline, tuple(details)))
