"""
Paginated menus and menu series.

A Step shows paginated content and can collect one line of input at a
time, handing it to a handler. A Series runs Steps in order, threading
each handler's result into the next Step and letting handlers reshape,
extend or terminate the sequence while it runs.
"""
from menus.cleanup import CleanupRegistry
from menus.collector import InputCollector, STOP_TIME, STOP_USER
from menus.directives import (
    AppendSteps, ClearPages, Directive, MergeSeries, Ok, Passover, Retry,
    SetEmbedFields, SetText, Terminate, parse_next,
)
from menus.errors import SeriesError
from menus.pages import PageModel
from menus.services import MenuServices
from menus.step import Step, StepOutcome
from menus.series import Series
from utils.args import extract_args_after_command, trim_array

__all__ = [
    "CleanupRegistry", "InputCollector", "STOP_TIME", "STOP_USER",
    "AppendSteps", "ClearPages", "Directive", "MergeSeries", "Ok", "Passover",
    "Retry", "SetEmbedFields", "SetText", "Terminate", "parse_next",
    "SeriesError", "PageModel", "MenuServices", "Step", "StepOutcome", "Series",
    "extract_args_after_command", "trim_array",
]
