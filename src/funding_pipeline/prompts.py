from __future__ import annotations

import sys
from datetime import datetime
from typing import Callable, Sequence, TextIO, Union

from funding_pipeline.utils.datetime_utils import parse_datetime_utc
from funding_pipeline.utils.url_utils import is_well_formed_url

InputFn = Callable[[str], str]
# A bare value, or (label, value).
Choice = Union[str, tuple[str, str]]


class Prompter:
    """Line-based interactive questions.

    Invalid answers are reported and the question is asked again. Optional
    questions return None (or an empty list) for a blank answer.
    """

    def __init__(self, input_fn: InputFn | None = None, output: TextIO | None = None) -> None:
        self._input_fn = input_fn
        self.output = output

    def text(self, message: str, *, required: bool = False, default: str | None = None) -> str | None:
        suffix = f" [{default}]" if default else ""
        while True:
            answer = self._ask(f"{message}{suffix} ").strip()
            if answer:
                return answer
            if default is not None:
                return default
            if not required:
                return None
            self._say("  A value is required.")

    def choice(self, message: str, choices: Sequence[Choice], *, default: str | None = None) -> str:
        options = _normalize_choices(choices)
        self._say(message)
        for index, (label, value) in enumerate(options, start=1):
            marker = " (default)" if value == default else ""
            self._say(f"  {index}) {label}{marker}")

        while True:
            answer = self._ask("Choose a number: ").strip()
            if not answer and default is not None:
                return default
            selected = _resolve_choice(answer, options)
            if selected is not None:
                return selected
            self._say(f"  Enter a number between 1 and {len(options)}.")

    def multi_choice(self, message: str, choices: Sequence[Choice]) -> list[str]:
        options = _normalize_choices(choices)
        self._say(message)
        for index, (label, _value) in enumerate(options, start=1):
            self._say(f"  {index}) {label}")

        while True:
            answer = self._ask("Choose numbers (comma-separated, blank for none): ").strip()
            if not answer:
                return []

            selected: list[str] = []
            for part in _split_csv(answer):
                value = _resolve_choice(part, options)
                if value is None:
                    break
                if value not in selected:
                    selected.append(value)
            else:
                return selected
            self._say(f"  Unknown choice in: {answer}")

    def confirm(self, message: str, *, default: bool = False) -> bool:
        hint = "Y/n" if default else "y/N"
        while True:
            answer = self._ask(f"{message} ({hint}) ").strip().lower()
            if not answer:
                return default
            if answer in {"y", "yes"}:
                return True
            if answer in {"n", "no"}:
                return False
            self._say("  Please answer y or n.")

    def integer(
        self,
        message: str,
        *,
        minimum: int | None = None,
        maximum: int | None = None,
    ) -> int | None:
        while True:
            answer = self._ask(f"{message} ").strip()
            if not answer:
                return None
            try:
                value = int(answer)
            except ValueError:
                self._say("  Enter a whole number.")
                continue
            if _in_range(value, minimum, maximum):
                return value
            self._say(f"  Enter a number {_range_text(minimum, maximum)}.")

    def number(
        self,
        message: str,
        *,
        minimum: float | None = None,
        maximum: float | None = None,
    ) -> int | float | None:
        while True:
            answer = self._ask(f"{message} ").strip().replace(",", "")
            if not answer:
                return None
            try:
                value: int | float = int(answer)
            except ValueError:
                try:
                    value = float(answer)
                except ValueError:
                    self._say("  Enter a number.")
                    continue
            if _in_range(value, minimum, maximum):
                return value
            self._say(f"  Enter a number {_range_text(minimum, maximum)}.")

    def date(self, message: str) -> datetime | None:
        while True:
            answer = self._ask(f"{message} ").strip()
            if not answer:
                return None
            parsed = parse_datetime_utc(answer)
            if parsed is not None:
                return parsed
            self._say("  Enter a date like 2025-03-31.")

    def url(self, message: str) -> str | None:
        while True:
            answer = self._ask(f"{message} ").strip()
            if not answer:
                return None
            if is_well_formed_url(answer):
                return answer
            self._say("  Enter a full URL, e.g. https://example.com")

    def csv_list(self, message: str) -> list[str]:
        return _split_csv(self._ask(f"{message} "))

    def _ask(self, prompt: str) -> str:
        input_fn = self._input_fn or input
        return input_fn(prompt)

    def _say(self, line: str) -> None:
        print(line, file=self.output or sys.stdout)


def _normalize_choices(choices: Sequence[Choice]) -> list[tuple[str, str]]:
    return [choice if isinstance(choice, tuple) else (choice, choice) for choice in choices]


def _resolve_choice(answer: str, options: list[tuple[str, str]]) -> str | None:
    if answer.isdigit():
        index = int(answer)
        if 1 <= index <= len(options):
            return options[index - 1][1]
        return None
    for _label, value in options:
        if answer == value:
            return value
    return None


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _in_range(value: float, minimum: float | None, maximum: float | None) -> bool:
    if minimum is not None and value < minimum:
        return False
    if maximum is not None and value > maximum:
        return False
    return True


def _range_text(minimum: float | None, maximum: float | None) -> str:
    if minimum is not None and maximum is not None:
        return f"between {minimum} and {maximum}"
    if minimum is not None:
        return f">= {minimum}"
    return f"<= {maximum}"
