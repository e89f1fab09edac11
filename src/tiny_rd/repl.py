"""Interactive REPL for TINY, powered by prompt_toolkit.

Each submission is parsed on its own and answered with its syntax tree or
its diagnostics. Multiline input is submitted with an empty line.
"""

from __future__ import annotations

import io
import re
import sys
from dataclasses import dataclass, field
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .config import ParseOptions
from .lexer_rd import LexError
from .parser_rd import parse_source
from .repl_highlight import TinyHighlightLexer
from .runner import render

# Pasted text often carries these; the lexer would turn them into ERROR tokens.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

_SLASH_CMDS = {
    "/clear": "clear the screen",
    "/tree": "switch between listing and lark output",
    "/trace-scan": "[on|off] echo tokens as they are read",
}

_ON = {"on", "1", "true", "yes"}
_OFF = {"off", "0", "false", "no"}


@dataclass
class ReplState:
    fmt: str = "listing"
    options: ParseOptions = field(default_factory=ParseOptions.from_env)


class _SlashCompleter(Completer):
    def get_completions(self, document, complete_event):
        typed = document.text_before_cursor
        if not typed.startswith("/"):
            return
        for name, help_text in _SLASH_CMDS.items():
            if name.startswith(typed):
                yield Completion(name, start_position=-len(typed), display_meta=help_text)


def _switch(arg: str, current: bool) -> Optional[bool]:
    """New value of an on/off setting; None if ``arg`` is not understood."""
    word = arg.strip().lower()
    if not word:
        return not current
    if word in _ON:
        return True
    if word in _OFF:
        return False
    return None


def _handle_slash(line: str, state: ReplState) -> bool:
    """Run a slash command. Returns False for ordinary source lines."""
    command, _, arg = line.strip().partition(" ")
    if not command.startswith("/"):
        return False

    if command == "/clear":
        clear()
    elif command == "/tree":
        state.fmt = "listing" if state.fmt == "lark" else "lark"
        print(f"Output: {state.fmt}")
    elif command == "/trace-scan":
        value = _switch(arg, state.options.trace_scan)
        if value is None:
            print("Usage: /trace-scan [on|off]", file=sys.stderr)
        else:
            state.options.trace_scan = value
            print(f"Token trace: {'on' if value else 'off'}")
    else:
        print(f"Unknown command: {command}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    return _INVISIBLE_RE.sub("", text)


def respond(text: str, state: ReplState) -> str:
    """Parse one submission and return what the REPL prints for it."""
    listing = io.StringIO()
    try:
        result = parse_source(text, options=state.options, listing=listing)
    except LexError as exc:
        return f"Error: {exc}"

    if result.had_error:
        return listing.getvalue().strip("\n")
    return listing.getvalue() + render(result, state.fmt)


def _key_bindings() -> KeyBindings:
    bindings = KeyBindings()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        if text.startswith("/"):
            buf.validate_and_handle()
            return

        # A blank line ends the submission; drop it before handing over.
        head, _, last = text.rpartition("\n")
        if not last.strip():
            buf.text = head
            buf.cursor_position = len(head)
            buf.validate_and_handle()
        else:
            buf.insert_text("\n")

    return bindings


def repl() -> None:
    state = ReplState()
    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=TinyHighlightLexer(),
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=_key_bindings(),
        multiline=True,
        prompt_continuation="... ",
    )

    print("tiny repl: empty line to parse, Ctrl-D to exit, / for commands")

    while True:
        try:
            text = _normalize(session.prompt("tiny> "))
        except KeyboardInterrupt:
            continue
        except EOFError:
            print()
            return

        if not text.strip() or _handle_slash(text, state):
            continue
        print(respond(text, state))


def main() -> None:
    repl()


if __name__ == "__main__":
    main()
