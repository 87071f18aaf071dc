"""Variable form: one input per document variable."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from rich.markup import escape
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Input, Static

from segmentsync.core.models import Variable

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_-]")

_PLACEHOLDERS = {
    "time": "HH:MM",
    "phone": "phone number",
}


def widget_id_for(variable: Variable) -> str:
    return "var-" + _UNSAFE_ID_CHARS.sub("_", variable.name)


class VariableForm(Vertical):
    """Generates an Input per variable; rebuilt when the variable set changes."""

    DEFAULT_CSS = """
    VariableForm {
        height: auto;
        padding: 1;
    }
    """

    def __init__(self, variables: Sequence[Variable], **kwargs) -> None:
        super().__init__(**kwargs)
        self._variables = list(variables)
        self._widgets: dict[str, Input] = {}

    def compose(self) -> ComposeResult:
        for variable in self._variables:
            yield from self._build_input_group(variable)

    def _build_input_group(self, variable: Variable) -> ComposeResult:
        type_tag = f" [dim]({variable.type})[/dim]" if variable.type != "text" else ""
        yield Static(f"[bold]{escape(variable.name)}[/bold]{type_tag}", classes="input-label", markup=True)
        widget_id = widget_id_for(variable)
        if any(w.id == widget_id for w in self._widgets.values()):
            widget_id = f"{widget_id}-{len(self._widgets)}"
        widget = Input(
            value=variable.value,
            id=widget_id,
            placeholder=_PLACEHOLDERS.get(variable.type, variable.name),
        )
        self._widgets[variable.id] = widget
        yield widget

    def variable_id_for(self, widget: Input) -> Optional[str]:
        for var_id, candidate in self._widgets.items():
            if candidate is widget:
                return var_id
        return None

    async def set_variables(self, variables: Sequence[Variable]) -> None:
        """Show *variables*, rebuilding the inputs only if ids changed."""
        variables = list(variables)
        if [v.id for v in variables] != [v.id for v in self._variables]:
            self._variables = variables
            self._widgets = {}
            await self.remove_children()
            widgets = []
            for variable in variables:
                widgets.extend(self._build_input_group(variable))
            await self.mount_all(widgets)
            return

        self._variables = variables
        for variable in variables:
            widget = self._widgets.get(variable.id)
            if widget is not None and widget.value != variable.value:
                widget.value = variable.value
