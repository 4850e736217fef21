"""
varexport entry points.

``VarExporter`` ties the value formatter and the closure exporter together
under one configuration. The module-level ``export`` and ``export_pretty``
build a fresh exporter per call.
"""
from varexport.closures import ClosureExporter
from varexport.config import DEFAULT_CONFIG, FormatterMode
from varexport.formatter import INF_TOKEN, NAN_TOKEN, ValueFormatter
from varexport.log import debug_log, set_verbose  # noqa: F401

_TOKEN_IMPORTS = {
    NAN_TOKEN: f"nan as {NAN_TOKEN}",
    INF_TOKEN: f"inf as {INF_TOKEN}",
}


class VarExporter:
    """
    Exports Python values as Python source.

    Args:
        config: ``FormatterConfig`` to use; defaults to ``DEFAULT_CONFIG``.
        closure_exporter: Exporter for callables. It is re-configured with
            ``config`` so both halves of the output agree on layout.
    """

    def __init__(self, config=None, closure_exporter=None):
        self.config = config or DEFAULT_CONFIG
        closure_exporter = closure_exporter or ClosureExporter()
        self.closure_exporter = closure_exporter.with_config(self.config)

    def with_config(self, config):
        return VarExporter(config, self.closure_exporter)

    def export(self, value):
        """
        Source text of one expression evaluating to ``value``.

        Raises:
            Unexportable, DepthExceeded, UnsupportedType: For values without a
                literal form. Closures never raise; they degrade to a
                placeholder lambda.
        """
        return self._formatter().format(value)

    def export_pretty(self, value):
        """Like ``export`` with one container entry per line."""
        return self.with_config(self.config.with_mode(FormatterMode.PRETTY)).export(value)

    def export_assignment(self, name, value):
        """
        A small module assigning ``value`` to ``name``.

        Adds a ``from math import ...`` line when the value needs the ``NAN``
        or ``INF`` tokens.
        """
        formatter = self._formatter()
        code = formatter.format(value)
        lines = []
        if formatter.special_tokens:
            names = ", ".join(_TOKEN_IMPORTS[token] for token in sorted(formatter.special_tokens))
            lines.append(f"from math import {names}")
            lines.append("")
        lines.append(f"{name} = {code}")
        debug_log(f"Exported {name} ({len(code)} characters)")
        return "\n".join(lines) + "\n"

    def _formatter(self):
        return ValueFormatter(self.config, self.closure_exporter)


def export(value, config=None):
    """Export ``value`` with ``config`` (or the default configuration)."""
    return VarExporter(config).export(value)


def export_pretty(value, config=None):
    """Export ``value`` in pretty mode."""
    return VarExporter(config).export_pretty(value)
