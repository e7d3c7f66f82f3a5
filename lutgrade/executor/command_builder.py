"""FFMPEG command builder for labelled filter graphs."""

import shlex
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path

ParamValue = str | int | float


@dataclass
class Filter:
    """Represents a single FFMPEG filter stage.

    A parameter with an empty key renders as a bare positional value, so
    ``Filter("format", {"": "nv12"})`` becomes ``format=nv12``.
    """
    name: str
    params: dict[str, ParamValue] = field(default_factory=dict)
    inputs: list[str] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)

    def to_string(self) -> str:
        """Convert filter to FFMPEG filter string."""
        parts = [f"[{inp}]" for inp in self.inputs]

        if self.params:
            param_str = ":".join(
                str(v) if k == "" else f"{k}={v}"
                for k, v in self.params.items()
            )
            parts.append(f"{self.name}={param_str}")
        else:
            parts.append(self.name)

        parts.extend(f"[{out}]" for out in self.outputs)
        return "".join(parts)


@dataclass
class FilterChain:
    """A chain of filters connected in sequence.

    Labels on the first filter's inputs and the last filter's outputs are
    the chain's pads inside a graph.
    """
    filters: list[Filter] = field(default_factory=list)

    def add(self, filter_obj: Optional[Filter]) -> "FilterChain":
        """Add a filter to the chain. ``None`` is skipped."""
        if filter_obj is not None:
            self.filters.append(filter_obj)
        return self

    def label(self, inputs: list[str], outputs: list[str]) -> "FilterChain":
        """Attach input pads to the head and output pads to the tail."""
        if self.filters:
            self.filters[0].inputs = list(inputs)
            self.filters[-1].outputs = list(outputs)
        return self

    def __bool__(self) -> bool:
        return bool(self.filters)

    def to_string(self) -> str:
        """Convert filter chain to FFMPEG filter string."""
        if not self.filters:
            return ""
        return ",".join(f.to_string() for f in self.filters)


@dataclass
class FilterGraph:
    """Semicolon-separated chains forming a ``-filter_complex`` value."""
    chains: list[FilterChain] = field(default_factory=list)

    def add(self, chain: FilterChain) -> "FilterGraph":
        if chain:
            self.chains.append(chain)
        return self

    def to_string(self) -> str:
        return ";".join(chain.to_string() for chain in self.chains)


@dataclass
class FFMPEGCommand:
    """Represents a complete FFMPEG command."""
    inputs: list[str] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)
    input_options: dict[str, list[str]] = field(default_factory=dict)
    output_options: list[str] = field(default_factory=list)
    complex_filter: Optional[str] = None
    overwrite: bool = True

    def to_args(self) -> list[str]:
        """Convert command to list of arguments for subprocess.

        The first element is the placeholder ``ffmpeg``; the orchestrator
        swaps in the resolved executable.
        """
        args = ["ffmpeg"]

        if self.overwrite:
            args.append("-y")

        for input_path in self.inputs:
            if input_path in self.input_options:
                args.extend(self.input_options[input_path])
            args.extend(["-i", input_path])

        if self.complex_filter:
            args.extend(["-filter_complex", self.complex_filter])

        args.extend(self.output_options)
        args.extend(self.outputs)

        return args

    def to_string(self) -> str:
        """Convert command to shell string."""
        return " ".join(shlex.quote(arg) for arg in self.to_args())

    @property
    def output_path(self) -> Optional[str]:
        return self.outputs[0] if self.outputs else None


class CommandBuilder:
    """Builder for constructing FFMPEG commands."""

    def __init__(self):
        self._command = FFMPEGCommand()

    def input(
        self,
        path: str | Path,
        options: Optional[list[str]] = None,
    ) -> "CommandBuilder":
        """Add an input file with options placed before its ``-i``."""
        path_str = str(path)
        self._command.inputs.append(path_str)
        if options:
            self._command.input_options[path_str] = list(options)
        return self

    def output(self, path: str | Path) -> "CommandBuilder":
        """Set output file."""
        self._command.outputs.append(str(path))
        return self

    def output_options(self, *options: str) -> "CommandBuilder":
        """Add output options."""
        self._command.output_options.extend(options)
        return self

    def complex_filter(self, filter_graph: str | FilterGraph) -> "CommandBuilder":
        """Set complex filtergraph."""
        if isinstance(filter_graph, FilterGraph):
            filter_graph = filter_graph.to_string()
        self._command.complex_filter = filter_graph
        return self

    def map(self, *specifiers: str) -> "CommandBuilder":
        """Map graph output pads or input streams into the output."""
        for specifier in specifiers:
            self._command.output_options.extend(["-map", specifier])
        return self

    def format(self, fmt: str) -> "CommandBuilder":
        """Set output format."""
        self._command.output_options.extend(["-f", fmt])
        return self

    def build(self) -> FFMPEGCommand:
        """Build and return the command."""
        return self._command

    def build_args(self) -> list[str]:
        """Build and return command as argument list."""
        return self._command.to_args()
