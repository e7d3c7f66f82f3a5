"""Filter graph and argument construction for LUT grading.

Everything here is a pure function of a :class:`ColorGradeConfig` and an
:class:`EncodingProfile`: the same inputs always yield the same argument
list, and a neutral grade yields the shortest possible graph.

Graph shapes, by config:

* no primary LUT -- ``[0:v][colorbalance,]format=<pix>[out]`` on export,
  no filter (or just the white balance stage) on preview
* primary only -- ``lut3d='<p>'[,colorbalance][,format=<pix>]``
* primary and secondary -- two branches blended in overlay mode::

    [0:v]lut3d='p'[primary];
    [0:v]lut3d='p',lut3d='s'[secondary];
    [primary][secondary]blend=all_mode='overlay':all_opacity=<o>[,...][out]
"""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..models import ColorGradeConfig, ExportJob, WHITE_BALANCE_RANGE
from ..sanitize import escape_filter_path
from ..video.formats import AUDIO_BITRATE, AUDIO_CODEC, EncodingProfile
from .command_builder import CommandBuilder, FFMPEGCommand, Filter, FilterChain, FilterGraph

INPUT_LABEL = "0:v"
PRIMARY_LABEL = "primary"
SECONDARY_LABEL = "secondary"
OUTPUT_LABEL = "out"

NEUTRAL_TEMPERATURE = 5500
KELVIN_PER_STEP = 280
WARM_SPAN = 3100
COOL_SPAN = 2500
RED_COEFFICIENT = 0.3
BLUE_COEFFICIENT = 0.4


@dataclass(frozen=True)
class PreviewFilter:
    """Output arguments for a single-frame preview."""
    arguments: list[str]
    has_filter: bool


def format_number(value: float) -> str:
    """Format a filter parameter independent of the host locale.

    Period separator, at most two fractional digits, no trailing zeros.
    """
    text = f"{float(value):.2f}".rstrip("0").rstrip(".")
    if text in ("", "-0"):
        return "0"
    return text


def temperature_of(value: float) -> int:
    """Map the white balance slider in [-10, 10] to Kelvin.

    ``5500 + round(value * 280)`` with halves rounded away from zero, so
    -10 is 2700K and +10 is 8300K.
    """
    low, high = WHITE_BALANCE_RANGE
    scaled = max(low, min(high, float(value))) * KELVIN_PER_STEP
    rounded = int(math.floor(abs(scaled) + 0.5))
    return NEUTRAL_TEMPERATURE + (rounded if scaled >= 0 else -rounded)


def white_balance_offsets(value: float) -> tuple[float, float]:
    """Return the (red, blue) midtone offsets for a white balance value."""
    temperature = temperature_of(value)
    if temperature < NEUTRAL_TEMPERATURE:
        factor = (NEUTRAL_TEMPERATURE - temperature) / WARM_SPAN
        return RED_COEFFICIENT * factor, -BLUE_COEFFICIENT * factor
    factor = (temperature - NEUTRAL_TEMPERATURE) / COOL_SPAN
    return -RED_COEFFICIENT * factor, BLUE_COEFFICIENT * factor


def white_balance_filter(value: float) -> Optional[Filter]:
    """Build the colorbalance stage, or None for a neutral temperature."""
    if temperature_of(value) == NEUTRAL_TEMPERATURE:
        return None
    red, blue = white_balance_offsets(value)
    return Filter("colorbalance", {"rm": format_number(red), "bm": format_number(blue)})


def lut_filter(path: str | Path) -> Filter:
    return Filter("lut3d", {"": escape_filter_path(path)})


def format_filter(pixel_format: str) -> Filter:
    return Filter("format", {"": pixel_format})


def blend_graph(
    primary: str | Path,
    secondary: str | Path,
    opacity: float,
    tail: list[Optional[Filter]],
) -> FilterGraph:
    """Two-branch overlay blend shared by preview and export.

    ``tail`` stages are appended after the blend, before ``[out]``.
    """
    graph = FilterGraph()
    graph.add(
        FilterChain().add(lut_filter(primary))
        .label([INPUT_LABEL], [PRIMARY_LABEL])
    )
    graph.add(
        FilterChain().add(lut_filter(primary)).add(lut_filter(secondary))
        .label([INPUT_LABEL], [SECONDARY_LABEL])
    )
    blend = FilterChain().add(Filter("blend", {
        "all_mode": "'overlay'",
        "all_opacity": format_number(opacity),
    }))
    for stage in tail:
        blend.add(stage)
    graph.add(blend.label([PRIMARY_LABEL, SECONDARY_LABEL], [OUTPUT_LABEL]))
    return graph


def build_preview_filter(config: ColorGradeConfig) -> PreviewFilter:
    """Build the output arguments for a one-frame preview."""
    arguments = ["-frames:v", "1"]
    balance = white_balance_filter(config.white_balance)
    primary = config.primary_lut_path
    secondary = config.effective_secondary

    if primary is None:
        if balance is None:
            return PreviewFilter(arguments=arguments, has_filter=False)
        arguments.extend(["-vf", balance.to_string()])
        return PreviewFilter(arguments=arguments, has_filter=True)

    if secondary is not None:
        graph = blend_graph(primary, secondary, config.blend_opacity, [balance])
        arguments.extend([
            "-filter_complex", graph.to_string(),
            "-map", f"[{OUTPUT_LABEL}]",
        ])
        return PreviewFilter(arguments=arguments, has_filter=True)

    chain = FilterChain().add(lut_filter(primary)).add(balance)
    arguments.extend(["-vf", chain.to_string()])
    return PreviewFilter(arguments=arguments, has_filter=True)


def build_export_filter(config: ColorGradeConfig, pixel_format: str) -> str:
    """Build the ``-filter_complex`` graph for a full export."""
    balance = white_balance_filter(config.white_balance)
    primary = config.primary_lut_path
    secondary = config.effective_secondary

    if primary is not None and secondary is not None:
        graph = blend_graph(
            primary, secondary, config.blend_opacity,
            [balance, format_filter(pixel_format)],
        )
        return graph.to_string()

    chain = FilterChain()
    if primary is not None:
        chain.add(lut_filter(primary))
    chain.add(balance).add(format_filter(pixel_format))
    return FilterGraph().add(
        chain.label([INPUT_LABEL], [OUTPUT_LABEL])
    ).to_string()


def build_encoding_arguments(use_hardware_acceleration: bool) -> list[str]:
    """Video codec flags for the hardware or software preset."""
    return EncodingProfile.from_flag(use_hardware_acceleration).to_ffmpeg_args()


def build_preview_command(
    source: str | Path,
    config: ColorGradeConfig,
    destination: str | Path,
) -> FFMPEGCommand:
    """``-ss 0 -i <source> <preview args> -y -f image2 <destination>``."""
    preview = build_preview_filter(config)
    builder = CommandBuilder()
    builder.input(source, ["-ss", "0"])
    builder.output_options(*preview.arguments)
    builder.format("image2")
    builder.output(destination)
    return builder.build()


def build_export_command(job: ExportJob, profile: EncodingProfile) -> FFMPEGCommand:
    """Full export invocation for one job.

    Edit lists are ignored on input and frame timing is passed through so
    sources with unusual timestamp metadata stay aligned.
    """
    builder = CommandBuilder()
    builder.input(job.source_path, ["-ignore_editlist", "1"])
    builder.output_options("-fps_mode", "passthrough")
    builder.output_options(*profile.to_ffmpeg_args())
    builder.output_options("-c:a", AUDIO_CODEC, "-b:a", AUDIO_BITRATE)
    builder.complex_filter(build_export_filter(job.config, profile.pixel_format.value))
    builder.map(f"[{OUTPUT_LABEL}]", "0:a?")
    builder.output(job.destination_path)
    return builder.build()
