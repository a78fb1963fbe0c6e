"""
core.command_builder
~~~~~~~~~~~~~~~~~~~~
Builds ffmpeg CLI arguments as plain list[str].

Keeping command construction separate means you can:
  - log / print the exact command before running it
  - paste it straight into a terminal for debugging
  - unit-test flag generation without running any process
"""

from __future__ import annotations

from pathlib import Path

# Fixed normalization recipe: H.264 + AAC
NORMALIZE_FLAGS: tuple[str, ...] = ("-c:v", "libx264", "-c:a", "aac")


def build_normalize_args(input_name: str, output_name: str) -> list[str]:
    """
    Build the ffmpeg arguments (binary excluded) for one normalization.

    Names are relative to the engine's working directory:
        ffmpeg
          -hide_banner -loglevel error   ← keep stderr down to real errors
          -y                             ← overwrite output without prompting
          -i <input>
          -c:v libx264 -c:a aac
          <output>

    Example output:
        ['-hide_banner', '-loglevel', 'error', '-y',
         '-i', 'input.avi', '-c:v', 'libx264', '-c:a', 'aac', 'output.mp4']
    """
    return [
        "-hide_banner",
        "-loglevel", "error",
        "-y",
        "-i", input_name,
        *NORMALIZE_FLAGS,
        output_name,
    ]


def full_command(binary: Path, args: list[str]) -> list[str]:
    """Prefix *args* with the ffmpeg binary."""
    return [str(binary), *args]


def command_as_string(cmd: list[str]) -> str:
    """Human-readable version of the command for logging."""
    return " ".join(cmd)
