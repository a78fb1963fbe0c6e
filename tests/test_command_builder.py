from pathlib import Path

from core.command_builder import (
    NORMALIZE_FLAGS, build_normalize_args, command_as_string, full_command,
)


def test_normalize_args_use_fixed_recipe():
    args = build_normalize_args("input.avi", "output.mp4")
    assert args == [
        "-hide_banner", "-loglevel", "error", "-y",
        "-i", "input.avi",
        "-c:v", "libx264", "-c:a", "aac",
        "output.mp4",
    ]
    assert NORMALIZE_FLAGS == ("-c:v", "libx264", "-c:a", "aac")


def test_output_is_last_and_input_follows_dash_i():
    args = build_normalize_args("in.avi", "out.mp4")
    assert args[-1] == "out.mp4"
    assert args[args.index("-i") + 1] == "in.avi"


def test_full_command_prefixes_binary():
    cmd = full_command(Path("/opt/ffmpeg"), ["-i", "a", "b"])
    assert cmd == ["/opt/ffmpeg", "-i", "a", "b"]
    assert command_as_string(cmd) == "/opt/ffmpeg -i a b"
