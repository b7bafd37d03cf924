"""Tests for the vidcollage command line: exit codes, overrides, and runs."""

import imageio_ffmpeg
import pytest
import yaml


def _exit_code(args):
    from vidcollage.cli import main

    with pytest.raises(SystemExit) as exc_info:
        main(args)
    return exc_info.value.code


class TestUsageErrors:
    def test_help_exits_with_failure(self, capsys):
        assert _exit_code(["--help"]) == 1
        assert "tile_spec" in capsys.readouterr().out

    def test_short_help(self):
        assert _exit_code(["-h"]) == 1

    def test_no_tiles(self, capsys):
        assert _exit_code([]) == 1
        assert "No tile specs given" in capsys.readouterr().err

    def test_unknown_option(self, capsys):
        assert _exit_code(["--bogus", "a.mp4@1x1+0+0"]) == 1
        assert "unrecognized arguments" in capsys.readouterr().err

    def test_non_integer_fps(self):
        assert _exit_code(["-f", "fast", "a.mp4@1x1+0+0"]) == 1

    def test_bad_background(self, capsys):
        assert _exit_code(["--background", "purple", "a.mp4@1x1+0+0"]) == 1
        assert "Invalid color" in capsys.readouterr().err


class TestValidationErrors:
    def test_malformed_tile_spec(self, capsys):
        assert _exit_code(["clip.mp4@320x240+10"]) == 1
        err = capsys.readouterr().err
        assert "Malformed tile description" in err
        assert "tile_spec" in err  # usage follows the diagnostic

    def test_codec_must_be_four_chars(self, capsys):
        assert _exit_code(["-c", "libx264", "a.mp4@1x1+0+0"]) == 1
        assert "FOURCC" in capsys.readouterr().err

    def test_fps_must_be_positive(self, capsys):
        assert _exit_code(["--fps", "0", "a.mp4@1x1+0+0"]) == 1
        assert "FPS must be a positive integer" in capsys.readouterr().err

    def test_missing_source(self, tmp_path, capsys):
        args = ["-o", str(tmp_path / "o.avi"), f"{tmp_path}/gone.mp4@8x8+0+0"]
        assert _exit_code(args) == 1
        assert "not found" in capsys.readouterr().err

    def test_unknown_fourcc_fails_writer(self, make_video, tmp_path, capsys):
        a = make_video("a.mp4", frames=2)
        args = ["-c", "ABCD", "-o", str(tmp_path / "o.avi"), f"{a}@8x8+0+0"]
        assert _exit_code(args) == 1
        assert "Failed to open video writer" in capsys.readouterr().err

    def test_bad_layout_manifest(self, tmp_path, capsys):
        manifest = tmp_path / "layout.yaml"
        manifest.write_text(yaml.dump({"tiles": []}))
        assert _exit_code(["--layout", str(manifest)]) == 1
        assert "Invalid layout manifest" in capsys.readouterr().err


class TestRuns:
    def test_side_by_side_run(self, make_video, tmp_path):
        from vidcollage.cli import main

        a = make_video("a.mp4", color="red", frames=6)
        b = make_video("b.mp4", color="lime", frames=9)
        c = make_video("c.mp4", color="blue", frames=3)
        out = tmp_path / "wall.avi"
        main([
            "-c", "MJPG", "-f", "24", "-o", str(out), "--exact-frame-count",
            f"{a}@100x100+0+0", f"{b}@100x100+100+0", f"{c}@100x100+200+0",
        ])
        nframes, _ = imageio_ffmpeg.count_frames_and_secs(str(out))
        assert nframes == 9

    def test_options_between_tile_specs(self, make_video, tmp_path, capsys):
        from vidcollage.cli import main

        a = make_video("a.mp4", frames=4)
        b = make_video("b.mp4", frames=4)
        out = tmp_path / "mixed.avi"
        main([f"{a}@32x32+0+0", "-v", "-c", "MJPG", f"{b}@32x32+32+0", "-o", str(out)])
        stdout = capsys.readouterr().out
        assert f"Adding tile 0: {a}@32x32+0+0" in stdout
        assert f"Adding tile 1: {b}@32x32+32+0" in stdout
        assert out.exists()

    def test_validate_prints_layout_without_encoding(self, make_video, tmp_path, capsys):
        from vidcollage.cli import main

        a = make_video("a.mp4", frames=5)
        b = make_video("b.mp4", frames=8)
        main([
            "--validate", "--exact-frame-count",
            "-o", str(tmp_path / "never.avi"),
            f"{a}@100x50+0+0", f"{b}@100x50+0+50",
        ])
        out = capsys.readouterr().out
        assert "Layout valid: 2 tiles, canvas 100x100, 8 frames" in out
        assert not (tmp_path / "never.avi").exists()

    def test_allow_missing_renders_remaining_tiles(self, make_video, tmp_path, capsys):
        from vidcollage.cli import main

        a = make_video("a.mp4", frames=4)
        out = tmp_path / "partial.avi"
        main([
            "--allow-missing", "--exact-frame-count", "-c", "MJPG", "-o", str(out),
            f"{tmp_path}/gone.mp4@32x32+0+0", f"{a}@32x32+32+0",
        ])
        assert "contributes no frames" in capsys.readouterr().err
        nframes, _ = imageio_ffmpeg.count_frames_and_secs(str(out))
        assert nframes == 4

    def test_layout_manifest_with_cli_override(self, make_video, tmp_path, read_video):
        from vidcollage.cli import main

        a = make_video("a.mp4", frames=3)
        b = make_video("b.mp4", frames=5)
        manifest = tmp_path / "layout.yaml"
        manifest.write_text(yaml.dump({
            "paths": {"clips": str(tmp_path)},
            "output": {"path": "${clips}/from-manifest.avi", "codec": "MJPG", "fps": 12},
            "tiles": [
                "${clips}/a.mp4@40x30+0+0",
                {"path": "${clips}/b.mp4", "size": [40, 30], "position": [40, 0]},
            ],
        }))
        main(["--layout", str(manifest), "--exact-frame-count", "-f", "15"])
        meta, frames = read_video(tmp_path / "from-manifest.avi")
        assert tuple(meta["size"]) == (80, 30)
        assert meta["fps"] == pytest.approx(15)
        assert len(frames) == 5


class TestEncoderFailures:
    def test_h264_odd_canvas_exits_with_failure(self, make_video, tmp_path, capsys):
        a = make_video("a.mp4", frames=3)
        out = tmp_path / "odd.mp4"
        args = ["--exact-frame-count", "-c", "H264", "-o", str(out), f"{a}@33x33+0+0"]
        assert _exit_code(args) == 1
        assert "needs even frame dimensions" in capsys.readouterr().err
        assert not out.exists()
