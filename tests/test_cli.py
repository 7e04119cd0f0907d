"""Tests for the noise map CLI."""

from noisemap.cli import build_parser, main


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.config is None
        assert args.width is None
        assert args.kernel is None
        assert args.verbose is False

    def test_overrides(self):
        args = build_parser().parse_args(
            ["--width", "32", "--height", "16", "--kernel", "extra_smooth", "--passes", "2", "-v"]
        )
        assert args.width == 32
        assert args.height == 16
        assert args.kernel == "extra_smooth"
        assert args.passes == 2
        assert args.verbose is True


class TestMain:
    """Tests for the CLI entry point."""

    def test_generates_from_config(self, config_file, capsys):
        assert main(["--config", str(config_file)]) == 0
        assert "noise_map_generated" in capsys.readouterr().out

    def test_default_config_with_overrides(self):
        assert main(["--width", "12", "--height", "10", "--kernel", "coarse", "--passes", "1"]) == 0

    def test_missing_config(self):
        assert main(["--config", "no_such_config"]) == 1

    def test_generation_error_exit_code(self):
        """Invalid overrides surface as a failed run, not a traceback."""
        assert main(["--width", "8", "--height", "8", "--passes", "-1"]) == 1

    def test_invalid_size_exit_code(self):
        assert main(["--width", "0"]) == 1
