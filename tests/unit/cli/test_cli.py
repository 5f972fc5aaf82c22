from click.testing import CliRunner

from fusionimg.interface.cli.cli import cli


def test_cli_loads_and_help_works() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"], prog_name="fusion")

    assert result.exit_code == 0
    assert result.exception is None
    assert "Usage: fusion" in result.output
    for command in ("run", "gateways", "config", "validate"):
        assert command in result.output
