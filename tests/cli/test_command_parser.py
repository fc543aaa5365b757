from craftbot.utils.cli.command_parser import (
    ChatCommand,
    parse_command,
    poll_console_line,
    submit_console_line,
)


def test_parse_command_splits_arguments():
    cmd = parse_command("  GoTo 10 64 -5 ", username="Steve")
    assert cmd == ChatCommand(name="goto", args=["10", "64", "-5"], username="Steve")


def test_parse_command_prefix():
    assert parse_command("chop 3", prefix="!") is None
    cmd = parse_command("!chop 3", prefix="!")
    assert cmd.name == "chop"
    assert cmd.args == ["3"]


def test_parse_command_empty():
    assert parse_command("") is None
    assert parse_command("   ") is None
    assert parse_command("!", prefix="!") is None


def test_console_queue_round_trip():
    while poll_console_line() is not None:
        pass
    submit_console_line("status")
    submit_console_line("pos")
    assert poll_console_line() == "status"
    assert poll_console_line() == "pos"
    assert poll_console_line() is None
