"""CLI wiring via click's test runner."""

from click.testing import CliRunner

from skill_dock.cli import cli


def test_add_list_remove_roundtrip(project, make_skill):
    runner = CliRunner()
    src = make_skill("demo", description="Demo skill")

    result = runner.invoke(cli, ["add", str(src), "-a", "claude-code", "-a", "cursor"])
    assert result.exit_code == 0, result.output
    assert "demo -> claude-code" in result.output
    assert (project / ".cursor" / "skills" / "demo").is_symlink()

    result = runner.invoke(cli, ["list", "--local", "-a", "cursor"])
    assert result.exit_code == 0, result.output
    assert "Project skills" in result.output
    assert "demo" in result.output
    assert "Cursor" in result.output

    result = runner.invoke(cli, ["remove", "demo"])
    assert result.exit_code == 0, result.output
    assert "Removed demo" in result.output
    assert not (project / ".agents" / "skills" / "demo").exists()


def test_add_list_only(project, make_skill):
    src = make_skill("demo", description="Demo skill")
    result = CliRunner().invoke(cli, ["add", str(src), "--list"])

    assert result.exit_code == 0
    assert "Demo skill" in result.output
    assert not (project / ".agents").exists()


def test_add_invalid_agent_exits_with_error(project, make_skill):
    src = make_skill("demo")
    result = CliRunner().invoke(cli, ["add", str(src), "-a", "not-an-agent"])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "Invalid agents: not-an-agent" in result.output


def test_add_missing_path(project):
    result = CliRunner().invoke(cli, ["add", "./nowhere", "-a", "cursor"])
    assert result.exit_code == 1
    assert "Local path does not exist" in result.output


def test_list_empty(project):
    result = CliRunner().invoke(cli, ["list"])
    assert result.exit_code == 0
    assert "No skills installed." in result.output


def test_remove_unknown_skill(project):
    result = CliRunner().invoke(cli, ["remove", "ghost"])
    assert result.exit_code == 1
    assert "Not installed" in result.output


def test_remove_all_needs_confirmation(project, make_skill):
    runner = CliRunner()
    runner.invoke(cli, ["add", str(make_skill("demo")), "-a", "cursor"])

    result = runner.invoke(cli, ["remove", "--all"], input="n\n")
    assert result.exit_code != 0
    assert (project / ".agents" / "skills" / "demo").exists()

    result = runner.invoke(cli, ["remove", "--all", "-y"])
    assert result.exit_code == 0
    assert not (project / ".agents" / "skills" / "demo").exists()


def test_install_without_skills_file(project):
    result = CliRunner().invoke(cli, ["install"])
    assert result.exit_code == 0
    assert "No .skills file found" in result.output


def test_install_from_local_skills_file(home, project, make_skill):
    (home / ".cursor").mkdir()
    make_skill("local-one", root=project / "vendor")
    (project / ".skills").write_text("./vendor/local-one\n")

    result = CliRunner().invoke(cli, ["install"])

    assert result.exit_code == 0, result.output
    assert "project scope" in result.output
    assert (project / ".cursor" / "skills" / "local-one").is_symlink()


def test_check_with_empty_lock(home, project):
    result = CliRunner().invoke(cli, ["check"])
    assert result.exit_code == 0
    assert "up to date" in result.output
