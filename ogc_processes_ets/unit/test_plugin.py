import pytest


PLUGIN = ("-p", "ogc_processes_ets.plugin")


@pytest.fixture
def landing_page(tmp_path):
    path = tmp_path / "landing.json"
    path.write_text('{"title": "Demo processes server"}', encoding="utf-8")
    return path


def test_fixture_built_from_options(pytester, landing_page):
    pytester.makepyfile(
        """
        def test_suite_fixture(suite_fixture, iut, subject_file, http_client):
            assert iut.scheme == "file"
            assert subject_file.read_text(encoding="utf-8") == '{"title": "Demo processes server"}'
            assert suite_fixture.echo_process_id == "echo"
            assert suite_fixture.process_test_limit == 4
            assert suite_fixture.test_all_processes is True
            assert suite_fixture.use_local_schema is True
            assert http_client.is_open
        """
    )

    result = pytester.runpytest(
        *PLUGIN,
        f"--iut={landing_page.as_uri()}",
        "--echo-process-id=echo",
        "--process-test-limit=4",
        "--test-all-processes=on",
    )

    result.assert_outcomes(passed=1)


def test_run_parameters_fall_back_to_environment(pytester, monkeypatch, landing_page):
    monkeypatch.setenv("ETS_IUT", landing_page.as_uri())
    monkeypatch.setenv("ETS_URL_APP_PKG", "https://example.org/packages/echo.cwl")
    pytester.makepyfile(
        """
        def test_suite_fixture(suite_fixture):
            assert suite_fixture.url_app_pkg == "https://example.org/packages/echo.cwl"
            assert suite_fixture.test_all_processes is False
        """
    )

    result = pytester.runpytest(*PLUGIN)

    result.assert_outcomes(passed=1)


def test_malformed_limit_does_not_stop_the_run(pytester, landing_page):
    pytester.makepyfile(
        """
        def test_suite_fixture(suite_fixture):
            assert suite_fixture.process_test_limit is None
            assert suite_fixture.warnings
        """
    )

    result = pytester.runpytest(
        *PLUGIN, f"--iut={landing_page.as_uri()}", "--process-test-limit=abc"
    )

    result.assert_outcomes(passed=1)


def test_missing_iut_is_a_usage_error(pytester):
    pytester.makepyfile(
        """
        def test_never_runs():
            raise AssertionError("suite must not start")
        """
    )

    result = pytester.runpytest(*PLUGIN)

    assert result.ret == pytest.ExitCode.USAGE_ERROR


def test_unreachable_iut_aborts_the_run(pytester, tmp_path):
    pytester.makepyfile(
        """
        def test_never_runs():
            raise AssertionError("suite must not start")
        """
    )

    result = pytester.runpytest(*PLUGIN, f"--iut={(tmp_path / 'missing.json').as_uri()}")

    assert result.ret == pytest.ExitCode.INTERNAL_ERROR


def test_subject_deleted_on_finish_when_requested(pytester, landing_page):
    pytester.makepyfile(
        """
        from pathlib import Path

        def test_record_subject(subject_file):
            Path("subject_path.txt").write_text(str(subject_file), encoding="utf-8")
        """
    )

    result = pytester.runpytest(
        *PLUGIN,
        f"--iut={landing_page.as_uri()}",
        "--delete-subject-on-finish",
        "--ets-log-level=INFO",
    )

    result.assert_outcomes(passed=1)
    subject = (pytester.path / "subject_path.txt").read_text(encoding="utf-8")
    assert not pytester.path.joinpath(subject).exists()
    assert landing_page.exists()


def test_subject_kept_at_config_verbosity(pytester, landing_page):
    pytester.makepyfile(
        """
        from pathlib import Path

        def test_record_subject(subject_file):
            Path("subject_path.txt").write_text(str(subject_file), encoding="utf-8")
        """
    )

    result = pytester.runpytest(
        *PLUGIN,
        f"--iut={landing_page.as_uri()}",
        "--delete-subject-on-finish",
        "--ets-log-level=CONFIG",
    )

    result.assert_outcomes(passed=1)
    subject = pytester.path.joinpath(
        (pytester.path / "subject_path.txt").read_text(encoding="utf-8")
    )
    assert subject.exists()
    subject.unlink()


def test_report_header_shows_iut(pytester, landing_page):
    pytester.makepyfile("def test_ok(): pass")

    result = pytester.runpytest(*PLUGIN, f"--iut={landing_page.as_uri()}")

    result.stdout.fnmatch_lines([f"*IUT: {landing_page.as_uri()}*"])
