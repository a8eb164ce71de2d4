import pytest


@pytest.fixture(scope="function", autouse=True)
def mock_env_vars(monkeypatch):
    """Set mock environment variables to prevent accidental cloud calls."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-central-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture(autouse=True)
def mock_sleep(monkeypatch):
    """Skip time.sleep calls to speed up tests."""
    monkeypatch.setattr("time.sleep", lambda x: None)


@pytest.fixture
def project_dir(tmp_path):
    """A small project tree with source files, noise and a requirements.txt."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "lambda_function.py").write_text("def lambda_handler(event, context):\n    return event\n")
    (root / "requirements.txt").write_text("")
    (root / "deploy.env").write_text("SECRET=1\n")
    (root / "debug.log").write_text("noise")
    (root / "lib").mkdir()
    (root / "lib" / "helpers.py").write_text("VALUE = 1\n")
    (root / "build").mkdir()
    (root / "build" / "artifact.txt").write_text("old build")
    (root / ".venv").mkdir()
    (root / ".venv" / "site.py").write_text("")
    return root
