import pytest
from aws_cdk import App, Environment, Stack

from reiam.config import ENV_ACCOUNT, ENV_REGION


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (ENV_ACCOUNT, ENV_REGION):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def app() -> App:
    return App()


@pytest.fixture()
def stack(app: App) -> Stack:
    """A stack bound to a concrete account and region."""
    env = Environment(account="123456789012", region="eu-west-1")
    return Stack(app, "TestStack", env=env)


@pytest.fixture()
def agnostic_stack(app: App) -> Stack:
    """A stack whose account and region are left to deployment."""
    return Stack(app, "AgnosticStack")
